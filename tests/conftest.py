"""Shared fixtures: a throwaway SQLite database per test and an API client bound to it."""
import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("STORAGE_ROOT", tempfile.mkdtemp(prefix="attendance-storage-"))

import httpx
import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.database import Base, get_db, get_session_factory
from app.core.security import create_access_token, hash_password
from app.main import app
from app.models import Session, Student, User, UserRole, UserStatus
from app.services.storage_service import StorageService, get_storage
from app.services.verification_client import VerificationClient, get_verification_client


def _enable_foreign_keys(dbapi_connection, _record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    event.listen(eng.sync_engine, "connect", _enable_foreign_keys)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage(tmp_path):
    return StorageService(tmp_path / "storage", "http://testserver/storage")


class FakeVerificationService:
    """Programmable stand-in for the external AI service, served through httpx.MockTransport."""

    def __init__(self):
        self.verify_response = {
            "success": True,
            "match": False,
            "predicted_student_id": None,
            "score": 0.0,
            "decision": "no_match",
            "message": "No match",
        }
        self.status_code = 200
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/verify":
            return httpx.Response(self.status_code, json=self.verify_response)
        if request.url.path.startswith("/train/"):
            student_id = int(request.url.path.rsplit("/", 1)[-1])
            return httpx.Response(self.status_code, json={
                "success": True,
                "message": "Training started",
                "profile": {"student_id": student_id, "status": "training", "num_samples": 3},
            })
        if request.url.path == "/health":
            return httpx.Response(200, json={"status": "healthy"})
        return httpx.Response(404, json={"detail": "not found"})

    def client(self) -> VerificationClient:
        return VerificationClient(base_url="http://ai.test", transport=httpx.MockTransport(self.handler))


@pytest.fixture
def verification_service():
    return FakeVerificationService()


@pytest.fixture
async def client(session_factory, storage, verification_service):
    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_verification_client] = verification_service.client
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


# ── Data helpers ──────────────────────────────────────────────────────

async def create_user(
    db,
    email="admin@school.edu",
    password="secret123",
    role=UserRole.ADMIN,
    status=UserStatus.ACTIVE,
) -> User:
    user = User(
        email=email,
        password_hash=hash_password(password),
        first_name="Test",
        last_name=role.title(),
        role=role,
        status=status,
    )
    db.add(user)
    await db.commit()
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


async def add_students(db, rows) -> list[Student]:
    """rows: (student_id, surname, firstname, program, year, section)."""
    students = [
        Student(student_id=sid, surname=sn, firstname=fn, program=p, year=y, section=s)
        for sid, sn, fn, p, y, s in rows
    ]
    db.add_all(students)
    await db.commit()
    return students


async def add_session(db, **kwargs) -> Session:
    from datetime import date

    values = {"title": "Assembly", "date": date(2025, 8, 1)}
    values.update(kwargs)
    session = Session(**values)
    db.add(session)
    await db.commit()
    return session


@pytest.fixture
async def admin(db):
    return await create_user(db)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)
