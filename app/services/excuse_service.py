"""Excuse applications: filing, optional letter upload and review."""
import logging
import secrets
import time
from datetime import date
from pathlib import PurePosixPath

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import MutationError, NotFoundError
from app.models import AttendanceStatus, ExcuseApplication, ExcuseStatus, Session, Student
from app.models.mixins import utcnow
from app.services.attendance_service import mark_attendance
from app.services.storage_service import EXCUSE_LETTERS_BUCKET, StorageService, discard_unless_committed

logger = logging.getLogger(__name__)


def letter_object_path(file_name: str) -> str:
    """``excuse-letters/{timestamp_ms}-{random}.{ext}`` inside the excuse-letters bucket."""
    ext = PurePosixPath(file_name).suffix.lstrip(".").lower() or "pdf"
    return f"excuse-letters/{int(time.time() * 1000)}-{secrets.token_hex(4)}.{ext}"


async def get_excuse_or_404(db: AsyncSession, excuse_id: int) -> ExcuseApplication:
    result = await db.execute(
        select(ExcuseApplication)
        .options(selectinload(ExcuseApplication.student), selectinload(ExcuseApplication.session))
        .where(ExcuseApplication.id == excuse_id)
    )
    excuse = result.scalar_one_or_none()
    if excuse is None:
        raise NotFoundError(f"Excuse application {excuse_id} not found")
    return excuse


async def list_excuses(
    db: AsyncSession, status: str | None = None
) -> tuple[int, list[ExcuseApplication]]:
    """Applications, newest first, optionally filtered by status."""
    q = select(ExcuseApplication).options(
        selectinload(ExcuseApplication.student), selectinload(ExcuseApplication.session)
    )
    if status:
        q = q.where(ExcuseApplication.status == status)
    total = (await db.execute(select(func.count()).select_from(q.subquery()))).scalar() or 0
    result = await db.execute(
        q.order_by(ExcuseApplication.created_at.desc(), ExcuseApplication.id.desc())
    )
    return total, list(result.scalars().all())


async def create_excuse(
    db: AsyncSession,
    storage: StorageService,
    student_id: int,
    reason: str,
    session_id: int | None = None,
    absence_date: date | None = None,
    letter: tuple[str, bytes, str | None] | None = None,
) -> ExcuseApplication:
    """File a pending application; ``letter`` is ``(file_name, content, content_type)``.

    The stored letter is removed again if the transaction of ``db`` does not commit.
    """
    if await db.get(Student, student_id) is None:
        raise NotFoundError(f"Student {student_id} not found")
    if session_id is not None and await db.get(Session, session_id) is None:
        raise NotFoundError(f"Session {session_id} not found")

    documentation_url = None
    if letter is not None:
        file_name, content, content_type = letter
        path = letter_object_path(file_name)
        await storage.upload_async(EXCUSE_LETTERS_BUCKET, path, content, content_type=content_type)
        discard_unless_committed(db, storage, EXCUSE_LETTERS_BUCKET, path)
        documentation_url = storage.get_public_url(EXCUSE_LETTERS_BUCKET, path)

    excuse = ExcuseApplication(
        student_id=student_id,
        session_id=session_id,
        absence_date=absence_date or date.today(),
        reason=reason,
        documentation_url=documentation_url,
        status=ExcuseStatus.PENDING,
    )
    db.add(excuse)
    await db.flush()
    logger.info("Excuse application %s filed for student %s", excuse.id, student_id)
    return await get_excuse_or_404(db, excuse.id)


async def review_excuse(
    db: AsyncSession,
    excuse_id: int,
    status: str,
    reviewer_id: int,
    review_notes: str | None = None,
) -> ExcuseApplication:
    """Approve or reject a pending application.

    Approving an application tied to a session also marks that student excused.
    """
    if status not in (ExcuseStatus.APPROVED, ExcuseStatus.REJECTED):
        raise ValueError("status must be 'approved' or 'rejected'")
    excuse = await get_excuse_or_404(db, excuse_id)
    if excuse.status != ExcuseStatus.PENDING:
        raise MutationError(f"Excuse application {excuse_id} was already {excuse.status}")

    excuse.status = status
    excuse.review_notes = review_notes
    excuse.reviewed_by = reviewer_id
    excuse.reviewed_at = utcnow()
    await db.flush()

    if status == ExcuseStatus.APPROVED and excuse.session_id is not None:
        await mark_attendance(db, excuse.session_id, excuse.student_id, AttendanceStatus.EXCUSED)
    logger.info("Excuse application %s %s by %s", excuse_id, status, reviewer_id)
    return excuse


async def delete_excuse(db: AsyncSession, excuse_id: int) -> None:
    result = await db.execute(delete(ExcuseApplication).where(ExcuseApplication.id == excuse_id))
    if result.rowcount == 0:
        logger.warning("Delete of excuse application %s removed no rows", excuse_id)
        raise NotFoundError(f"Excuse application {excuse_id} not found")
