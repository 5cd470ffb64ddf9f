"""Session endpoints: CRUD plus the resolved roster of each session."""
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.endpoints.auth import get_current_user
from app.core.database import get_db, get_session_factory
from app.models import Session, User
from app.schemas.session import (
    RosterStudent,
    SessionCreate,
    SessionItem,
    SessionListResponse,
    SessionRosterResponse,
    SessionUpdate,
)
from app.services.roster_service import count_rosters, get_session_or_404, get_session_roster

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _session_item(session: Session, expected_count: int | None = None) -> SessionItem:
    item = SessionItem.model_validate(session)
    item.expected_count = expected_count
    return item


@router.get(
    "",
    response_model=SessionListResponse,
    summary="List sessions",
    description="Sessions ordered by date (inclusive date range), each with its expected attendee count.",
)
async def list_sessions(
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    _: User = Depends(get_current_user),
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
):
    q = select(Session).order_by(Session.date, Session.time_in, Session.id)
    if start_date is not None:
        q = q.where(Session.date >= start_date)
    if end_date is not None:
        q = q.where(Session.date <= end_date)
    sessions = list((await db.execute(q)).scalars().all())
    # Hand the pooled connection back before opening one session per roster
    await db.commit()
    counts = await count_rosters(session_factory, sessions)
    return SessionListResponse(sessions=[_session_item(s, counts.get(s.id)) for s in sessions])


@router.get("/{session_id}", response_model=SessionItem, summary="Get a session")
async def get_session(
    session_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return _session_item(await get_session_or_404(db, session_id))


@router.get(
    "/{session_id}/students",
    response_model=SessionRosterResponse,
    summary="Session roster",
    description=(
        "Students expected at the session (program/year/section target, with section "
        "fallbacks) merged with their attendance, sorted by surname and first name."
    ),
)
async def session_students(
    session_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    roster = await get_session_roster(db, session_id)
    students = [
        RosterStudent(
            id=e.student.id,
            student_id=e.student.student_id,
            surname=e.student.surname,
            firstname=e.student.firstname,
            middle_initial=e.student.middle_initial,
            program=e.student.program,
            year=e.student.year,
            section=e.student.section,
            signature_url=e.student.signature_url,
            status=e.status,
            time_in=e.time_in,
            time_out=e.time_out,
        )
        for e in roster.entries
    ]
    return SessionRosterResponse(
        session=_session_item(roster.session, roster.count),
        students=students,
        count=roster.count,
    )


@router.post(
    "",
    response_model=SessionItem,
    status_code=status.HTTP_201_CREATED,
    summary="Create a session",
)
async def create_session(
    body: SessionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    session = Session(**body.model_dump(), created_by_user_id=current_user.id)
    db.add(session)
    await db.flush()
    await db.refresh(session)
    return _session_item(session)


@router.patch("/{session_id}", response_model=SessionItem, summary="Update a session")
async def update_session(
    session_id: int,
    body: SessionUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    session = await get_session_or_404(db, session_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(session, field, value)
    if session.time_in and session.time_out and session.time_out <= session.time_in:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="time_out must be after time_in",
        )
    await db.flush()
    await db.refresh(session)
    return _session_item(session)


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a session",
    description="Also deletes the session's attendance records.",
)
async def delete_session(
    session_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    session = await get_session_or_404(db, session_id)
    await db.delete(session)
    await db.flush()
