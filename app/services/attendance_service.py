"""Attendance marking: one row per (session, student), written as an upsert."""
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import MutationError, NotFoundError
from app.models import Attendance, AttendanceStatus
from app.models.mixins import utcnow

logger = logging.getLogger(__name__)

_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


@dataclass
class AttendanceMark:
    student_id: int
    status: str
    time_in: datetime | None = None
    time_out: datetime | None = None


def _validate_status(status: str) -> str:
    if status not in AttendanceStatus.ALL:
        raise ValueError(f"status must be one of: {', '.join(AttendanceStatus.ALL)}")
    return status


async def mark_attendance(
    db: AsyncSession,
    session_id: int,
    student_id: int,
    status: str,
    time_in: datetime | None = None,
    time_out: datetime | None = None,
) -> Attendance:
    """Insert or overwrite the attendance of ``student_id`` at ``session_id``.

    A second call for the same pair replaces status and times instead of adding a
    row. ``updated_at`` is always stamped. Raises MutationError when the write
    returns no row.
    """
    _validate_status(status)
    dialect = db.get_bind().dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise MutationError(f"Attendance upsert is not supported on {dialect}")

    now = utcnow()
    values = {
        "session_id": session_id,
        "student_id": student_id,
        "status": status,
        "time_in": time_in,
        "time_out": time_out,
        "created_at": now,
        "updated_at": now,
    }
    stmt = insert(Attendance).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[Attendance.session_id, Attendance.student_id],
        set_={
            "status": stmt.excluded.status,
            "time_in": stmt.excluded.time_in,
            "time_out": stmt.excluded.time_out,
            "updated_at": stmt.excluded.updated_at,
        },
    ).returning(Attendance.id)

    result = await db.execute(stmt)
    attendance_id = result.scalar_one_or_none()
    if attendance_id is None:
        raise MutationError("No attendance record was created or updated")

    # The ORM identity map may hold a stale copy of this row
    record = await db.get(Attendance, attendance_id, populate_existing=True)
    logger.debug(
        "Attendance session=%s student=%s -> %s", session_id, student_id, status
    )
    return record


async def mark_attendance_bulk(
    db: AsyncSession, session_id: int, marks: list[AttendanceMark]
) -> list[Attendance]:
    """Upsert several marks for one session; all share the request transaction."""
    for mark in marks:
        _validate_status(mark.status)
    records = []
    for mark in marks:
        records.append(
            await mark_attendance(
                db, session_id, mark.student_id, mark.status, mark.time_in, mark.time_out
            )
        )
    return records


async def list_session_attendance(db: AsyncSession, session_id: int) -> list[Attendance]:
    result = await db.execute(
        select(Attendance).where(Attendance.session_id == session_id).order_by(Attendance.id)
    )
    return list(result.scalars().all())


async def delete_attendance(db: AsyncSession, attendance_id: int) -> None:
    result = await db.execute(delete(Attendance).where(Attendance.id == attendance_id))
    if result.rowcount == 0:
        raise NotFoundError(f"Attendance record {attendance_id} not found")
