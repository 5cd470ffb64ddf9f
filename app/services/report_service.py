"""Per-session attendance totals used by the report endpoints and PDFs."""
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models import Attendance, AttendanceStatus, Session
from app.services.roster_service import count_rosters


def attendance_rate(present: int, late: int, total_expected: int) -> float:
    """Share of expected students who showed up (present or late), in percent."""
    if not total_expected:
        return 0.0
    return round(100.0 * (present + late) / total_expected, 1)


async def list_sessions_in_range(
    db: AsyncSession, start_date: date | None = None, end_date: date | None = None
) -> list[Session]:
    q = select(Session).order_by(Session.date, Session.time_in, Session.id)
    if start_date is not None:
        q = q.where(Session.date >= start_date)
    if end_date is not None:
        q = q.where(Session.date <= end_date)
    return list((await db.execute(q)).scalars().all())


async def summarize_sessions(
    db: AsyncSession,
    session_factory: async_sessionmaker[AsyncSession],
    sessions: list[Session],
) -> list[dict]:
    """Expected count and status totals for each session, in input order.

    Rosters are counted before ``db`` is used, so a caller that committed ``db``
    holds no connection while they are resolved.
    """
    if not sessions:
        return []
    expected = await count_rosters(session_factory, sessions)

    ids = [s.id for s in sessions]
    rows = await db.execute(
        select(Attendance.session_id, Attendance.status, func.count(Attendance.id))
        .where(Attendance.session_id.in_(ids))
        .group_by(Attendance.session_id, Attendance.status)
    )
    by_session: dict[int, dict[str, int]] = {}
    for session_id, status, n in rows:
        by_session.setdefault(session_id, {})[status] = n

    summaries = []
    for s in sessions:
        counts = by_session.get(s.id, {})
        present = counts.get(AttendanceStatus.PRESENT, 0)
        late = counts.get(AttendanceStatus.LATE, 0)
        absent = counts.get(AttendanceStatus.ABSENT, 0)
        excused = counts.get(AttendanceStatus.EXCUSED, 0)
        total = expected.get(s.id, 0)
        summaries.append({
            "session_id": s.id,
            "title": s.title,
            "type": s.type,
            "date": s.date,
            "program": s.program,
            "year": s.year,
            "section": s.section,
            "total_expected": total,
            "present": present,
            "late": late,
            "absent": absent,
            "excused": excused,
            "unmarked": max(0, total - (present + late + absent + excused)),
            "attendance_rate": attendance_rate(present, late, total),
        })
    return summaries
