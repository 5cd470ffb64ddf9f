"""Roster resolution: which students are expected at a session.

A session targets a population through three free-form fields (program, year,
section). Any field whose value means "all" places no constraint. Constrained
fields are matched by equality, with ``year`` stripped of a trailing " Year"
because sessions store "1st Year" while students store "1st".

When an exact section match finds nobody, the section string is retried in a
few normalized forms (exact, then substring), and if that still finds nobody
the search widens to program + year and then to program alone.

Every query is materialized page by page so a server-side row cap never
truncates a roster. Nothing here writes to the database.
"""
import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.models import Attendance, Session, Student

logger = logging.getLogger(__name__)

ALL_PHRASES = frozenset({"all programs", "all year levels", "all sections"})
YEAR_SUFFIX = " Year"


@dataclass
class RosterEntry:
    """A student on a roster with their attendance for the session, if any."""

    student: Student
    status: str | None = None
    time_in: datetime | None = None
    time_out: datetime | None = None


@dataclass
class SessionRoster:
    session: Session
    entries: list[RosterEntry] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.entries)


# ── Pure helpers ──────────────────────────────────────────────────────

def is_all_value(value: str | None) -> bool:
    """True when a session filter field places no constraint."""
    if value is None:
        return True
    lowered = value.strip().lower()
    return lowered == "" or "all" in lowered or lowered in ALL_PHRASES


def normalize_year(value: str) -> str:
    """'1st Year' -> '1st'; other values are only trimmed."""
    year = value.strip()
    if year.endswith(YEAR_SUFFIX):
        year = year[: -len(YEAR_SUFFIX)].strip()
    return year


def section_variants(section: str) -> list[str]:
    """Alternative spellings of a section, in the order they are tried.

    Duplicates and empty strings are dropped, keeping the first occurrence.
    """
    trimmed = section.strip()
    parts = trimmed.split()
    trailing = parts[-1] if parts else ""
    candidates = [
        section,
        trimmed,
        re.sub(r"\s+", " ", trimmed),
        trimmed.upper(),
        trimmed.lower(),
        re.sub(r"\s", "", trimmed),
        trailing,
    ]
    variants: list[str] = []
    for candidate in candidates:
        if candidate and candidate not in variants:
            variants.append(candidate)
    return variants


def sort_key(student: Student) -> tuple[str, str]:
    return ((student.surname or "").casefold(), (student.firstname or "").casefold())


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


# ── Query building and paging ────────────────────────────────────────

def placement_query(
    program: str | None = None,
    year: str | None = None,
    section: str | None = None,
    *,
    substring: bool = False,
) -> Select:
    """SELECT students filtered on every constrained placement field.

    ``section`` is applied as given; callers pass None when it is unconstrained.
    """
    stmt = select(Student)
    if not is_all_value(program):
        stmt = stmt.where(Student.program == program.strip())
    if not is_all_value(year):
        stmt = stmt.where(Student.year == normalize_year(year))
    if section is not None:
        if substring:
            stmt = stmt.where(Student.section.ilike(_like_pattern(section), escape="\\"))
        else:
            stmt = stmt.where(Student.section == section)
    return stmt


async def fetch_all(db: AsyncSession, stmt: Select, page_size: int | None = None) -> list[Student]:
    """Run ``stmt`` page by page until a short page comes back."""
    size = settings.roster_page_size if page_size is None else page_size
    if size <= 0:
        raise ValueError(f"page_size must be positive, got {size}")
    students: list[Student] = []
    offset = 0
    while True:
        result = await db.execute(stmt.order_by(Student.id).offset(offset).limit(size))
        page = list(result.scalars().all())
        students.extend(page)
        if len(page) < size:
            break
        offset += size
    return students


# ── Resolution ────────────────────────────────────────────────────────

async def resolve_students(
    db: AsyncSession,
    program: str | None,
    year: str | None,
    section: str | None,
    page_size: int | None = None,
) -> list[Student]:
    """Students expected for a (program, year, section) target, fallbacks included."""
    section_constrained = not is_all_value(section)
    exact_section = section.strip() if section_constrained else None

    students = await fetch_all(db, placement_query(program, year, exact_section), page_size)
    logger.debug(
        "Roster exact match %r/%r/%r: %d student(s)", program, year, section, len(students)
    )
    if students or not section_constrained:
        return students

    for variant in section_variants(section):
        students = await fetch_all(db, placement_query(program, year, variant), page_size)
        if students:
            logger.info("Roster matched section variant %r (exact) for %r", variant, section)
            return students
        students = await fetch_all(
            db, placement_query(program, year, variant, substring=True), page_size
        )
        if students:
            logger.info("Roster matched section variant %r (substring) for %r", variant, section)
            return students

    if not is_all_value(program) and not is_all_value(year):
        students = await fetch_all(db, placement_query(program, year), page_size)
        if students:
            logger.info("Roster fell back to program and year for section %r", section)
            return students

    if not is_all_value(program):
        students = await fetch_all(db, placement_query(program), page_size)
        if students:
            logger.info("Roster fell back to program only for section %r", section)

    return students


async def get_session_or_404(db: AsyncSession, session_id: int) -> Session:
    session = await db.get(Session, session_id)
    if session is None:
        raise NotFoundError(f"Session {session_id} not found")
    return session


async def get_session_roster(
    db: AsyncSession, session_id: int, page_size: int | None = None
) -> SessionRoster:
    """Students expected at a session, merged with their attendance and sorted by name."""
    session = await get_session_or_404(db, session_id)
    students = await resolve_students(db, session.program, session.year, session.section, page_size)

    result = await db.execute(select(Attendance).where(Attendance.session_id == session_id))
    by_student = {a.student_id: a for a in result.scalars().all()}

    entries = []
    for student in sorted(students, key=sort_key):
        record = by_student.get(student.id)
        entries.append(
            RosterEntry(
                student=student,
                status=record.status if record else None,
                time_in=record.time_in if record else None,
                time_out=record.time_out if record else None,
            )
        )
    return SessionRoster(session=session, entries=entries)


async def count_rosters(
    session_factory: async_sessionmaker[AsyncSession],
    sessions: list[Session],
    concurrency: int | None = None,
) -> dict[int, int]:
    """Expected attendee count per session id.

    Sessions sharing a (program, year, section) target are resolved once; the
    distinct targets are resolved concurrently, each on its own database session,
    with at most ``concurrency`` (setting ``roster_concurrency``) open at a time.
    Callers holding a request session should release its connection first.
    """
    targets: dict[tuple[str, str, str], list[int]] = {}
    for s in sessions:
        targets.setdefault((s.program, s.year, s.section), []).append(s.id)

    limit = asyncio.Semaphore(concurrency or settings.roster_concurrency)

    async def _count(target: tuple[str, str, str]) -> int:
        async with limit:
            async with session_factory() as db:
                return len(await resolve_students(db, *target))

    keys = list(targets)
    counts = await asyncio.gather(*(_count(key) for key in keys))

    per_session: dict[int, int] = {}
    for key, count in zip(keys, counts):
        for session_id in targets[key]:
            per_session[session_id] = count
    return per_session


# ── Student directory filter ─────────────────────────────────────────

_SECTION_CODE = re.compile(r"\d+[A-Za-z]*")


def _section_matches(student_section: str | None, wanted: str) -> bool:
    if not student_section:
        return False
    have = student_section.strip().upper()
    if have == wanted:
        return True
    if re.sub(r"\s+", "", have) == re.sub(r"\s+", "", wanted):
        return True
    code = _SECTION_CODE.search(wanted)
    return bool(code and code.group(0) in have)


async def filter_students(
    db: AsyncSession,
    program: str | None = None,
    year: str | None = None,
    section: str | None = None,
    page_size: int | None = None,
) -> list[Student]:
    """Student list filter: loose section matching, program/year kept when no section matches."""
    stmt = select(Student)
    if program and program.strip() != "All Programs":
        stmt = stmt.where(Student.program == program.strip())
    if year and year.strip() != "All Years":
        stmt = stmt.where(Student.year == year.strip())
    students = await fetch_all(db, stmt, page_size)

    if not section or section.strip() == "All Sections" or not students:
        return sorted(students, key=sort_key)

    wanted = section.strip().upper()
    matched = [s for s in students if _section_matches(s.section, wanted)]
    if not matched:
        logger.info("No student matched section %r; keeping program/year matches", section)
        return sorted(students, key=sort_key)
    return sorted(matched, key=sort_key)
