from contextlib import asynccontextmanager
from datetime import date

import pytest
from pydantic import ValidationError

from app.core.config import Settings, settings
from app.core.exceptions import NotFoundError
from app.models import AttendanceStatus, Session
from app.services.attendance_service import mark_attendance
from app.services.roster_service import (
    count_rosters,
    filter_students,
    get_session_roster,
    is_all_value,
    normalize_year,
    resolve_students,
    section_variants,
)
from conftest import add_session, add_students

STUDENTS = [
    ("2025-001", "Santos", "Ana", "Computer Science", "1st", "A"),
    ("2025-002", "reyes", "Ben", "Computer Science", "1st", "A"),
    ("2025-003", "Aquino", "Carl", "Computer Science", "1st", "B"),
    ("2025-004", "Bautista", "Dina", "Computer Science", "2nd", "A"),
    ("2025-005", "Cruz", "Eli", "BPED", "1st", "BPED 1D"),
    ("2025-006", "Diaz", "Fe", "BSIT", "1st", "BSIT 1A"),
]


@pytest.fixture
async def students(db):
    return await add_students(db, STUDENTS)


def _ids(result):
    return sorted(s.student_id for s in result)


# ── Pure helpers ──────────────────────────────────────────────────────

@pytest.mark.parametrize("value", [None, "", "   ", "All Programs", "all year levels", "ALL SECTIONS", "Overall"])
def test_is_all_value_true(value):
    assert is_all_value(value)


@pytest.mark.parametrize("value", ["BSIT", "1st Year", "A", "BPED 1D"])
def test_is_all_value_false(value):
    assert not is_all_value(value)


def test_normalize_year_strips_suffix():
    assert normalize_year("1st Year") == "1st"
    assert normalize_year(" 2nd ") == "2nd"
    assert normalize_year("Grade 11") == "Grade 11"


def test_section_variants_order_and_dedup():
    assert section_variants(" bped  1d ") == [
        " bped  1d ",
        "bped  1d",
        "bped 1d",
        "BPED  1D",
        "bped1d",
        "1d",
    ]


def test_section_variants_trailing_token():
    assert section_variants("BPED 1D")[-1] == "1D"


# ── Resolution ────────────────────────────────────────────────────────

async def test_all_sentinels_return_every_student(db, students):
    result = await resolve_students(db, "All Programs", "All Year Levels", "All Sections")
    assert _ids(result) == _ids(students)


async def test_unconstrained_program_and_section_ignore_them(db, students):
    result = await resolve_students(db, "All Programs", "1st Year", "All Sections")
    assert _ids(result) == ["2025-001", "2025-002", "2025-003", "2025-005", "2025-006"]


async def test_year_suffix_matches_plain_year(db, students):
    result = await resolve_students(db, "Computer Science", "1st Year", "A")
    assert _ids(result) == ["2025-001", "2025-002"]


async def test_section_variant_substring_match(db, students):
    # exact "1D" misses; the substring form finds "BPED 1D"
    result = await resolve_students(db, "BPED", "1st Year", "1D")
    assert _ids(result) == ["2025-005"]


async def test_section_variant_case_insensitive_match(db, students):
    result = await resolve_students(db, "BSIT", "1st Year", "  bsit 1a ")
    assert _ids(result) == ["2025-006"]


async def test_falls_back_to_program_and_year(db, students):
    result = await resolve_students(db, "Computer Science", "1st Year", "Z9")
    assert _ids(result) == ["2025-001", "2025-002", "2025-003"]


async def test_falls_back_to_program_only(db, students):
    result = await resolve_students(db, "Computer Science", "4th Year", "Z9")
    assert _ids(result) == ["2025-001", "2025-002", "2025-003", "2025-004"]


async def test_no_fallback_without_section_constraint(db, students):
    result = await resolve_students(db, "Computer Science", "4th Year", "All Sections")
    assert result == []


async def test_paging_returns_every_row(db, students):
    result = await resolve_students(db, "All Programs", "All Year Levels", "All Sections", page_size=2)
    assert len(result) == len(STUDENTS)
    assert len({s.id for s in result}) == len(STUDENTS)


async def test_non_positive_page_size_is_rejected(db, students, monkeypatch):
    with pytest.raises(ValueError):
        await resolve_students(db, "All Programs", "All Year Levels", "All Sections", page_size=0)

    monkeypatch.setattr(settings, "roster_page_size", -5)
    with pytest.raises(ValueError):
        await resolve_students(db, "All Programs", "All Year Levels", "All Sections")


def test_page_size_setting_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(roster_page_size=0)


async def test_like_wildcards_are_literal(db, students):
    result = await resolve_students(db, "All Programs", "All Year Levels", "%")
    assert result == []


# ── Session roster ────────────────────────────────────────────────────

async def test_roster_is_sorted_and_merged_with_attendance(db, students):
    session = await add_session(
        db, program="Computer Science", year="1st Year", section="All Sections"
    )
    await mark_attendance(db, session.id, students[1].id, AttendanceStatus.LATE)
    await db.commit()

    roster = await get_session_roster(db, session.id)

    assert roster.count == 3
    assert [e.student.surname for e in roster.entries] == ["Aquino", "reyes", "Santos"]
    statuses = {e.student.student_id: e.status for e in roster.entries}
    assert statuses == {"2025-001": None, "2025-002": "late", "2025-003": None}


async def test_roster_for_missing_session(db):
    with pytest.raises(NotFoundError):
        await get_session_roster(db, 999)


async def test_count_rosters_groups_targets(db, session_factory, students):
    everyone = await add_session(db, title="Assembly")
    everyone_again = await add_session(db, title="Assembly 2", date=date(2025, 8, 2))
    cs_a = await add_session(db, title="Lab", program="Computer Science", year="1st Year", section="A")

    counts = await count_rosters(session_factory, [everyone, everyone_again, cs_a])

    assert counts == {everyone.id: 6, everyone_again.id: 6, cs_a.id: 2}


async def test_count_rosters_empty(session_factory):
    assert await count_rosters(session_factory, []) == {}


async def test_count_rosters_limits_open_sessions(db, session_factory, students):
    sessions = [
        await add_session(db, title=f"Lab {i}", program="Computer Science", section=section)
        for i, section in enumerate(["A", "B", "C", "D", "E", "F"])
    ]
    open_now = 0
    peak = 0

    @asynccontextmanager
    async def tracking_factory():
        nonlocal open_now, peak
        open_now += 1
        peak = max(peak, open_now)
        try:
            async with session_factory() as session:
                yield session
        finally:
            open_now -= 1

    counts = await count_rosters(tracking_factory, sessions, concurrency=2)

    assert len(counts) == 6
    assert peak == 2


# ── Student directory filter ─────────────────────────────────────────

async def test_filter_students_section_code(db, students):
    result = await filter_students(db, "BSIT", None, "1a")
    assert _ids(result) == ["2025-006"]


async def test_filter_students_keeps_program_matches_when_section_misses(db, students):
    result = await filter_students(db, "Computer Science", "1st", "Z")
    assert _ids(result) == ["2025-001", "2025-002", "2025-003"]


async def test_filter_students_all_values(db, students):
    result = await filter_students(db, "All Programs", "All Years", "All Sections")
    assert len(result) == len(STUDENTS)
