"""Seed: fictitious students, a few sessions and some attendance for demos.

Students already present (same student_id) are left untouched.
"""
import asyncio
import random
import sys
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import select
from app.core.database import AsyncSessionLocal, init_db
from app.models import AttendanceStatus, Session, SessionType, Student
from app.services.attendance_service import mark_attendance
from app.services.roster_service import resolve_students

random.seed(42)

FIRSTNAMES = [
    "Juan", "Maria", "Jose", "Ana", "Mark", "Angela", "Paolo", "Kristine",
    "Miguel", "Andrea", "Carlo", "Bea", "Rafael", "Nicole", "Enzo", "Patricia",
]
SURNAMES = [
    "Dela Cruz", "Santos", "Reyes", "Garcia", "Mendoza", "Bautista", "Villanueva",
    "Ramos", "Aquino", "Castillo", "Navarro", "Torres", "Flores", "Rivera",
]
PLACEMENTS = [
    ("BSIT", "1st", "BSIT 1A"),
    ("BSIT", "1st", "BSIT 1B"),
    ("BSIT", "2nd", "BSIT 2A"),
    ("BSCS", "1st", "BSCS 1A"),
    ("BPED", "1st", "BPED 1D"),
]
STUDENTS_PER_SECTION = 10

# Statuses weighted towards present
STATUSES = [AttendanceStatus.PRESENT] * 6 + [
    AttendanceStatus.LATE, AttendanceStatus.ABSENT, AttendanceStatus.EXCUSED,
]


def demo_students() -> list[dict]:
    rows = []
    n = 1
    for program, year, section in PLACEMENTS:
        for _ in range(STUDENTS_PER_SECTION):
            rows.append({
                "student_id": f"2025-{n:04d}",
                "firstname": random.choice(FIRSTNAMES),
                "surname": random.choice(SURNAMES),
                "middle_initial": random.choice("ABCDEFGMRS"),
                "program": program,
                "year": year,
                "section": section,
            })
            n += 1
    return rows


def demo_sessions() -> list[dict]:
    today = date.today()
    return [
        {"title": "General Assembly", "type": SessionType.EVENT, "date": today - timedelta(days=7),
         "time_in": time(8, 0), "time_out": time(10, 0)},
        {"title": "Programming 1", "type": SessionType.CLASS, "date": today - timedelta(days=2),
         "time_in": time(9, 0), "time_out": time(11, 0),
         "program": "BSIT", "year": "1st Year", "section": "BSIT 1A"},
        {"title": "PE Orientation", "type": SessionType.CLASS, "date": today - timedelta(days=1),
         "time_in": time(13, 0), "time_out": time(14, 30),
         "program": "BPED", "year": "1st Year", "section": "1D"},
        {"title": "Foundation Day", "type": SessionType.EVENT, "date": today + timedelta(days=5),
         "time_in": time(7, 30), "time_out": time(17, 0)},
    ]


async def seed():
    await init_db()
    async with AsyncSessionLocal() as db:
        existing = set((await db.execute(select(Student.student_id))).scalars().all())
        created = 0
        for row in demo_students():
            if row["student_id"] in existing:
                continue
            db.add(Student(**row))
            created += 1
        await db.flush()
        print(f"  + {created} student(s) created")

        today = date.today()
        for data in demo_sessions():
            session = Session(**data)
            db.add(session)
            await db.flush()
            print(f"  + Session '{session.title}' on {session.date} (id={session.id})")
            if session.date >= today:
                continue
            students = await resolve_students(db, session.program, session.year, session.section)
            marked_at = datetime.combine(session.date, session.time_in or time(8, 0), tzinfo=timezone.utc)
            for student in students:
                await mark_attendance(db, session.id, student.id, random.choice(STATUSES), time_in=marked_at)
            print(f"    {len(students)} attendance record(s)")

        await db.commit()
    print("Done.")


if __name__ == "__main__":
    asyncio.run(seed())
