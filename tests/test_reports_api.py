from datetime import date

from app.models import AttendanceStatus
from app.services.attendance_service import mark_attendance
from app.services.report_service import attendance_rate
from conftest import add_session, add_students


def test_attendance_rate():
    assert attendance_rate(3, 1, 8) == 50.0
    assert attendance_rate(0, 0, 0) == 0.0


async def _seed(db):
    students = await add_students(db, [
        ("2025-001", "Santos", "Ana", "BSIT", "1st", "BSIT 1A"),
        ("2025-002", "Reyes", "Ben", "BSIT", "1st", "BSIT 1A"),
        ("2025-003", "Cruz", "Eli", "BSIT", "1st", "BSIT 1A"),
        ("2025-004", "Lim", "Dan", "BSIT", "1st", "BSIT 1A"),
    ])
    session = await add_session(db, title="Orientation", date=date(2025, 8, 4))
    await mark_attendance(db, session.id, students[0].id, AttendanceStatus.PRESENT)
    await mark_attendance(db, session.id, students[1].id, AttendanceStatus.LATE)
    await mark_attendance(db, session.id, students[2].id, AttendanceStatus.ABSENT)
    await db.commit()
    return students, session


async def test_session_summaries(client, db, admin_headers):
    _, session = await _seed(db)
    await add_session(db, title="Outside range", date=date(2025, 10, 1))

    resp = await client.get(
        "/api/v1/reports/sessions",
        params={"start_date": "2025-08-01", "end_date": "2025-08-31"},
        headers=admin_headers,
    )

    body = resp.json()
    assert body["total_sessions"] == 1
    [summary] = body["sessions"]
    assert summary["session_id"] == session.id
    assert summary["total_expected"] == 4
    assert (summary["present"], summary["late"], summary["absent"], summary["excused"]) == (1, 1, 1, 0)
    assert summary["unmarked"] == 1
    assert summary["attendance_rate"] == 50.0


async def test_reversed_range_is_rejected(client, admin_headers):
    resp = await client.get(
        "/api/v1/reports/sessions",
        params={"start_date": "2025-09-01", "end_date": "2025-08-01"},
        headers=admin_headers,
    )
    assert resp.status_code == 422


async def test_session_pdf(client, db, admin_headers):
    _, session = await _seed(db)

    resp = await client.post(f"/api/v1/reports/sessions/{session.id}/pdf", headers=admin_headers)

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.content.startswith(b"%PDF")
    assert "Session_Orientation_2025-08-04.pdf" in resp.headers["content-disposition"]


async def test_attendance_summary_pdf(client, db, admin_headers):
    await _seed(db)

    resp = await client.post(
        "/api/v1/reports/attendance/pdf",
        json={"start_date": "2025-08-01", "end_date": "2025-08-31"},
        headers=admin_headers,
    )

    assert resp.status_code == 200
    assert resp.content.startswith(b"%PDF")


async def test_pdf_for_missing_session(client, admin_headers):
    resp = await client.post("/api/v1/reports/sessions/404/pdf", headers=admin_headers)
    assert resp.status_code == 404
