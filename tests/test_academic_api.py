from app.models import UserRole
from conftest import auth_headers, create_user


async def _create_year(client, headers, name, start, end):
    resp = await client.post(
        "/api/v1/academic-years",
        json={"name": name, "start_date": start, "end_date": end},
        headers=headers,
    )
    assert resp.status_code == 201
    return resp.json()


async def test_only_one_year_is_active(client, admin_headers):
    y1 = await _create_year(client, admin_headers, "2024-2025", "2024-08-01", "2025-05-31")
    y2 = await _create_year(client, admin_headers, "2025-2026", "2025-08-01", "2026-05-31")
    assert y1["is_active"] is False

    for year in (y1, y2, y1):
        resp = await client.patch(f"/api/v1/academic-years/{year['id']}/activate", headers=admin_headers)
        assert resp.json()["is_active"] is True
        listing = (await client.get("/api/v1/academic-years", headers=admin_headers)).json()
        active = [y["id"] for y in listing["academic_years"] if y["is_active"]]
        assert active == [year["id"]]


async def test_semester_activation_is_per_year(client, admin_headers):
    y1 = await _create_year(client, admin_headers, "2024-2025", "2024-08-01", "2025-05-31")
    y2 = await _create_year(client, admin_headers, "2025-2026", "2025-08-01", "2026-05-31")

    async def add(year, name, start, end):
        resp = await client.post(
            f"/api/v1/academic-years/{year['id']}/semesters",
            json={"name": name, "start_date": start, "end_date": end},
            headers=admin_headers,
        )
        return resp.json()

    s1 = await add(y1, "First", "2024-08-01", "2024-12-20")
    s2 = await add(y1, "Second", "2025-01-06", "2025-05-31")
    other = await add(y2, "First", "2025-08-01", "2025-12-20")

    for sid in (other["id"], s1["id"], s2["id"]):
        await client.patch(f"/api/v1/academic-years/semesters/{sid}/activate", headers=admin_headers)

    listing = (await client.get("/api/v1/academic-years", headers=admin_headers)).json()
    active = {
        s["id"] for y in listing["academic_years"] for s in y["semesters"] if s["is_active"]
    }
    assert active == {s2["id"], other["id"]}


async def test_validation_and_duplicates(client, admin_headers):
    resp = await client.post(
        "/api/v1/academic-years",
        json={"name": "Bad", "start_date": "2025-05-31", "end_date": "2024-08-01"},
        headers=admin_headers,
    )
    assert resp.status_code == 422

    await _create_year(client, admin_headers, "2024-2025", "2024-08-01", "2025-05-31")
    resp = await client.post(
        "/api/v1/academic-years",
        json={"name": "2024-2025", "start_date": "2024-08-01", "end_date": "2025-05-31"},
        headers=admin_headers,
    )
    assert resp.status_code == 400


async def test_delete_year_removes_semesters(client, admin_headers):
    year = await _create_year(client, admin_headers, "2024-2025", "2024-08-01", "2025-05-31")
    await client.post(
        f"/api/v1/academic-years/{year['id']}/semesters",
        json={"name": "First", "start_date": "2024-08-01", "end_date": "2024-12-20"},
        headers=admin_headers,
    )

    assert (await client.delete(f"/api/v1/academic-years/{year['id']}", headers=admin_headers)).status_code == 204
    listing = (await client.get("/api/v1/academic-years", headers=admin_headers)).json()
    assert listing["academic_years"] == []


async def test_staff_cannot_change_calendar(client, db):
    staff = await create_user(db, email="staff@school.edu", role=UserRole.STAFF)
    resp = await client.post(
        "/api/v1/academic-years",
        json={"name": "2024-2025", "start_date": "2024-08-01", "end_date": "2025-05-31"},
        headers=auth_headers(staff),
    )
    assert resp.status_code == 403
