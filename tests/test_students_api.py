from conftest import add_students


async def _seed(db):
    return await add_students(db, [
        ("2025-001", "Santos", "Ana", "BSIT", "1st", "BSIT 1A"),
        ("2025-002", "Reyes", "Ben", "BSIT", "1st", "BSIT 1B"),
        ("2025-003", "Aquino", "Carl", "BSCS", "2nd", "BSCS 2A"),
    ])


async def test_list_filter_search_and_paging(client, db, admin_headers):
    await _seed(db)

    resp = await client.get("/api/v1/students", params={"program": "BSIT", "section": "1b"}, headers=admin_headers)
    assert [s["student_id"] for s in resp.json()["students"]] == ["2025-002"]

    resp = await client.get("/api/v1/students", params={"search": "aqu"}, headers=admin_headers)
    assert [s["student_id"] for s in resp.json()["students"]] == ["2025-003"]

    resp = await client.get("/api/v1/students", params={"page": 2, "page_size": 2}, headers=admin_headers)
    body = resp.json()
    assert body["total"] == 3
    assert [s["surname"] for s in body["students"]] == ["Santos"]


async def test_filter_options(client, db, admin_headers):
    await _seed(db)
    resp = await client.get("/api/v1/students/options", headers=admin_headers)
    assert resp.json() == {
        "programs": ["BSCS", "BSIT"],
        "years": ["1st", "2nd"],
        "sections": ["BSCS 2A", "BSIT 1A", "BSIT 1B"],
    }


async def test_create_update_delete(client, admin_headers):
    payload = {
        "student_id": "2025-010",
        "surname": "Dela Cruz",
        "firstname": "Juan",
        "program": "BSIT",
        "year": "1st",
        "section": "BSIT 1A",
    }
    resp = await client.post("/api/v1/students", json=payload, headers=admin_headers)
    assert resp.status_code == 201
    student = resp.json()
    assert student["full_name"] == "Juan Dela Cruz"

    resp = await client.post("/api/v1/students", json=payload, headers=admin_headers)
    assert resp.status_code == 400

    resp = await client.patch(
        f"/api/v1/students/{student['id']}", json={"section": "BSIT 1C"}, headers=admin_headers
    )
    assert resp.json()["section"] == "BSIT 1C"

    assert (await client.delete(f"/api/v1/students/{student['id']}", headers=admin_headers)).status_code == 204
    assert (await client.get(f"/api/v1/students/{student['id']}", headers=admin_headers)).status_code == 404


async def test_import_endpoint(client, admin_headers):
    csv = b"student_id,firstname,surname,program,year,section\n2025-200,Ana,Lim,BSIT,1st,BSIT 1A\n2025-201,,Go,BSIT,1st,BSIT 1A\n"
    resp = await client.post(
        "/api/v1/students/import",
        files={"file": ("students.csv", csv, "text/csv")},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["summary"]["inserted"] == 1
    assert body["errors"][0]["row"] == 3

    resp = await client.post(
        "/api/v1/students/import",
        files={"file": ("students.txt", b"x", "text/plain")},
        headers=admin_headers,
    )
    assert resp.status_code == 400


async def test_import_template_download(client, admin_headers):
    resp = await client.get("/api/v1/students/import/template", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.content[:2] == b"PK"
