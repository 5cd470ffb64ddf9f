import json

from conftest import add_students

PNG = b"\x89PNG\r\n\x1a\nfake-image"


async def _upload(client, headers, student_id, **fields):
    data = {"student_id": str(student_id)}
    data.update({k: str(v) for k, v in fields.items()})
    return await client.post(
        "/api/v1/signatures",
        data=data,
        files={"file": ("sig.png", PNG, "image/png")},
        headers=headers,
    )


async def test_upload_and_list(client, db, admin_headers, storage):
    [student] = await add_students(db, [("2025-001", "Santos", "Ana", "BSIT", "1st", "BSIT 1A")])

    resp = await _upload(
        client, admin_headers, student.id,
        quality_score=0.4, features=json.dumps({"vector": [1, 0]}),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["url"].startswith(f"http://testserver/storage/signatures/signatures/{student.id}/{student.id}-")
    assert storage.exists("signatures", body["signature"]["storage_path"])

    best = (await _upload(client, admin_headers, student.id, quality_score=0.9)).json()["signature"]

    listing = (await client.get(f"/api/v1/signatures/students/{student.id}", headers=admin_headers)).json()
    assert [s["id"] for s in listing] == [best["id"], body["signature"]["id"]]

    primary = (await client.get(
        f"/api/v1/signatures/students/{student.id}/primary", headers=admin_headers
    )).json()
    assert primary["id"] == best["id"]

    overview = (await client.get("/api/v1/signatures/students", headers=admin_headers)).json()
    assert overview[0]["school_id"] == "2025-001"
    assert overview[0]["signature_count"] == 2


async def test_upload_rejects_bad_input(client, db, admin_headers):
    [student] = await add_students(db, [("2025-001", "Santos", "Ana", "BSIT", "1st", "BSIT 1A")])

    resp = await client.post(
        "/api/v1/signatures",
        data={"student_id": str(student.id)},
        files={"file": ("sig.gif", b"GIF89a", "image/gif")},
        headers=admin_headers,
    )
    assert resp.status_code == 400

    resp = await _upload(client, admin_headers, student.id, features="{not json")
    assert resp.status_code == 422

    resp = await _upload(client, admin_headers, 999)
    assert resp.status_code == 404


async def test_list_features_leave_no_file(client, db, admin_headers, storage):
    [student] = await add_students(db, [("2025-001", "Santos", "Ana", "BSIT", "1st", "BSIT 1A")])

    resp = await _upload(client, admin_headers, student.id, features="[0.1, 0.2]")

    assert resp.status_code == 422
    assert storage.list_objects("signatures") == []
    listing = await client.get(f"/api/v1/signatures/students/{student.id}", headers=admin_headers)
    assert listing.json() == []


async def test_compare_and_delete(client, db, admin_headers, storage):
    [student] = await add_students(db, [("2025-001", "Santos", "Ana", "BSIT", "1st", "BSIT 1A")])
    a = (await _upload(client, admin_headers, student.id, features=json.dumps({"vector": [1, 0]}))).json()
    b = (await _upload(client, admin_headers, student.id, features=json.dumps({"vector": [1, 0]}))).json()

    resp = await client.get(
        "/api/v1/signatures/compare",
        params={"sig1_id": a["signature"]["id"], "sig2_id": b["signature"]["id"]},
        headers=admin_headers,
    )
    assert resp.json()["score"] == 1.0

    sig_id = a["signature"]["id"]
    assert (await client.delete(f"/api/v1/signatures/{sig_id}", headers=admin_headers)).status_code == 204
    assert not storage.exists("signatures", a["signature"]["storage_path"])
    assert (await client.delete(f"/api/v1/signatures/{sig_id}", headers=admin_headers)).status_code == 404


async def test_train_and_health(client, db, admin_headers):
    [student] = await add_students(db, [("2025-001", "Santos", "Ana", "BSIT", "1st", "BSIT 1A")])

    resp = await client.post(f"/api/v1/signatures/train/{student.id}", headers=admin_headers)
    assert resp.json()["profile"]["status"] == "training"

    resp = await client.get("/api/v1/signatures/service/health", headers=admin_headers)
    assert resp.json()["status"] == "healthy"
