from app.models import UserRole, UserStatus
from app.services import account_service
from conftest import auth_headers, create_user

SIGNUP = {
    "email": "Officer@School.edu",
    "password": "secret123",
    "first_name": "Olive",
    "last_name": "Officer",
}


async def _login(client, email, password):
    return await client.post("/api/v1/auth/login", json={"email": email, "password": password})


async def test_signup_waits_for_approval(client, admin_headers):
    resp = await client.post("/api/v1/auth/signup", json=SIGNUP)
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == UserStatus.PENDING
    assert body["role"] == UserRole.SSG_OFFICER
    assert body["role_label"] == "SSG Officer"
    assert body["email"] == "officer@school.edu"

    resp = await _login(client, "officer@school.edu", "secret123")
    assert resp.status_code == 403

    resp = await client.post(f"/api/v1/users/{body['id']}/approve", headers=admin_headers)
    assert resp.json() == {"success": True, "message": "User approved successfully"}

    resp = await _login(client, "officer@school.edu", "secret123")
    assert resp.status_code == 200
    token = resp.json()["access_token"]

    me = await client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["full_name"] == "Olive Officer"


async def test_duplicate_signup(client):
    assert (await client.post("/api/v1/auth/signup", json=SIGNUP)).status_code == 201
    resp = await client.post("/api/v1/auth/signup", json=SIGNUP)
    assert resp.status_code == 400
    assert "already exists" in resp.json()["detail"]


async def test_wrong_password(client, admin):
    resp = await _login(client, admin.email, "nope")
    assert resp.status_code == 401


async def test_protected_route_requires_token(client):
    assert (await client.get("/api/v1/me")).status_code == 401
    resp = await client.get("/api/v1/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


async def test_approve_only_pending(db, admin):
    pending = await create_user(db, email="p@school.edu", role=UserRole.STAFF, status=UserStatus.PENDING)

    first = await account_service.reject_user(db, pending.id, admin.id)
    second = await account_service.approve_user(db, pending.id, admin.id)
    missing = await account_service.approve_user(db, 9999, admin.id)
    await db.commit()
    await db.refresh(pending)

    assert first == {"success": True, "message": "User rejected successfully"}
    assert second == {"success": False, "message": "User not found or already processed"}
    assert missing["success"] is False
    assert pending.status == UserStatus.INACTIVE
    assert pending.rejected_by == admin.id
    assert pending.approved_at is None


async def test_non_admin_cannot_manage_users(client, db):
    staff = await create_user(db, email="s@school.edu", role=UserRole.STAFF)
    resp = await client.get("/api/v1/users", headers=auth_headers(staff))
    assert resp.status_code == 403


async def test_admin_updates_role_and_status(client, db, admin_headers):
    staff = await create_user(db, email="s@school.edu", role=UserRole.STAFF)
    resp = await client.patch(
        f"/api/v1/users/{staff.id}",
        json={"role": "ssg_officer", "status": "suspended"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "suspended"

    listed = await client.get("/api/v1/users", params={"status": "suspended"}, headers=admin_headers)
    assert [u["email"] for u in listed.json()["users"]] == ["s@school.edu"]

    # suspended accounts lose access
    assert (await client.get("/api/v1/me", headers=auth_headers(staff))).status_code == 403


async def test_change_password(client, admin, admin_headers):
    resp = await client.post(
        "/api/v1/me/change-password",
        json={"current_password": "wrong", "new_password": "another1"},
        headers=admin_headers,
    )
    assert resp.status_code == 400

    resp = await client.post(
        "/api/v1/me/change-password",
        json={"current_password": "secret123", "new_password": "another1"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert (await _login(client, admin.email, "another1")).status_code == 200
