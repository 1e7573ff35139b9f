"""Tests for admin management, passwords and sessions"""
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from admin_console.models.admin_access import AdminAccess
from admin_console.models.admin_audit_log import AdminAuditLog
from admin_console.utils.permissions import AdminRole, AdminStatus, default_permissions_for


def test_list_admins(client: TestClient, super_headers: dict, viewer: AdminAccess):
    response = client.get("/admin/users", headers=super_headers)
    assert response.status_code == 200

    emails = {row["user"]["email"] for row in response.json()["data"]}
    assert emails == {"root@example.com", "viewer@example.com"}


def test_list_admins_requires_admin_management_read(client: TestClient, viewer_headers: dict):
    response = client.get("/admin/users", headers=viewer_headers)
    assert response.status_code == 403
    assert response.json()["message"] == "Not authorized"


def test_update_permissions_is_audited_with_before_and_after(
    client: TestClient, db: Session, super_admin: AdminAccess, super_headers: dict, make_admin
):
    """Super admin edits a content admin's grid; the audit entry records both grids"""
    content_admin = make_admin("content@example.com", AdminRole.CONTENT_ADMIN)
    before = default_permissions_for(AdminRole.CONTENT_ADMIN)
    after = {**before, "communities": ["read", "write"]}

    response = client.put(
        f"/admin/users/{content_admin.id}/permissions",
        json={"permissions": after},
        headers=super_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["permissions"]["communities"] == ["read", "write"]
    # Role is independent of the grid
    assert response.json()["data"]["admin_role"] == "CONTENT_ADMIN"

    entry = db.query(AdminAuditLog).filter(AdminAuditLog.resource_id == content_admin.id).one()
    assert entry.action == "UPDATE"
    assert entry.module == "admin_management"
    assert entry.admin_id == super_admin.id
    assert entry.changes == {"before": before, "after": after}


def test_update_permissions_rejects_unknown_level(client: TestClient, super_headers: dict, viewer: AdminAccess):
    response = client.put(
        f"/admin/users/{viewer.id}/permissions",
        json={"permissions": {"users": ["superuser"]}},
        headers=super_headers,
    )
    assert response.status_code == 422


def test_update_permissions_requires_super_admin(client: TestClient, make_admin, auth_headers):
    """An admin holding admin_management:full is still not a super admin"""
    manager = make_admin(
        "manager@example.com",
        AdminRole.MODULE_MANAGER,
        permissions={"admin_management": ["full"]},
    )
    target = make_admin("target@example.com", AdminRole.VIEWER)

    response = client.put(
        f"/admin/users/{target.id}/permissions",
        json={"permissions": {"users": ["full"]}},
        headers=auth_headers(manager),
    )
    assert response.status_code == 403
    assert response.json()["message"] == "Only super admins can perform this action"


def test_update_unknown_admin(client: TestClient, super_headers: dict):
    response = client.patch("/admin/users/missing/status", json={"status": "INACTIVE"}, headers=super_headers)
    assert response.status_code == 404


def test_suspend_admin_revokes_access(
    client: TestClient, db: Session, super_headers: dict, viewer: AdminAccess, viewer_headers: dict
):
    assert client.get("/admin/me", headers=viewer_headers).status_code == 200

    response = client.patch(f"/admin/users/{viewer.id}/status", json={"status": "SUSPENDED"}, headers=super_headers)
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "SUSPENDED"

    entry = db.query(AdminAuditLog).filter(AdminAuditLog.resource_id == viewer.id).one()
    assert entry.changes == {"before": {"status": "ACTIVE"}, "after": {"status": "SUSPENDED"}}

    me = client.get("/admin/me", headers=viewer_headers)
    assert me.status_code == 403
    assert me.json()["message"] == "Not authorized"


def test_cannot_deactivate_self(client: TestClient, super_admin: AdminAccess, super_headers: dict):
    response = client.patch(
        f"/admin/users/{super_admin.id}/status", json={"status": "INACTIVE"}, headers=super_headers
    )
    assert response.status_code == 422


def test_invalid_status_rejected(client: TestClient, super_headers: dict, viewer: AdminAccess):
    response = client.patch(f"/admin/users/{viewer.id}/status", json={"status": "DELETED"}, headers=super_headers)
    assert response.status_code == 422


# ---------------------------------------------------------------------------
# Passwords and sessions
# ---------------------------------------------------------------------------

def test_sign_in(client: TestClient, super_admin: AdminAccess):
    response = client.post("/auth/token", json={"email": "ROOT@example.com", "password": "password123"})
    assert response.status_code == 200

    data = response.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["expires_in"] > 0

    me = client.get("/admin/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200


def test_sign_in_wrong_password(client: TestClient, super_admin: AdminAccess):
    response = client.post("/auth/token", json={"email": "root@example.com", "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


def test_change_password(client: TestClient, db: Session, super_admin: AdminAccess, super_headers: dict):
    response = client.post(
        "/auth/change-password",
        json={"current_password": "password123", "new_password": "new-password-456"},
        headers=super_headers,
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "data": {}}

    old = client.post("/auth/token", json={"email": "root@example.com", "password": "password123"})
    new = client.post("/auth/token", json={"email": "root@example.com", "password": "new-password-456"})
    assert old.status_code == 401
    assert new.status_code == 200

    entry = db.query(AdminAuditLog).filter(AdminAuditLog.resource_type == "User").one()
    assert entry.description == "Changed password"


def test_change_password_wrong_current(client: TestClient, super_headers: dict):
    response = client.post(
        "/auth/change-password",
        json={"current_password": "not-it", "new_password": "new-password-456"},
        headers=super_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Current password is incorrect"


def test_change_password_too_short(client: TestClient, super_headers: dict):
    response = client.post(
        "/auth/change-password",
        json={"current_password": "password123", "new_password": "short"},
        headers=super_headers,
    )
    assert response.status_code == 422


def test_change_password_requires_session(client: TestClient):
    response = client.post(
        "/auth/change-password",
        json={"current_password": "password123", "new_password": "new-password-456"},
    )
    assert response.status_code == 401


def test_set_password_after_code_sign_in(client: TestClient, super_headers: dict):
    invitation = client.post(
        "/admin/invitations",
        json={"email": "fresh@example.com", "admin_role": "VIEWER"},
        headers=super_headers,
    ).json()["data"]
    client.post("/auth/verify-code", json={"email": "fresh@example.com", "code": invitation["code"]})

    token = client.post(
        "/auth/token", json={"email": "fresh@example.com", "password": invitation["code"]}
    ).json()["data"]["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    response = client.post("/auth/set-password", json={"new_password": "chosen-password"}, headers=headers)
    assert response.status_code == 200

    code_login = client.post("/auth/token", json={"email": "fresh@example.com", "password": invitation["code"]})
    assert code_login.status_code == 401
    new_login = client.post("/auth/token", json={"email": "fresh@example.com", "password": "chosen-password"})
    assert new_login.status_code == 200


def test_logout_revokes_session(client: TestClient, super_headers: dict):
    response = client.post("/auth/logout", headers=super_headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"revoked": True}

    me = client.get("/admin/me", headers=super_headers)
    assert me.status_code == 401
    assert me.json()["error"] == "not_authenticated"


def test_jwks(client: TestClient):
    response = client.get("/.well-known/jwks.json")
    assert response.status_code == 200
    key = response.json()["keys"][0]
    assert key["kty"] == "RSA"
    assert key["alg"] == "RS256"


def test_inactive_admin_cannot_sign_in_to_admin_routes(client: TestClient, make_admin, auth_headers):
    inactive = make_admin("gone@example.com", AdminRole.SUPER_ADMIN, status=AdminStatus.INACTIVE)
    response = client.get("/admin/users", headers=auth_headers(inactive))
    assert response.status_code == 403
