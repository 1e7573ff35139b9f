"""Tests for the access gate: sessions, admin status and permission checks"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from admin_console.errors import AuthenticationRequired, AuthorizationDenied
from admin_console.models.admin_access import AdminAccess
from admin_console.models.admin_audit_log import AdminAuditLog
from admin_console.models.admin_invitation import AdminInvitation
from admin_console.models.user import User
from admin_console.services.access import check_access, require_access
from admin_console.utils.jwt_utils import create_session_token
from admin_console.utils.permissions import AdminRole, AdminStatus


def test_viewer_write_is_rejected_before_any_change(
    client: TestClient, db: Session, viewer: AdminAccess, viewer_headers: dict
):
    """A VIEWER attempting a privileged write is turned away and nothing is persisted"""
    response = client.post(
        "/admin/invitations",
        json={"email": "intruder@example.com", "admin_role": "SUPER_ADMIN"},
        headers=viewer_headers,
    )
    assert response.status_code == 403
    assert response.json()["success"] is False
    assert response.json()["error"] == "not_authorized"

    assert db.query(AdminInvitation).count() == 0
    assert db.query(AdminAuditLog).count() == 0


def test_unauthenticated_requests(client: TestClient):
    for method, path in [
        ("get", "/admin/me"),
        ("get", "/admin/users"),
        ("get", "/admin/invitations"),
        ("get", "/admin/audit-logs"),
        ("post", "/admin/invitations/expire"),
    ]:
        response = getattr(client, method)(path)
        assert response.status_code == 401, path
        assert response.json() == {
            "success": False,
            "error": "not_authenticated",
            "message": "Not authenticated",
        }


def test_invalid_token(client: TestClient):
    response = client.get("/admin/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired session"


def test_user_without_admin_record(client: TestClient, db: Session):
    user = User(email="plain@example.com", name="Plain")
    db.add(user)
    db.commit()

    response = client.get("/admin/me", headers={"Authorization": f"Bearer {create_session_token(user.id)}"})
    assert response.status_code == 403
    assert response.json()["message"] == "Not authorized"


@pytest.mark.parametrize("status", [AdminStatus.INACTIVE, AdminStatus.SUSPENDED])
def test_non_active_admins_are_denied(client: TestClient, make_admin, auth_headers, status):
    admin = make_admin(f"{status.value.lower()}@example.com", AdminRole.SUPER_ADMIN, status=status)
    response = client.get("/admin/me", headers=auth_headers(admin))
    assert response.status_code == 403
    assert response.json()["message"] == "Not authorized"


def test_access_endpoint(client: TestClient, viewer_headers: dict):
    granted = client.get("/admin/access", params={"module": "users", "level": "read"}, headers=viewer_headers)
    assert granted.status_code == 200
    assert granted.json()["data"] == {"authorized": True, "admin_role": "VIEWER", "error": None}

    denied = client.get("/admin/access", params={"module": "users", "level": "write"}, headers=viewer_headers)
    assert denied.status_code == 200
    assert denied.json()["data"]["authorized"] is False
    assert denied.json()["data"]["error"] == "Not authorized"


def test_access_endpoint_without_session(client: TestClient):
    response = client.get("/admin/access")
    assert response.status_code == 200
    assert response.json()["data"] == {"authorized": False, "admin_role": None, "error": "Not authenticated"}


def test_me_lists_accessible_modules(client: TestClient, viewer_headers: dict):
    response = client.get("/admin/me", headers=viewer_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["admin_role"] == "VIEWER"
    assert data["user"]["email"] == "viewer@example.com"
    assert "admin_management" not in data["accessible_modules"]
    assert "users" in data["accessible_modules"]


# ---------------------------------------------------------------------------
# Service level
# ---------------------------------------------------------------------------

def test_check_access_without_user(db: Session):
    check = check_access(db, None)
    assert check.authorized is False
    assert isinstance(check.error, AuthenticationRequired)


def test_check_access_with_module_and_level(db: Session, viewer: AdminAccess):
    assert check_access(db, viewer.user_id, "analytics", "read").authorized
    denied = check_access(db, viewer.user_id, "analytics", "write")
    assert not denied.authorized
    assert isinstance(denied.error, AuthorizationDenied)
    assert denied.admin_access is None


def test_require_access_raises(db: Session, viewer: AdminAccess):
    assert require_access(db, viewer.user_id).id == viewer.id
    with pytest.raises(AuthorizationDenied):
        require_access(db, viewer.user_id, "system", "read")
    with pytest.raises(AuthenticationRequired):
        require_access(db, "")
