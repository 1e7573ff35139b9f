"""Tests for the admin audit ledger"""
import logging

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from admin_console.models.admin_access import AdminAccess
from admin_console.models.admin_audit_log import AdminAuditLog
from admin_console.models.admin_invitation import AdminInvitation
from admin_console.services import audit as audit_service
from admin_console.services.audit import AuditAction, record_admin_action
from admin_console.utils import chain as chain_utils
from admin_console.utils.logger import JSONFormatter


def _write_entries(db: Session, admin: AdminAccess, count: int) -> None:
    for i in range(count):
        record_admin_action(
            db,
            admin_id=admin.id,
            action=AuditAction.UPDATE,
            module="users",
            resource_type="User",
            resource_id=f"user-{i}",
            description=f"Entry {i}",
        )
        db.commit()


def test_list_audit_logs_paginates_newest_first(client: TestClient, db: Session, super_admin: AdminAccess, super_headers: dict):
    _write_entries(db, super_admin, 5)

    response = client.get("/admin/audit-logs", params={"page": 1, "limit": 2}, headers=super_headers)
    assert response.status_code == 200

    data = response.json()["data"]
    assert data["total"] == 5
    assert data["pages"] == 3
    assert data["current_page"] == 1
    assert [log["description"] for log in data["logs"]] == ["Entry 4", "Entry 3"]
    assert data["logs"][0]["user"]["email"] == "root@example.com"

    last = client.get("/admin/audit-logs", params={"page": 3, "limit": 2}, headers=super_headers).json()["data"]
    assert [log["description"] for log in last["logs"]] == ["Entry 0"]


def test_audit_logs_limit_is_capped(client: TestClient, super_headers: dict):
    response = client.get("/admin/audit-logs", params={"limit": 1000}, headers=super_headers)
    assert response.status_code == 422


def test_viewer_cannot_read_audit_logs(client: TestClient, viewer_headers: dict):
    assert client.get("/admin/audit-logs", headers=viewer_headers).status_code == 403
    assert client.get("/admin/audit-logs/verify", headers=viewer_headers).status_code == 403


def test_chain_links_entries(db: Session, super_admin: AdminAccess):
    _write_entries(db, super_admin, 3)
    entries = db.query(AdminAuditLog).order_by(AdminAuditLog.id.asc()).all()

    assert entries[0].previous_hash == chain_utils.genesis_hash()
    assert entries[1].previous_hash == chain_utils.compute_hash(
        prev_entry_id=entries[0].log_id,
        prev_created_at=entries[0].created_at,
        current_entry_id=entries[1].log_id,
        current_action=entries[1].action,
        current_resource_id=entries[1].resource_id,
    )


def test_verify_chain(client: TestClient, db: Session, super_admin: AdminAccess, super_headers: dict):
    _write_entries(db, super_admin, 4)

    response = client.get("/admin/audit-logs/verify", headers=super_headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"valid": True, "total_entries": 4, "broken_at": None}

    # Tamper with the third entry
    tampered = db.query(AdminAuditLog).order_by(AdminAuditLog.id.asc()).offset(2).first()
    tampered.action = "DELETE"
    db.commit()

    response = client.get("/admin/audit-logs/verify", headers=super_headers)
    assert response.json()["data"] == {"valid": False, "total_entries": 4, "broken_at": tampered.log_id}


def test_empty_ledger_is_valid(db: Session):
    result = audit_service.verify_audit_chain(db)
    assert result.valid is True
    assert result.total_entries == 0


def test_audit_failure_does_not_undo_the_mutation(db: Session, super_admin: AdminAccess, monkeypatch):
    """A failed audit write is logged and dropped; the primary change still commits"""

    def broken_insert(*args, **kwargs):
        raise OperationalError("INSERT INTO admin_audit_logs", {}, Exception("disk full"))

    monkeypatch.setattr(audit_service, "_insert_entry", broken_insert)

    super_admin.status = "SUSPENDED"
    db.flush()
    entry = record_admin_action(
        db,
        admin_id=super_admin.id,
        action=AuditAction.UPDATE,
        module="admin_management",
        resource_type="AdminAccess",
        resource_id=super_admin.id,
        description="Suspended",
    )
    db.commit()

    assert entry is None
    db.refresh(super_admin)
    assert super_admin.status == "SUSPENDED"
    assert db.query(AdminAuditLog).count() == 0


def test_record_failure_writes_error_entry(db: Session, super_admin: AdminAccess):
    audit_service.record_failure(
        db,
        admin_id=super_admin.id,
        module="admin_management",
        resource_type="AdminInvitation",
        resource_id=None,
        description="Failed to create invitation for x@example.com",
    )

    entry = db.query(AdminAuditLog).one()
    assert entry.action == "ERROR"
    assert entry.resource_type == "AdminInvitation"


def test_audited_mutation_logs_at_info(client: TestClient, db: Session, super_headers: dict, caplog):
    """Audit entries are logged at INFO with the module under its own key"""
    caplog.set_level(logging.INFO, logger="admin_console")

    response = client.post(
        "/admin/invitations",
        json={"email": "info.level@example.com", "admin_role": "VIEWER"},
        headers=super_headers,
    )
    assert response.status_code == 201
    assert db.query(AdminInvitation).filter(AdminInvitation.email == "info.level@example.com").count() == 1

    audit_records = [r for r in caplog.records if r.getMessage().startswith("Audit: ")]
    assert len(audit_records) == 1
    assert audit_records[0].audit_module == "admin_management"
    assert "admin_management" in JSONFormatter().format(audit_records[0])


def test_failed_audit_write_is_logged(db: Session, super_admin: AdminAccess, monkeypatch, caplog):
    caplog.set_level(logging.INFO, logger="admin_console")

    def broken_insert(*args, **kwargs):
        raise OperationalError("INSERT INTO admin_audit_logs", {}, Exception("disk full"))

    monkeypatch.setattr(audit_service, "_insert_entry", broken_insert)

    audit_service.record_failure(
        db,
        admin_id=super_admin.id,
        module="admin_management",
        resource_type="AdminInvitation",
        resource_id=None,
        description="Failed to create invitation",
    )

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert errors[-1].getMessage() == "Failed to write admin audit error entry"
    assert errors[-1].audit_module == "admin_management"
