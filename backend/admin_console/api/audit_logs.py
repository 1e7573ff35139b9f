"""Admin audit log endpoints"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from admin_console.api.deps import require_permission
from admin_console.config import settings
from admin_console.database import get_db
from admin_console.models.admin_access import AdminAccess
from admin_console.schemas.admin import Envelope
from admin_console.schemas.audit_log import AuditLogPageResponse, AuditLogResponse, ChainVerifyResponse
from admin_console.services import audit as audit_service
from admin_console.utils.permissions import PermissionLevel, PermissionModule

router = APIRouter(prefix="/admin/audit-logs", tags=["audit-logs"])

_require_admin_read = require_permission(PermissionModule.ADMIN_MANAGEMENT, PermissionLevel.READ)


@router.get("", response_model=Envelope[AuditLogPageResponse])
def list_audit_logs(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: Optional[int] = Query(
        None, ge=1, le=settings.AUDIT_LOG_MAX_PAGE_SIZE, description="Entries per page"
    ),
    _: AdminAccess = Depends(_require_admin_read),
    db: Session = Depends(get_db),
):
    """
    Page through the admin audit ledger, newest first.

    Each entry carries the acting admin's user. The ledger is append-only:
    there are no update or delete endpoints.
    """
    result = audit_service.list_audit_logs(db, page=page, limit=limit)
    return {
        "success": True,
        "data": AuditLogPageResponse(
            logs=[AuditLogResponse.model_validate(row) for row in result.entries],
            total=result.total,
            pages=result.pages,
            current_page=result.current_page,
        ),
    }


@router.get("/verify", response_model=Envelope[ChainVerifyResponse])
def verify_audit_logs(
    _: AdminAccess = Depends(_require_admin_read),
    db: Session = Depends(get_db),
):
    """
    Verify the hash chain of the audit ledger.

    Walks every entry in insertion order and recomputes the expected
    ``previous_hash``. Returns the ``log_id`` of the first entry whose stored
    hash does not match, or ``valid: true`` when the chain is intact.
    """
    result = audit_service.verify_audit_chain(db)
    return {"success": True, "data": ChainVerifyResponse(**result._asdict())}
