"""Admin access and admin management endpoints"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from admin_console.api.deps import get_session_user_id, require_admin, require_permission, require_super_admin
from admin_console.database import get_db
from admin_console.errors import DependencyFailure
from admin_console.models.admin_access import AdminAccess
from admin_console.schemas.admin import (
    AccessCheckResponse,
    AdminAccessResponse,
    AdminPermissionsUpdate,
    AdminStatusUpdate,
    CurrentAdminResponse,
    Envelope,
)
from admin_console.services import admins as admin_service
from admin_console.services.access import check_access
from admin_console.utils.permissions import PermissionLevel, PermissionModule, accessible_modules

router = APIRouter(prefix="/admin", tags=["admin"])

_require_admin_read = require_permission(PermissionModule.ADMIN_MANAGEMENT, PermissionLevel.READ)


# ---------------------------------------------------------------------------
# Access checks
# ---------------------------------------------------------------------------

@router.get("/access", response_model=Envelope[AccessCheckResponse])
def get_access(
    module: Optional[PermissionModule] = Query(None),
    level: Optional[PermissionLevel] = Query(None),
    user_id: Optional[str] = Depends(get_session_user_id),
    db: Session = Depends(get_db),
):
    """
    Report whether the caller may use ``module`` at ``level``.

    Without module/level this only checks for an ACTIVE admin record. A denied
    check is a normal answer (``authorized: false``), not an error.
    """
    check = check_access(db, user_id, module, level)
    if isinstance(check.error, DependencyFailure):
        raise check.error

    return {
        "success": True,
        "data": AccessCheckResponse(
            authorized=check.authorized,
            admin_role=check.admin_access.admin_role if check.admin_access else None,
            error=check.error.message if check.error else None,
        ),
    }


@router.get("/me", response_model=Envelope[CurrentAdminResponse])
def get_current_admin(
    admin: AdminAccess = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """The caller's admin record, user and the modules they can open"""
    admin = admin_service.get_admin_with_user(db, admin)
    data = CurrentAdminResponse.model_validate(admin)
    data.accessible_modules = accessible_modules(admin.permissions)
    return {"success": True, "data": data}


# ---------------------------------------------------------------------------
# Admin management
# ---------------------------------------------------------------------------

@router.get("/users", response_model=Envelope[List[AdminAccessResponse]])
def list_admin_users(
    _: AdminAccess = Depends(_require_admin_read),
    db: Session = Depends(get_db),
):
    """List every admin record with its user, newest first"""
    admins = admin_service.list_admins(db)
    return {"success": True, "data": [AdminAccessResponse.model_validate(a) for a in admins]}


@router.patch("/users/{admin_id}/status", response_model=Envelope[AdminAccessResponse])
def update_admin_status(
    admin_id: str,
    body: AdminStatusUpdate,
    actor: AdminAccess = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    """
    Activate, deactivate or suspend an admin (super-admin only).

    Admin records are never deleted; INACTIVE or SUSPENDED revokes access.
    """
    admin = admin_service.update_admin_status(db, actor, admin_id, body.status.value)
    return {"success": True, "data": AdminAccessResponse.model_validate(admin)}


@router.put("/users/{admin_id}/permissions", response_model=Envelope[AdminAccessResponse])
def update_admin_permissions(
    admin_id: str,
    body: AdminPermissionsUpdate,
    actor: AdminAccess = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    """Replace an admin's permission grid (super-admin only)"""
    admin = admin_service.update_admin_permissions(db, actor, admin_id, body.permissions)
    return {"success": True, "data": AdminAccessResponse.model_validate(admin)}
