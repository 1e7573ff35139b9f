"""Admin invitation endpoints"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from admin_console.api.deps import require_permission, require_super_admin
from admin_console.database import get_db
from admin_console.models.admin_access import AdminAccess
from admin_console.schemas.admin import (
    Envelope,
    ExpireSweepResponse,
    InvitationCreate,
    InvitationResponse,
    InvitationWithCode,
)
from admin_console.services import invitations as invitation_service
from admin_console.utils.permissions import PermissionLevel, PermissionModule

router = APIRouter(prefix="/admin/invitations", tags=["invitations"])


@router.post("", response_model=Envelope[InvitationWithCode], status_code=201)
def create_invitation(
    body: InvitationCreate,
    actor: AdminAccess = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    """
    Invite someone to become an admin (super-admin only).

    The plain access code is returned **once** in the response; delivering it
    to the invitee is up to the caller. Omitting ``permissions`` applies the
    role's default grid, except for MODULE_MANAGER which has none.
    """
    invitation = invitation_service.create_invitation(
        db,
        actor,
        email=body.email,
        admin_role=body.admin_role.value,
        name=body.name,
        permissions=body.permissions,
    )
    return {"success": True, "data": InvitationWithCode.model_validate(invitation)}


@router.get("", response_model=Envelope[List[InvitationResponse]])
def list_invitations(
    _: AdminAccess = Depends(require_permission(PermissionModule.ADMIN_MANAGEMENT, PermissionLevel.READ)),
    db: Session = Depends(get_db),
):
    """
    List PENDING invitations, newest first.

    Rows past their expiry stay PENDING until a verify attempt or the expire
    sweep touches them; ``is_expired`` reports it. Codes are not included.
    """
    invitations = invitation_service.list_pending_invitations(db)
    return {"success": True, "data": [InvitationResponse.model_validate(i) for i in invitations]}


@router.post("/expire", response_model=Envelope[ExpireSweepResponse])
def expire_invitations(
    actor: AdminAccess = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    """Mark every PENDING invitation past its expiry as EXPIRED (super-admin only)"""
    expired = invitation_service.expire_stale_invitations(db, actor)
    return {"success": True, "data": ExpireSweepResponse(expired=expired)}


@router.delete("/{invitation_id}", response_model=Envelope[InvitationResponse])
def revoke_invitation(
    invitation_id: str,
    actor: AdminAccess = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    """Revoke an invitation so its code can no longer be used (super-admin only)"""
    invitation = invitation_service.revoke_invitation(db, actor, invitation_id)
    return {"success": True, "data": InvitationResponse.model_validate(invitation)}
