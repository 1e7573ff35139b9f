"""Invitation lifecycle: create, verify, revoke, list and expire.

States::

    PENDING -> USED      (verify_access_code)
    PENDING -> EXPIRED   (verify after expires_at, or expire_stale_invitations)
    PENDING -> REVOKED   (revoke_invitation)

Terminal states are never left. Transitions out of PENDING are conditional
updates (``WHERE status = 'PENDING'``) so two requests racing on the same
invitation cannot both win.
"""
from datetime import timedelta
from typing import List, NamedTuple, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from admin_console.config import settings
from admin_console.errors import (
    Conflict,
    DependencyFailure,
    InvalidAccessCode,
    InvitationExpired,
    NotFound,
    ValidationFailed,
)
from admin_console.middleware.monitoring import record_invitation_transition, record_verification
from admin_console.models.admin_access import AdminAccess
from admin_console.models.admin_invitation import AdminInvitation
from admin_console.models.user import User
from admin_console.services.access import ensure_super_admin
from admin_console.services.audit import AuditAction, record_admin_action, record_failure
from admin_console.services.provisioning import provision_from_invitation
from admin_console.utils.access_codes import generate_access_code, normalize_access_code, normalize_email
from admin_console.utils.clock import utcnow
from admin_console.utils.logger import logger
from admin_console.utils.permissions import (
    AdminRole,
    PermissionGrid,
    PermissionModule,
    default_permissions_for,
    normalize_permissions,
)

PENDING = "PENDING"
USED = "USED"
EXPIRED = "EXPIRED"
REVOKED = "REVOKED"

_MODULE = PermissionModule.ADMIN_MANAGEMENT.value


class VerificationResult(NamedTuple):
    user: User
    admin_access: AdminAccess
    needs_password_setup: bool


def _pending_for(db: Session, email: str) -> Optional[AdminInvitation]:
    return (
        db.query(AdminInvitation)
        .filter(AdminInvitation.email == email, AdminInvitation.status == PENDING)
        .first()
    )


def _resolve_permissions(role: AdminRole, permissions: Optional[PermissionGrid]) -> PermissionGrid:
    if permissions is None:
        grid = default_permissions_for(role)
        if grid is None:
            raise ValidationFailed(f"Permissions are required for role {role.value}")
        return grid
    try:
        return normalize_permissions(permissions)
    except ValueError as exc:
        raise ValidationFailed(str(exc))


def create_invitation(
    db: Session,
    actor: AdminAccess,
    *,
    email: str,
    admin_role: str,
    name: Optional[str] = None,
    permissions: Optional[PermissionGrid] = None,
) -> AdminInvitation:
    """Issue a PENDING invitation (super admin only).

    The returned invitation carries the plain access code; delivering it to
    the invitee is the caller's job.

    Raises:
        AuthorizationDenied: actor is not a super admin.
        Conflict: the email already has admin access or a pending invitation.
        ValidationFailed: bad permission grid, or no grid for a role without defaults.
        DependencyFailure: persistence error.
    """
    ensure_super_admin(actor, "create invitations")
    actor_id = actor.id

    email = normalize_email(email)
    role = AdminRole(admin_role)
    grid = _resolve_permissions(role, permissions)

    try:
        existing_admin = (
            db.query(AdminAccess)
            .join(User, User.id == AdminAccess.user_id)
            .filter(User.email == email)
            .first()
        )
        if existing_admin:
            raise Conflict("User already has admin access")

        if _pending_for(db, email):
            raise Conflict("Pending invitation already exists for this email")

        invitation = None
        for attempt in range(1, settings.ACCESS_CODE_MAX_ATTEMPTS + 1):
            candidate = AdminInvitation(
                email=email,
                name=name,
                code=generate_access_code(),
                admin_role=role.value,
                permissions=grid,
                status=PENDING,
                expires_at=utcnow() + timedelta(days=settings.INVITATION_TTL_DAYS),
                created_by_id=actor_id,
            )
            db.add(candidate)
            try:
                db.flush()
            except IntegrityError:
                # Either the pending-email index (a concurrent create won) or a code collision
                db.rollback()
                if _pending_for(db, email):
                    raise Conflict("Pending invitation already exists for this email")
                logger.warning(
                    "Access code collision, regenerating",
                    extra={"action": "create_invitation", "attempt": attempt},
                )
                continue
            invitation = candidate
            break

        if invitation is None:
            raise DependencyFailure("Failed to create invitation")

        record_admin_action(
            db,
            admin_id=actor_id,
            action=AuditAction.CREATE,
            module=_MODULE,
            resource_type="AdminInvitation",
            resource_id=invitation.id,
            description=f"Created invitation for {email} with role {role.value}",
        )
        db.commit()
        db.refresh(invitation)
    except SQLAlchemyError:
        db.rollback()
        logger.error("Create invitation failed", extra={"admin_id": actor_id}, exc_info=True)
        record_failure(
            db,
            admin_id=actor_id,
            module=_MODULE,
            resource_type="AdminInvitation",
            resource_id=None,
            description=f"Failed to create invitation for {email}",
        )
        raise DependencyFailure("Failed to create invitation")

    record_invitation_transition("created")
    logger.info(
        f"Created invitation for {email}",
        extra={"invitation_id": invitation.id, "admin_id": actor_id, "admin_role": role.value},
    )
    return invitation


def _transition(db: Session, invitation_id: str, to_status: str, **values) -> bool:
    """Move a PENDING invitation to ``to_status``; False if it was no longer PENDING."""
    updated = (
        db.query(AdminInvitation)
        .filter(AdminInvitation.id == invitation_id, AdminInvitation.status == PENDING)
        .update({"status": to_status, **values}, synchronize_session=False)
    )
    return updated == 1


def verify_access_code(db: Session, email: str, code: str) -> VerificationResult:
    """Exchange email + access code for an ACTIVE admin account.

    Claiming the invitation, provisioning the user and admin record and the
    LOGIN audit entry share one transaction.

    Raises:
        InvalidAccessCode: no PENDING invitation matches (wrong email, wrong
            code, revoked, used, or lost a race with another verify).
        InvitationExpired: the matching invitation is past ``expires_at``;
            it is marked EXPIRED.
        DependencyFailure: persistence or hashing error; nothing is changed.
    """
    email = normalize_email(email)
    code = normalize_access_code(code)

    try:
        invitation = (
            db.query(AdminInvitation)
            .filter(
                AdminInvitation.email == email,
                AdminInvitation.code == code,
                AdminInvitation.status == PENDING,
            )
            .first()
        )
    except SQLAlchemyError:
        logger.error("Access code lookup failed", exc_info=True)
        record_verification("error")
        raise DependencyFailure("Failed to verify access code")

    if invitation is None:
        record_verification("invalid")
        raise InvalidAccessCode()

    invitation_id = invitation.id

    if utcnow() > invitation.expires_at:
        try:
            expired = _transition(db, invitation_id, EXPIRED)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.error("Failed to expire invitation", extra={"invitation_id": invitation_id}, exc_info=True)
            record_verification("error")
            raise DependencyFailure("Failed to verify access code")
        if expired:
            record_invitation_transition("expired")
        record_verification("expired")
        logger.info("Access code expired", extra={"invitation_id": invitation_id, "status": EXPIRED})
        raise InvitationExpired()

    try:
        if not _transition(db, invitation_id, USED, used_at=utcnow()):
            db.rollback()
            record_verification("invalid")
            raise InvalidAccessCode()

        result = provision_from_invitation(db, invitation, code)

        db.query(AdminInvitation).filter(AdminInvitation.id == invitation_id).update(
            {"used_by": result.user.id}, synchronize_session=False
        )
        record_admin_action(
            db,
            admin_id=result.admin_access.id,
            action=AuditAction.LOGIN,
            module=_MODULE,
            resource_type="AdminAccess",
            resource_id=result.admin_access.id,
            description=f"New admin {email} activated via access code",
        )
        db.commit()
    except (SQLAlchemyError, ValueError):
        db.rollback()
        logger.error("Verify access code failed", extra={"invitation_id": invitation_id}, exc_info=True)
        record_verification("error")
        raise DependencyFailure("Failed to verify access code")

    record_invitation_transition("used")
    record_verification("success")
    logger.info(
        "Access code verified",
        extra={"invitation_id": invitation_id, "admin_id": result.admin_access.id, "user_id": result.user.id},
    )
    return VerificationResult(user=result.user, admin_access=result.admin_access, needs_password_setup=True)


def revoke_invitation(db: Session, actor: AdminAccess, invitation_id: str) -> AdminInvitation:
    """Revoke an invitation (super admin only).

    Revoking an invitation that already left PENDING changes nothing and
    succeeds.
    """
    ensure_super_admin(actor, "revoke invitations")
    actor_id = actor.id

    try:
        invitation = db.query(AdminInvitation).filter(AdminInvitation.id == invitation_id).first()
        if invitation is None:
            raise NotFound("Invitation not found")

        if invitation.status != PENDING:
            logger.info(
                "Invitation already terminal, revoke is a no-op",
                extra={"invitation_id": invitation_id, "status": invitation.status},
            )
            return invitation

        if not _transition(db, invitation_id, REVOKED):
            db.rollback()
            db.refresh(invitation)
            return invitation

        record_admin_action(
            db,
            admin_id=actor_id,
            action=AuditAction.DELETE,
            module=_MODULE,
            resource_type="AdminInvitation",
            resource_id=invitation_id,
            description=f"Revoked admin invitation for {invitation.email}",
        )
        db.commit()
        db.refresh(invitation)
    except SQLAlchemyError:
        db.rollback()
        logger.error("Revoke invitation failed", extra={"invitation_id": invitation_id}, exc_info=True)
        record_failure(
            db,
            admin_id=actor_id,
            module=_MODULE,
            resource_type="AdminInvitation",
            resource_id=invitation_id,
            description="Failed to revoke admin invitation",
        )
        raise DependencyFailure("Failed to revoke invitation")

    record_invitation_transition("revoked")
    logger.info("Revoked invitation", extra={"invitation_id": invitation_id, "admin_id": actor_id})
    return invitation


def list_pending_invitations(db: Session) -> List[AdminInvitation]:
    """PENDING invitations, newest first. Read-only: expiry is not applied here."""
    try:
        return (
            db.query(AdminInvitation)
            .filter(AdminInvitation.status == PENDING)
            .order_by(AdminInvitation.created_at.desc())
            .all()
        )
    except SQLAlchemyError:
        logger.error("Failed to fetch invitations", exc_info=True)
        raise DependencyFailure("Failed to fetch invitations")


def expire_stale_invitations(db: Session, actor: AdminAccess) -> int:
    """Mark every PENDING invitation past its expiry as EXPIRED (super admin only).

    Returns the number of invitations expired.
    """
    ensure_super_admin(actor, "expire invitations")
    actor_id = actor.id

    try:
        expired = (
            db.query(AdminInvitation)
            .filter(AdminInvitation.status == PENDING, AdminInvitation.expires_at < utcnow())
            .update({"status": EXPIRED}, synchronize_session=False)
        )
        if expired:
            record_admin_action(
                db,
                admin_id=actor_id,
                action=AuditAction.UPDATE,
                module=_MODULE,
                resource_type="AdminInvitation",
                resource_id=None,
                description=f"Expired {expired} stale invitation(s)",
                changes={"expired": expired},
            )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Expire invitations failed", extra={"admin_id": actor_id}, exc_info=True)
        raise DependencyFailure("Failed to expire invitations")

    record_invitation_transition("expired", expired)
    logger.info(f"Expired {expired} stale invitation(s)", extra={"admin_id": actor_id})
    return expired
