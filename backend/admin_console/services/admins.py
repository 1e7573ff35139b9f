"""Admin management: status and permission updates, listing, passwords"""
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from admin_console.errors import (
    DependencyFailure,
    IncorrectPassword,
    NotFound,
    ValidationFailed,
)
from admin_console.models.admin_access import AdminAccess
from admin_console.models.user import User
from admin_console.services.access import ensure_super_admin
from admin_console.services.audit import AuditAction, record_admin_action, record_failure
from admin_console.utils.logger import logger
from admin_console.utils.passwords import hash_password, verify_password
from admin_console.utils.permissions import (
    AdminStatus,
    PermissionGrid,
    PermissionModule,
    normalize_permissions,
)

_MODULE = PermissionModule.ADMIN_MANAGEMENT.value


def _get_admin(db: Session, admin_id: str) -> AdminAccess:
    admin = db.query(AdminAccess).filter(AdminAccess.id == admin_id).first()
    if admin is None:
        raise NotFound("Admin not found")
    return admin


def list_admins(db: Session) -> List[AdminAccess]:
    """All admin records with their users, newest first."""
    try:
        return (
            db.query(AdminAccess)
            .options(joinedload(AdminAccess.user))
            .order_by(AdminAccess.created_at.desc())
            .all()
        )
    except SQLAlchemyError:
        logger.error("Failed to fetch admin users", exc_info=True)
        raise DependencyFailure("Failed to fetch admin users")


def update_admin_status(db: Session, actor: AdminAccess, admin_id: str, status: str) -> AdminAccess:
    """Change an admin's status (super admin only)."""
    ensure_super_admin(actor, "update admin status")
    actor_id = actor.id
    new_status = AdminStatus(status).value

    if admin_id == actor_id and new_status != AdminStatus.ACTIVE.value:
        raise ValidationFailed("You cannot deactivate your own admin access")

    try:
        admin = _get_admin(db, admin_id)
        previous = admin.status
        admin.status = new_status
        db.flush()

        record_admin_action(
            db,
            admin_id=actor_id,
            action=AuditAction.UPDATE,
            module=_MODULE,
            resource_type="AdminAccess",
            resource_id=admin_id,
            description=f"Updated admin status to {new_status}",
            changes={"before": {"status": previous}, "after": {"status": new_status}},
        )
        db.commit()
        db.refresh(admin)
    except SQLAlchemyError:
        db.rollback()
        logger.error("Update admin status failed", extra={"admin_id": admin_id}, exc_info=True)
        record_failure(
            db,
            admin_id=actor_id,
            module=_MODULE,
            resource_type="AdminAccess",
            resource_id=admin_id,
            description=f"Failed to update admin status to {new_status}",
        )
        raise DependencyFailure("Failed to update admin status")

    logger.info(
        f"Updated admin status to {new_status}",
        extra={"admin_id": admin_id, "status": new_status},
    )
    return admin


def update_admin_permissions(
    db: Session, actor: AdminAccess, admin_id: str, permissions: PermissionGrid
) -> AdminAccess:
    """Replace an admin's permission grid (super admin only).

    The audit entry carries the grid before and after the change.
    """
    ensure_super_admin(actor, "update permissions")
    actor_id = actor.id

    try:
        grid = normalize_permissions(permissions)
    except ValueError as exc:
        raise ValidationFailed(str(exc))

    try:
        admin = _get_admin(db, admin_id)
        previous = dict(admin.permissions or {})
        admin.permissions = grid
        db.flush()

        record_admin_action(
            db,
            admin_id=actor_id,
            action=AuditAction.UPDATE,
            module=_MODULE,
            resource_type="AdminAccess",
            resource_id=admin_id,
            description="Updated admin permissions",
            changes={"before": previous, "after": grid},
        )
        db.commit()
        db.refresh(admin)
    except SQLAlchemyError:
        db.rollback()
        logger.error("Update admin permissions failed", extra={"admin_id": admin_id}, exc_info=True)
        record_failure(
            db,
            admin_id=actor_id,
            module=_MODULE,
            resource_type="AdminAccess",
            resource_id=admin_id,
            description="Failed to update admin permissions",
        )
        raise DependencyFailure("Failed to update permissions")

    logger.info("Updated admin permissions", extra={"admin_id": admin_id})
    return admin


def _audit_password_change(db: Session, user: User, description: str) -> None:
    admin = db.query(AdminAccess).filter(AdminAccess.user_id == user.id).first()
    if admin is not None:
        record_admin_action(
            db,
            admin_id=admin.id,
            action=AuditAction.UPDATE,
            module=_MODULE,
            resource_type="User",
            resource_id=user.id,
            description=description,
        )


def change_password(db: Session, user_id: str, current_password: str, new_password: str) -> None:
    """Change the caller's password after checking the current one.

    Raises:
        NotFound: no user, or the account has no password yet.
        IncorrectPassword: ``current_password`` does not match.
    """
    try:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None or not user.hashed_password:
            raise NotFound("User not found")

        if not verify_password(current_password, user.hashed_password):
            logger.warning("Password change rejected", extra={"user_id": user_id, "action": "change_password"})
            raise IncorrectPassword()

        user.hashed_password = hash_password(new_password)
        db.flush()
        _audit_password_change(db, user, "Changed password")
        db.commit()
    except (SQLAlchemyError, ValueError):
        db.rollback()
        logger.error("Change password failed", extra={"user_id": user_id}, exc_info=True)
        raise DependencyFailure("Failed to change password")

    logger.info("Password changed", extra={"user_id": user_id, "action": "change_password"})


def set_initial_password(db: Session, admin_access: AdminAccess, new_password: str) -> None:
    """Replace the access-code password after a code sign-in."""
    user_id = admin_access.user_id
    try:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFound("User not found")

        user.hashed_password = hash_password(new_password)
        db.flush()
        _audit_password_change(db, user, "Set admin password")
        db.commit()
    except (SQLAlchemyError, ValueError):
        db.rollback()
        logger.error("Set admin password failed", extra={"user_id": user_id}, exc_info=True)
        raise DependencyFailure("Failed to set password")

    logger.info("Admin password set", extra={"user_id": user_id, "admin_id": admin_access.id})


def get_admin_with_user(db: Session, admin_access: AdminAccess) -> AdminAccess:
    """The caller's admin record with its user loaded."""
    try:
        admin = (
            db.query(AdminAccess)
            .options(joinedload(AdminAccess.user))
            .filter(AdminAccess.id == admin_access.id)
            .first()
        )
    except SQLAlchemyError:
        logger.error("Failed to get admin info", extra={"admin_id": admin_access.id}, exc_info=True)
        raise DependencyFailure("Failed to get admin info")
    if admin is None:
        raise NotFound("Admin not found")
    return admin
