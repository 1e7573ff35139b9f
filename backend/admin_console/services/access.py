"""Access gate for privileged operations.

Every privileged operation resolves the caller through :func:`require_access`
before it reads or writes anything else:

    session user id -> AdminAccess (must be ACTIVE) -> optional (module, level)

Missing, inactive and under-privileged admins all fail with the same
"Not authorized" message; only a missing session is reported differently.
"""
from typing import NamedTuple, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from admin_console.errors import (
    AdminConsoleError,
    AuthenticationRequired,
    AuthorizationDenied,
    DependencyFailure,
)
from admin_console.middleware.monitoring import record_authorization_denial
from admin_console.models.admin_access import AdminAccess
from admin_console.utils.logger import logger
from admin_console.utils.permissions import (
    AdminRole,
    AdminStatus,
    PermissionLevel,
    PermissionModule,
    has_permission,
)


class AccessCheck(NamedTuple):
    """Outcome of :func:`check_access`."""
    authorized: bool
    admin_access: Optional[AdminAccess]
    error: Optional[AdminConsoleError]


def _deny(error: AdminConsoleError, reason: str) -> AccessCheck:
    record_authorization_denial(reason)
    return AccessCheck(authorized=False, admin_access=None, error=error)


def check_access(
    db: Session,
    user_id: Optional[str],
    module: Optional[Union[str, PermissionModule]] = None,
    level: Optional[Union[str, PermissionLevel]] = None,
) -> AccessCheck:
    """Resolve the caller's admin record and check an optional (module, level) pair."""
    if not user_id:
        return _deny(AuthenticationRequired(), "not_authenticated")

    try:
        admin_access = db.query(AdminAccess).filter(AdminAccess.user_id == user_id).first()
    except SQLAlchemyError:
        logger.error("Admin access check failed", extra={"user_id": user_id}, exc_info=True)
        return AccessCheck(
            authorized=False,
            admin_access=None,
            error=DependencyFailure("Failed to check admin access"),
        )

    if admin_access is None or admin_access.status != AdminStatus.ACTIVE.value:
        return _deny(AuthorizationDenied(), "not_authorized")

    if module is not None and level is not None:
        if not has_permission(admin_access.permissions, module, level):
            return _deny(AuthorizationDenied(), "not_authorized")

    return AccessCheck(authorized=True, admin_access=admin_access, error=None)


def require_access(
    db: Session,
    user_id: Optional[str],
    module: Optional[Union[str, PermissionModule]] = None,
    level: Optional[Union[str, PermissionLevel]] = None,
) -> AdminAccess:
    """Like :func:`check_access` but raises the failure instead of returning it."""
    check = check_access(db, user_id, module, level)
    if not check.authorized:
        raise check.error
    return check.admin_access


def ensure_super_admin(admin_access: AdminAccess, action: str) -> None:
    """Role check for operations reserved to SUPER_ADMIN."""
    if admin_access.admin_role != AdminRole.SUPER_ADMIN.value:
        record_authorization_denial("not_authorized")
        logger.warning(
            f"Super admin required to {action}",
            extra={"admin_id": admin_access.id, "admin_role": admin_access.admin_role},
        )
        raise AuthorizationDenied(f"Only super admins can {action}")
