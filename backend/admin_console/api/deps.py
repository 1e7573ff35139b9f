"""API dependencies for authentication and authorization.

Every admin route resolves its caller in two steps:

  1. ``Authorization: Bearer <session JWT>`` -> user id (``sub`` claim)
  2. user id -> ACTIVE AdminAccess, optionally holding a (module, level) grant

Step 2 lives in :mod:`admin_console.services.access`; the dependencies here
only bind it to the request. Use :func:`require_permission` for
permission-gated endpoints and :func:`require_admin` when any ACTIVE admin
may call.
"""
from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from admin_console.database import get_db
from admin_console.models.admin_access import AdminAccess
from admin_console.services.access import ensure_super_admin, require_access
from admin_console.utils.jwt_utils import decode_session_token
from admin_console.utils.permissions import PermissionLevel, PermissionModule

_bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

def get_session_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[dict]:
    """Decoded session claims, or None when no bearer token was sent.

    A token that is present but invalid, expired or signed out raises 401.
    """
    if credentials is None:
        return None
    return decode_session_token(credentials.credentials, db)


def get_session_user_id(payload: Optional[dict] = Depends(get_session_payload)) -> Optional[str]:
    """The signed-in user's id, or None."""
    return payload["sub"] if payload else None


# ---------------------------------------------------------------------------
# Admin gate
# ---------------------------------------------------------------------------

def require_admin(
    user_id: Optional[str] = Depends(get_session_user_id),
    db: Session = Depends(get_db),
) -> AdminAccess:
    """Require an ACTIVE admin (any role, no specific permission)."""
    return require_access(db, user_id)


def require_permission(module: PermissionModule, level: PermissionLevel) -> Callable:
    """Return a FastAPI dependency that enforces a (module, level) grant.

    Usage::

        @router.get("/admin/users")
        def endpoint(admin: AdminAccess = Depends(
            require_permission(PermissionModule.ADMIN_MANAGEMENT, PermissionLevel.READ)
        )):
            ...

    Returns:
        A FastAPI-injectable callable that resolves to :class:`AdminAccess`
        or raises 401/403.
    """

    def _permission_dep(
        user_id: Optional[str] = Depends(get_session_user_id),
        db: Session = Depends(get_db),
    ) -> AdminAccess:
        return require_access(db, user_id, module, level)

    # Give FastAPI a unique name so it doesn't collapse distinct dependencies
    _permission_dep.__name__ = f"require_{module.value}_{level.value}"
    return _permission_dep


def require_super_admin(admin: AdminAccess = Depends(require_admin)) -> AdminAccess:
    """Require an ACTIVE admin whose role is SUPER_ADMIN."""
    ensure_super_admin(admin, "perform this action")
    return admin
