"""Admin provisioning: turn a verified invitation (or a direct grant) into an
ACTIVE AdminAccess bound to a user account.

Functions here only ``flush``; the caller owns the transaction so provisioning
and the invitation status change commit or roll back together.
"""
from typing import NamedTuple, Optional

from sqlalchemy.orm import Session

from admin_console.models.admin_access import AdminAccess
from admin_console.models.admin_invitation import AdminInvitation
from admin_console.models.user import User
from admin_console.utils.access_codes import normalize_email
from admin_console.utils.logger import logger
from admin_console.utils.passwords import hash_password
from admin_console.utils.permissions import AdminStatus, PermissionGrid, default_permissions_for

ACCOUNT_ROLE_ADMIN = "ADMIN"


class ProvisionResult(NamedTuple):
    user: User
    admin_access: AdminAccess
    created: bool  # False when an existing AdminAccess was reused


def _find_user(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def _link_user(db: Session, email: str, name: Optional[str], secret: str) -> User:
    """Create the account, or re-key an existing one with ``secret``.

    Re-keying is deliberate: a returning admin signs in with the access code
    until they set a password again.
    """
    hashed = hash_password(secret)
    user = _find_user(db, email)

    if user is None:
        email = normalize_email(email)
        user = User(
            email=email,
            name=name or email.split("@")[0],
            hashed_password=hashed,
            email_verified=True,
            role=ACCOUNT_ROLE_ADMIN,
        )
        db.add(user)
        db.flush()
        logger.info("Created user account for admin", extra={"user_id": user.id, "action": "provision_user"})
    else:
        user.hashed_password = hashed
        user.role = ACCOUNT_ROLE_ADMIN
        db.flush()
        logger.info("Re-keyed existing user for admin access", extra={"user_id": user.id, "action": "provision_user"})

    return user


def _link_admin_access(db: Session, user: User, role: str, permissions: PermissionGrid) -> ProvisionResult:
    admin_access = db.query(AdminAccess).filter(AdminAccess.user_id == user.id).first()
    if admin_access is not None:
        return ProvisionResult(user=user, admin_access=admin_access, created=False)

    admin_access = AdminAccess(
        user_id=user.id,
        admin_role=role,
        permissions=permissions,
        status=AdminStatus.ACTIVE.value,
    )
    db.add(admin_access)
    db.flush()
    logger.info(
        "Created admin access",
        extra={"admin_id": admin_access.id, "user_id": user.id, "admin_role": role, "action": "provision_admin"},
    )
    return ProvisionResult(user=user, admin_access=admin_access, created=True)


def provision_from_invitation(db: Session, invitation: AdminInvitation, access_code: str) -> ProvisionResult:
    """Create or link the invitee's user and AdminAccess.

    The access code becomes the account's one-time password. An existing
    AdminAccess for the user is reused as-is.
    """
    user = _link_user(db, invitation.email, invitation.name, access_code)
    return _link_admin_access(db, user, invitation.admin_role, dict(invitation.permissions or {}))


def grant_admin_access(
    db: Session,
    email: str,
    role: str,
    password: str,
    name: Optional[str] = None,
    permissions: Optional[PermissionGrid] = None,
) -> ProvisionResult:
    """Direct grant without an invitation (used to bootstrap the first super admin)."""
    grid = permissions if permissions is not None else default_permissions_for(role)
    if grid is None:
        raise ValueError(f"Role {role} has no default permissions; pass them explicitly")
    user = _link_user(db, email, name, password)
    return _link_admin_access(db, user, role, grid)
