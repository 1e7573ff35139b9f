"""Admin audit ledger: writing, listing and chain verification.

Every privileged mutation calls :func:`record_admin_action` after flushing
its own changes and before committing. The entry is written inside a
SAVEPOINT: if the insert fails only the savepoint is rolled back, the failure
is logged, and the caller's mutation still commits. The loss window is a crash
between the mutation and the log write, which is accepted.
"""
import enum
import math
import uuid
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from admin_console.config import settings
from admin_console.errors import DependencyFailure
from admin_console.middleware.monitoring import record_audit_write_failure
from admin_console.models.admin_access import AdminAccess
from admin_console.models.admin_audit_log import AdminAuditLog
from admin_console.models.user import User
from admin_console.utils import chain as chain_utils
from admin_console.utils.clock import utcnow
from admin_console.utils.logger import logger


class AuditAction(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    ERROR = "ERROR"


class AuditLogPage(NamedTuple):
    entries: List[Tuple[AdminAuditLog, Optional[User]]]
    total: int
    pages: int
    current_page: int


class ChainVerification(NamedTuple):
    valid: bool
    total_entries: int
    broken_at: Optional[str]


def _insert_entry(
    db: Session,
    admin_id: str,
    action: str,
    module: str,
    resource_type: str,
    resource_id: Optional[str],
    description: str,
    changes: Optional[Dict[str, Any]],
) -> AdminAuditLog:
    # Lock the latest row so a concurrent writer cannot chain onto the same
    # predecessor (PostgreSQL FOR UPDATE; SQLite serialises writers anyway)
    prev_entry = (
        db.query(AdminAuditLog)
        .order_by(AdminAuditLog.id.desc())
        .with_for_update()
        .first()
    )

    log_id = str(uuid.uuid4())
    if prev_entry is None:
        previous_hash = chain_utils.genesis_hash()
    else:
        previous_hash = chain_utils.compute_hash(
            prev_entry_id=prev_entry.log_id,
            prev_created_at=prev_entry.created_at,
            current_entry_id=log_id,
            current_action=action,
            current_resource_id=resource_id or "",
        )

    entry = AdminAuditLog(
        log_id=log_id,
        admin_id=admin_id,
        action=action,
        module=module,
        resource_type=resource_type,
        resource_id=resource_id,
        description=description,
        changes=changes,
        previous_hash=previous_hash,
        created_at=utcnow(),
    )
    db.add(entry)
    db.flush()
    return entry


def record_admin_action(
    db: Session,
    *,
    admin_id: str,
    action: AuditAction,
    module: str,
    resource_type: str,
    resource_id: Optional[str],
    description: str,
    changes: Optional[Dict[str, Any]] = None,
) -> Optional[AdminAuditLog]:
    """Append an audit entry within the caller's transaction.

    Returns the entry, or None when the write failed. Never raises for
    persistence errors and never rolls back the caller's pending changes.
    """
    action_value = AuditAction(action).value
    try:
        with db.begin_nested():
            entry = _insert_entry(
                db, admin_id, action_value, module, resource_type, resource_id, description, changes
            )
    except SQLAlchemyError:
        logger.error(
            "Failed to write admin audit entry",
            extra={"admin_id": admin_id, "action": action_value, "audit_module": module},
            exc_info=True,
        )
        record_audit_write_failure()
        return None

    logger.info(
        f"Audit: {description}",
        extra={"admin_id": admin_id, "action": action_value, "audit_module": module},
    )
    return entry


def record_failure(
    db: Session,
    *,
    admin_id: str,
    module: str,
    resource_type: str,
    resource_id: Optional[str],
    description: str,
) -> None:
    """Best-effort ERROR entry for a privileged operation that failed.

    Must be called after the failed transaction was rolled back; commits on
    its own.
    """
    try:
        _insert_entry(
            db, admin_id, AuditAction.ERROR.value, module, resource_type, resource_id, description, None
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(
            "Failed to write admin audit error entry",
            extra={"admin_id": admin_id, "action": AuditAction.ERROR.value, "audit_module": module},
            exc_info=True,
        )


def list_audit_logs(db: Session, page: int = 1, limit: Optional[int] = None) -> AuditLogPage:
    """Newest-first page of the ledger with the acting user of each entry."""
    limit = min(limit or settings.AUDIT_LOG_PAGE_SIZE, settings.AUDIT_LOG_MAX_PAGE_SIZE)
    page = max(page, 1)

    try:
        total = db.query(AdminAuditLog).count()
        rows = (
            db.query(AdminAuditLog, User)
            .join(AdminAccess, AdminAccess.id == AdminAuditLog.admin_id)
            .outerjoin(User, User.id == AdminAccess.user_id)
            .order_by(AdminAuditLog.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
    except SQLAlchemyError:
        logger.error("Failed to fetch audit logs", exc_info=True)
        raise DependencyFailure("Failed to fetch audit logs")

    return AuditLogPage(
        entries=[(entry, user) for entry, user in rows],
        total=total,
        pages=math.ceil(total / limit) if total else 0,
        current_page=page,
    )


def verify_audit_chain(db: Session) -> ChainVerification:
    """Walk the ledger in insertion order and recompute every link."""
    try:
        entries = db.query(AdminAuditLog).order_by(AdminAuditLog.id.asc()).all()
    except SQLAlchemyError:
        logger.error("Failed to load audit ledger for verification", exc_info=True)
        raise DependencyFailure("Failed to verify audit log")

    prev_entry: Optional[AdminAuditLog] = None
    for entry in entries:
        if prev_entry is None:
            expected = chain_utils.genesis_hash()
        else:
            expected = chain_utils.compute_hash(
                prev_entry_id=prev_entry.log_id,
                prev_created_at=prev_entry.created_at,
                current_entry_id=entry.log_id,
                current_action=entry.action,
                current_resource_id=entry.resource_id or "",
            )
        if entry.previous_hash != expected:
            logger.warning(
                "Audit chain broken",
                extra={"action": "verify_audit_chain", "admin_id": entry.admin_id},
            )
            return ChainVerification(valid=False, total_entries=len(entries), broken_at=entry.log_id)
        prev_entry = entry

    return ChainVerification(valid=True, total_entries=len(entries), broken_at=None)
