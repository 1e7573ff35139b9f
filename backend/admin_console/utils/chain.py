"""Hash chaining for the admin audit ledger.

Each audit entry stores a SHA-256 hash over the previous entry's id and
timestamp plus its own id, action and resource. Editing or deleting a row
breaks the chain at that point, which ``GET /admin/audit-logs/verify`` reports.
"""
import hashlib
from datetime import datetime


def compute_hash(
    prev_entry_id: str,
    prev_created_at: datetime,
    current_entry_id: str,
    current_action: str,
    current_resource_id: str,
) -> str:
    """Return SHA-256 hex digest linking the current entry to the previous one.

    The input is a pipe-delimited string of the values so the components
    are unambiguous even if individual values contain special characters.

    Returns:
        64-character lowercase hex digest.
    """
    raw = (
        f"{prev_entry_id}|{prev_created_at.isoformat()}|"
        f"{current_entry_id}|{current_action}|{current_resource_id}"
    )
    return hashlib.sha256(raw.encode()).hexdigest()


def genesis_hash() -> str:
    """Fixed hash stored on the first entry of the ledger: SHA-256("GENESIS")."""
    return hashlib.sha256(b"GENESIS").hexdigest()
