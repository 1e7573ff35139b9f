"""Admin audit log schemas"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from admin_console.schemas.admin import UserSummary


class AuditLogResponse(BaseModel):
    """One ledger entry with the acting admin's user"""

    log_id: str
    admin_id: str
    action: str
    module: str
    resource_type: str
    resource_id: Optional[str] = None
    description: str
    changes: Optional[Dict[str, Any]] = None
    created_at: datetime
    previous_hash: str = ""
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True

    @model_validator(mode='before')
    @classmethod
    def unpack_entry(cls, data):
        """Accept the ``(AdminAuditLog, User)`` rows returned by list_audit_logs"""
        if isinstance(data, tuple) and len(data) == 2:
            entry, user = data
            return {
                'log_id': entry.log_id,
                'admin_id': entry.admin_id,
                'action': entry.action,
                'module': entry.module,
                'resource_type': entry.resource_type,
                'resource_id': entry.resource_id,
                'description': entry.description,
                'changes': entry.changes,
                'created_at': entry.created_at,
                'previous_hash': entry.previous_hash,
                'user': UserSummary.model_validate(user) if user is not None else None,
            }
        return data


class AuditLogPageResponse(BaseModel):
    logs: List[AuditLogResponse]
    total: int
    pages: int
    current_page: int


class ChainVerifyResponse(BaseModel):
    """Response from GET /admin/audit-logs/verify"""

    valid: bool = Field(..., description="True if the entire chain is intact")
    total_entries: int = Field(..., description="Total number of ledger entries checked")
    broken_at: Optional[str] = Field(
        None,
        description="log_id of the first entry whose hash does not match — null when valid=true",
    )
