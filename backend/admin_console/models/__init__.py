"""Database models"""
from admin_console.models.admin_access import AdminAccess
from admin_console.models.admin_audit_log import AdminAuditLog
from admin_console.models.admin_invitation import AdminInvitation
from admin_console.models.revoked_token import RevokedToken
from admin_console.models.user import User

__all__ = ["AdminAccess", "AdminAuditLog", "AdminInvitation", "RevokedToken", "User"]
