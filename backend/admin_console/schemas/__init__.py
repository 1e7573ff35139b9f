"""Pydantic schemas for request/response validation"""
from admin_console.schemas.admin import (
    AccessCheckResponse,
    AdminAccessResponse,
    AdminPermissionsUpdate,
    AdminStatusUpdate,
    ChangePasswordRequest,
    CurrentAdminResponse,
    Envelope,
    ExpireSweepResponse,
    InvitationCreate,
    InvitationResponse,
    InvitationWithCode,
    SetPasswordRequest,
    UserSummary,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from admin_console.schemas.audit_log import AuditLogPageResponse, AuditLogResponse, ChainVerifyResponse
from admin_console.schemas.auth import RevokeResponse, TokenRequest, TokenResponse

__all__ = [
    "AccessCheckResponse",
    "AdminAccessResponse",
    "AdminPermissionsUpdate",
    "AdminStatusUpdate",
    "ChangePasswordRequest",
    "CurrentAdminResponse",
    "Envelope",
    "ExpireSweepResponse",
    "InvitationCreate",
    "InvitationResponse",
    "InvitationWithCode",
    "SetPasswordRequest",
    "UserSummary",
    "VerifyCodeRequest",
    "VerifyCodeResponse",
    "AuditLogPageResponse",
    "AuditLogResponse",
    "ChainVerifyResponse",
    "RevokeResponse",
    "TokenRequest",
    "TokenResponse",
]
