"""Admin access, invitation and password schemas"""
from datetime import datetime
from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator, model_validator

from admin_console.config import settings
from admin_console.utils.clock import utcnow
from admin_console.utils.passwords import BCRYPT_MAX_BYTES
from admin_console.utils.permissions import (
    AdminRole,
    AdminStatus,
    PermissionGrid,
    normalize_permissions,
)


def _check_grid(value: Optional[PermissionGrid]) -> Optional[PermissionGrid]:
    if value is None:
        return None
    return normalize_permissions(value)


def _check_password(value: str) -> str:
    if len(value) < settings.PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters")
    if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    return value


# ---------------------------------------------------------------------------
# Users and admin access
# ---------------------------------------------------------------------------

class UserSummary(BaseModel):
    id: str
    email: str
    name: Optional[str] = None

    class Config:
        from_attributes = True


class AdminAccessResponse(BaseModel):
    id: str
    user_id: str
    admin_role: AdminRole
    permissions: Dict[str, List[str]]
    status: AdminStatus
    created_at: datetime
    updated_at: datetime
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class CurrentAdminResponse(AdminAccessResponse):
    """GET /admin/me — the caller's record plus the modules they can open."""
    accessible_modules: List[str] = Field(default_factory=list)


class AccessCheckResponse(BaseModel):
    authorized: bool
    admin_role: Optional[AdminRole] = None
    error: Optional[str] = None


class AdminStatusUpdate(BaseModel):
    status: AdminStatus


class AdminPermissionsUpdate(BaseModel):
    permissions: Dict[str, List[str]] = Field(..., description="Module -> levels grid")

    @field_validator("permissions")
    @classmethod
    def validate_grid(cls, value):
        return normalize_permissions(value)


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

class InvitationCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    admin_role: AdminRole
    name: Optional[str] = Field(None, max_length=255)
    permissions: Optional[Dict[str, List[str]]] = Field(
        None, description="Omit to use the role's default grid"
    )

    @field_validator("email")
    @classmethod
    def validate_email(cls, value):
        local, _, domain = value.strip().partition("@")
        if not local or "." not in domain:
            raise ValueError("Invalid email address")
        return value.strip().lower()

    @field_validator("permissions")
    @classmethod
    def validate_grid(cls, value):
        return _check_grid(value)


class InvitationResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    admin_role: AdminRole
    permissions: Dict[str, List[str]]
    status: str
    expires_at: datetime
    created_at: datetime
    created_by_id: Optional[str] = None
    used_at: Optional[datetime] = None
    is_expired: bool = False

    class Config:
        from_attributes = True

    @model_validator(mode="after")
    def compute_is_expired(self):
        self.is_expired = self.status == "PENDING" and utcnow() > self.expires_at
        return self


class InvitationWithCode(InvitationResponse):
    """Returned once at creation — includes the plain access code to deliver."""
    code: str


class ExpireSweepResponse(BaseModel):
    expired: int


# ---------------------------------------------------------------------------
# Access code verification and passwords
# ---------------------------------------------------------------------------

class VerifyCodeRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    code: str = Field(..., min_length=1, max_length=64)


class VerifyCodeResponse(BaseModel):
    user: UserSummary
    admin_access: AdminAccessResponse
    needs_password_setup: bool


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value):
        return _check_password(value)


class SetPasswordRequest(BaseModel):
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value):
        return _check_password(value)


DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    """Success wrapper: ``{"success": true, "data": ...}``"""
    success: bool = True
    data: DataT
