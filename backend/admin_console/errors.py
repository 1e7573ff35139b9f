"""
Exception hierarchy for the admin console.

Services raise these; ``main.py`` renders them as
``{"success": false, "error": <code>, "message": <message>}`` with the
matching HTTP status. Messages are safe to show to the caller: dependency
details are logged, never attached to the exception message.

Categories:
    - AuthenticationRequired: no session
    - AuthorizationDenied: session present, missing role/permission/active access
    - NotFound: id or key has no match
    - Conflict: duplicate PENDING invitation, email already administered
    - InvitationExpired / InvalidAccessCode: access-code verification failures
    - IncorrectPassword: current-password check failed
    - ValidationFailed: malformed input the schemas could not catch
    - DependencyFailure: persistence or hashing collaborator error
"""
from typing import Any, Dict, Optional


class AdminConsoleError(Exception):
    """
    Base exception for all admin console errors.

    Attributes:
        message: Human-readable error description, safe for clients
        code: Stable error code for programmatic handling
        status_code: HTTP status used when rendered by the API layer
        details: Optional dict with additional context (logged only)
    """

    code: str = "admin_console_error"
    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class AuthenticationRequired(AdminConsoleError):
    code = "not_authenticated"
    status_code = 401
    default_message = "Not authenticated"


class AuthorizationDenied(AdminConsoleError):
    code = "not_authorized"
    status_code = 403
    default_message = "Not authorized"


class NotFound(AdminConsoleError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class Conflict(AdminConsoleError):
    code = "conflict"
    status_code = 409
    default_message = "Conflict"


class InvalidAccessCode(AdminConsoleError):
    """Raised for every non-matching verification so email/code pairs cannot be enumerated."""

    code = "invalid_access_code"
    status_code = 401
    default_message = "Invalid access code"


class InvitationExpired(AdminConsoleError):
    code = "access_code_expired"
    status_code = 410
    default_message = "Access code has expired"


class IncorrectPassword(AdminConsoleError):
    code = "incorrect_password"
    status_code = 400
    default_message = "Current password is incorrect"


class ValidationFailed(AdminConsoleError):
    code = "validation_failed"
    status_code = 422
    default_message = "Invalid input"


class DependencyFailure(AdminConsoleError):
    """Persistence or hashing failure. The message is always opaque."""

    code = "internal_error"
    status_code = 500
    default_message = "An unexpected error occurred"
