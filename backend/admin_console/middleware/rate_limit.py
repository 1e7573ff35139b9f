"""Rate limiting middleware for API protection"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
from admin_console.config import settings


def get_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting

    Credential endpoints (sign-in, access-code verification) are called
    before any session exists, so the client address is the only stable key.
    Authenticated callers share the per-address bucket as well.
    """
    return get_remote_address(request)


# Create limiter instance
limiter = Limiter(
    key_func=get_identifier,
    default_limits=settings.RATE_LIMIT_DEFAULT,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


# Rate limit configurations for different endpoints
RATE_LIMITS = {
    # Credential endpoints - guessing protection
    "verify_code": settings.RATE_LIMIT_VERIFY_CODE,
    "token": settings.RATE_LIMIT_TOKEN,
    "change_password": "10/minute",

    # Admin endpoints
    "admin_write": "50/hour",
    "admin_read": "200/hour",
}


def get_rate_limit(endpoint: str) -> str:
    """Get rate limit for specific endpoint"""
    return RATE_LIMITS.get(endpoint, settings.RATE_LIMIT_DEFAULT[0])
