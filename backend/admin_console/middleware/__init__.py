"""Middleware modules for production-ready features"""
from admin_console.middleware.monitoring import (
    MonitoringMiddleware,
    record_audit_write_failure,
    record_authorization_denial,
    record_invitation_transition,
    record_verification,
)
from admin_console.middleware.rate_limit import limiter, get_rate_limit

__all__ = [
    "MonitoringMiddleware",
    "record_audit_write_failure",
    "record_authorization_denial",
    "record_invitation_transition",
    "record_verification",
    "limiter",
    "get_rate_limit"
]
