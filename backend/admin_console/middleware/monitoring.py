"""Monitoring and observability middleware"""
import time
from typing import Callable
from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from admin_console.utils.logger import logger


# ===== Prometheus Metrics =====

# Request metrics
http_requests_total = Counter(
    "admin_console_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "admin_console_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"]
)

# Error metrics
http_errors_total = Counter(
    "admin_console_http_errors_total",
    "Total HTTP errors",
    ["method", "endpoint", "status"]
)

# Access-control metrics
invitations_total = Counter(
    "admin_console_invitations_total",
    "Invitation lifecycle transitions",
    ["transition"]  # created, used, expired, revoked
)

access_code_verifications_total = Counter(
    "admin_console_access_code_verifications_total",
    "Access code verification attempts",
    ["outcome"]  # success, invalid, expired, error
)

authorization_denials_total = Counter(
    "admin_console_authorization_denials_total",
    "Requests rejected by the access gate",
    ["reason"]  # not_authenticated, not_authorized
)

audit_write_failures_total = Counter(
    "admin_console_audit_write_failures_total",
    "Audit entries that could not be written"
)


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Middleware for monitoring and metrics collection"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and collect metrics"""
        start_time = time.time()

        # Extract request details
        method = request.method
        endpoint = request.url.path

        # Add request ID for tracing
        request_id = request.headers.get("x-request-id", f"req_{int(time.time() * 1000)}")
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            status = response.status_code

            duration = time.time() - start_time
            http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=status
            ).inc()

            http_request_duration_seconds.labels(
                method=method,
                endpoint=endpoint
            ).observe(duration)

            # bcrypt makes sign-in and verify slow on purpose; flag only outliers
            if duration > 2.0:
                logger.warning(
                    f"Slow request detected: {method} {endpoint}",
                    extra={
                        "request_id": request_id,
                        "action": "slow_request",
                        "status": status
                    }
                )

            if status >= 400:
                http_errors_total.labels(
                    method=method,
                    endpoint=endpoint,
                    status=status
                ).inc()

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration:.3f}s"

            return response

        except Exception:
            http_errors_total.labels(
                method=method,
                endpoint=endpoint,
                status=500
            ).inc()

            logger.error(
                f"Request failed: {method} {endpoint}",
                extra={"request_id": request_id},
                exc_info=True
            )
            raise


def record_invitation_transition(transition: str, count: int = 1):
    """Record invitation state changes"""
    invitations_total.labels(transition=transition).inc(count)


def record_verification(outcome: str):
    """Record an access code verification outcome"""
    access_code_verifications_total.labels(outcome=outcome).inc()


def record_authorization_denial(reason: str):
    """Record an access gate rejection"""
    authorization_denials_total.labels(reason=reason).inc()


def record_audit_write_failure():
    """Record an audit entry that was dropped"""
    audit_write_failures_total.inc()
