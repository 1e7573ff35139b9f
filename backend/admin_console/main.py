"""FastAPI application entry point"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from prometheus_fastapi_instrumentator import Instrumentator

from admin_console.api import admin, audit_logs, auth, health, invitations
from admin_console.config import settings
from admin_console.database import dispose_engine, init_engine
from admin_console.errors import AdminConsoleError
from admin_console.middleware.rate_limit import limiter
from admin_console.utils.logger import logger, setup_logging

# Setup logging
setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup
    init_engine()
    logger.info("Admin console starting up", extra={
        "action": "startup",
        "status": "rate_limiting" if settings.RATE_LIMIT_ENABLED else "rate_limiting_disabled",
    })
    yield
    # Shutdown
    dispose_engine()
    logger.info("Admin console shutting down", extra={"action": "shutdown"})


# Create FastAPI app
app = FastAPI(
    title="Admin Console",
    description="Admin access control, invitations and audit ledger for the platform",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ===== Middleware Setup =====

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Monitoring middleware
if settings.METRICS_ENABLED:
    from admin_console.middleware.monitoring import MonitoringMiddleware
    app.add_middleware(MonitoringMiddleware)

    # Prometheus metrics
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_respect_env_var=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/metrics", "/health", "/health/ready", "/health/live"],
        inprogress_name="admin_console_requests_inprogress",
        inprogress_labels=True
    )
    instrumentator.instrument(app)
    instrumentator.expose(app, endpoint=settings.METRICS_PATH, include_in_schema=False)

# Rate limiting (decorated routes need the limiter even when it is disabled)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors"""
    logger.warning(
        "Rate limit exceeded",
        extra={"action": "rate_limited", "status": 429}
    )
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please try again later."
        }
    )

# ===== Route Setup =====

# Include routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(auth.jwks_router)
app.include_router(admin.router)
app.include_router(invitations.router)
app.include_router(audit_logs.router)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "service": "admin-console",
        "version": "0.1.0",
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
        "metrics": settings.METRICS_PATH if settings.METRICS_ENABLED else None
    }


# ===== Error Handlers =====

@app.exception_handler(AdminConsoleError)
async def admin_console_exception_handler(request: Request, exc: AdminConsoleError):
    """Render service errors as the standard failure envelope"""
    if exc.status_code >= 500:
        logger.error(
            f"Request failed: {exc.message}",
            extra={"action": exc.code, "status": exc.status_code}
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.code,
            "message": exc.message
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for uncaught errors"""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={"action": "unhandled_exception"},
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "internal_error",
            "message": "An unexpected error occurred. Please contact support."
        }
    )
