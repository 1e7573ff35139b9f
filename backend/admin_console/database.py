"""Database engine and session management.

The engine is a process-wide resource with an explicit lifecycle:
``init_engine()`` runs once at startup (see ``main.lifespan``) and
``dispose_engine()`` at shutdown. Request handlers never touch the engine
directly; they receive a session through the ``get_db`` dependency.
"""
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from admin_console.config import settings
from admin_console.utils.logger import logger

Base = declarative_base()

_engine: Optional[Engine] = None
SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def init_engine(database_url: Optional[str] = None) -> Engine:
    """Create the engine once and bind the session factory to it."""
    global _engine

    if _engine is not None:
        return _engine

    url = database_url or settings.DATABASE_URL
    if url.startswith("sqlite"):
        # SQLite is used for local runs and tests; no pool tuning applies
        _engine = create_engine(
            url,
            echo=settings.DATABASE_ECHO,
            connect_args={"check_same_thread": False},
        )
    else:
        _engine = create_engine(
            url,
            echo=settings.DATABASE_ECHO,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_timeout=settings.DATABASE_POOL_TIMEOUT,
            pool_recycle=settings.DATABASE_POOL_RECYCLE,
            pool_pre_ping=True,
        )

    SessionLocal.configure(bind=_engine)
    logger.info("Database engine initialised", extra={"action": "db_init"})
    return _engine


def get_engine() -> Engine:
    """Return the initialised engine, creating it from settings on first use."""
    if _engine is None:
        return init_engine()
    return _engine


def dispose_engine() -> None:
    """Close all pooled connections (application shutdown)."""
    global _engine

    if _engine is not None:
        _engine.dispose()
        _engine = None
        logger.info("Database engine disposed", extra={"action": "db_dispose"})


def get_db() -> Generator[Session, None, None]:
    """
    Dependency that provides a request-scoped database session.

    Services own their commits; anything left uncommitted when the request
    ends is rolled back on close.
    """
    get_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
