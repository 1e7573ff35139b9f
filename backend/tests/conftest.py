"""Pytest configuration and fixtures"""
import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "INFO")

from typing import Callable, Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

import admin_console.models  # noqa: F401  (registers tables on Base)
from admin_console.database import Base, get_db
from admin_console.main import app
from admin_console.models.admin_access import AdminAccess
from admin_console.services.provisioning import grant_admin_access
from admin_console.utils.jwt_utils import create_session_token
from admin_console.utils.permissions import AdminRole, AdminStatus, PermissionGrid

TEST_DATABASE_URL = os.environ["DATABASE_URL"]

engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "password123"


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database session override"""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_admin(db: Session) -> Callable[..., AdminAccess]:
    """Factory: grant admin access directly, bypassing invitations"""

    def _make_admin(
        email: str,
        role: AdminRole = AdminRole.SUPER_ADMIN,
        permissions: Optional[PermissionGrid] = None,
        status: AdminStatus = AdminStatus.ACTIVE,
        password: str = DEFAULT_PASSWORD,
    ) -> AdminAccess:
        result = grant_admin_access(
            db,
            email=email,
            role=role.value,
            password=password,
            permissions=permissions,
        )
        result.admin_access.status = status.value
        db.commit()
        db.refresh(result.admin_access)
        return result.admin_access

    return _make_admin


def headers_for(admin: AdminAccess) -> dict:
    """Bearer session headers for an admin's user"""
    return {"Authorization": f"Bearer {create_session_token(admin.user_id)}"}


@pytest.fixture
def super_admin(make_admin) -> AdminAccess:
    return make_admin("root@example.com", AdminRole.SUPER_ADMIN)


@pytest.fixture
def super_headers(super_admin: AdminAccess) -> dict:
    return headers_for(super_admin)


@pytest.fixture
def viewer(make_admin) -> AdminAccess:
    return make_admin("viewer@example.com", AdminRole.VIEWER)


@pytest.fixture
def viewer_headers(viewer: AdminAccess) -> dict:
    return headers_for(viewer)


@pytest.fixture
def sample_invitation_data() -> dict:
    """Sample invitation data for tests"""
    return {
        "email": "New.Admin@Example.com",
        "admin_role": "CONTENT_ADMIN",
        "name": "New Admin",
    }


@pytest.fixture
def auth_headers() -> Callable[[AdminAccess], dict]:
    """Factory: bearer headers for any admin built in a test"""
    return headers_for
