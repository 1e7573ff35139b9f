"""User model — platform accounts that administrators are provisioned into"""
import uuid

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship

from admin_console.database import Base
from admin_console.utils.clock import utcnow


def generate_uuid_string():
    """Generate UUID as string for SQLite compatibility"""
    return str(uuid.uuid4())


class User(Base):
    """A platform account.

    Only the columns the admin subsystem reads or writes live here; the rest of
    the profile belongs to the end-user site.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid_string)
    email = Column(String(255), unique=True, nullable=False, index=True)   # stored lower-cased
    name = Column(String(255), nullable=True)
    hashed_password = Column(String(255), nullable=True)
    email_verified = Column(Boolean, default=False, nullable=False)
    role = Column(String(20), default="USER", nullable=False)               # USER | ADMIN
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    admin_access = relationship("AdminAccess", back_populates="user", uselist=False)
