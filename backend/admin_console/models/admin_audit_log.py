"""Admin audit log model"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from admin_console.database import Base
from admin_console.models.user import generate_uuid_string
from admin_console.utils.clock import utcnow


class AdminAuditLog(Base):
    """AdminAuditLog model - append-only record of privileged admin actions.

    ``id`` gives the ledger its insertion order; ``log_id`` is the public
    identifier and feeds the hash chain.
    """

    __tablename__ = "admin_audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    log_id = Column(String(36), default=generate_uuid_string, unique=True, nullable=False, index=True)
    admin_id = Column(String(36), ForeignKey("admin_access.id", ondelete="RESTRICT"), nullable=False, index=True)
    action = Column(String(20), nullable=False, index=True)       # CREATE | UPDATE | DELETE | LOGIN | ERROR
    module = Column(String(50), nullable=False, index=True)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(36), nullable=True)
    description = Column(Text, nullable=False)
    changes = Column(JSON, nullable=True)                          # {"before": ..., "after": ...}
    previous_hash = Column(String(64), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Relationships
    admin = relationship("AdminAccess", back_populates="audit_logs")
