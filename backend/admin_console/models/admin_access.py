"""AdminAccess model — one administrator record per user"""
from sqlalchemy import Column, DateTime, ForeignKey, JSON, String
from sqlalchemy.orm import relationship

from admin_console.database import Base
from admin_console.models.user import generate_uuid_string
from admin_console.utils.clock import utcnow


class AdminAccess(Base):
    """Administrative access granted to a user.

    ``permissions`` starts as the role default (or the invitation's grid) and
    is edited independently of ``admin_role`` afterwards. Records are never
    hard-deleted: INACTIVE and SUSPENDED stand in for removal.
    """

    __tablename__ = "admin_access"

    id = Column(String(36), primary_key=True, default=generate_uuid_string)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="RESTRICT"), unique=True, nullable=False, index=True)
    admin_role = Column(String(30), nullable=False)                 # SUPER_ADMIN | CONTENT_ADMIN | ...
    permissions = Column(JSON, nullable=False, default=dict)        # {"users": ["read"], ...}
    status = Column(String(20), nullable=False, default="ACTIVE", index=True)  # ACTIVE | INACTIVE | SUSPENDED
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="admin_access")
    invitations = relationship(
        "AdminInvitation",
        back_populates="created_by",
        foreign_keys="AdminInvitation.created_by_id",
        order_by="AdminInvitation.created_at.desc()",
    )
    audit_logs = relationship("AdminAuditLog", back_populates="admin")
