"""AdminInvitation model — one-time access-code invitations"""
from sqlalchemy import Column, DateTime, ForeignKey, Index, JSON, String, text
from sqlalchemy.orm import relationship

from admin_console.database import Base
from admin_console.models.user import generate_uuid_string
from admin_console.utils.clock import utcnow


class AdminInvitation(Base):
    """An invitation to become an administrator.

    Status moves one way: PENDING -> USED | EXPIRED | REVOKED. The partial
    unique index allows any number of terminal rows per email but only one
    PENDING row, so concurrent creates for the same email cannot both succeed.
    """

    __tablename__ = "admin_invitations"
    __table_args__ = (
        Index(
            "uq_admin_invitations_pending_email",
            "email",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid_string)
    email = Column(String(255), nullable=False, index=True)          # stored lower-cased
    name = Column(String(255), nullable=True)
    code = Column(String(32), unique=True, nullable=False)            # ADMIN-XXXXXXXX, upper case
    admin_role = Column(String(30), nullable=False)
    permissions = Column(JSON, nullable=False, default=dict)          # snapshot applied on provisioning
    status = Column(String(20), nullable=False, default="PENDING", index=True)  # PENDING | USED | EXPIRED | REVOKED
    expires_at = Column(DateTime, nullable=False)
    created_by_id = Column(String(36), ForeignKey("admin_access.id", ondelete="SET NULL"), nullable=True)
    used_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Relationships
    created_by = relationship("AdminAccess", back_populates="invitations", foreign_keys=[created_by_id])
