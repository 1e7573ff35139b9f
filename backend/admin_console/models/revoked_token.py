"""RevokedToken model — jti blocklist for signed-out sessions"""
from sqlalchemy import Column, DateTime, Integer, String

from admin_console.database import Base
from admin_console.utils.clock import utcnow


class RevokedToken(Base):
    """Stores revoked session token IDs (jti claims).

    ``POST /auth/logout`` inserts the session's jti here and
    decode_session_token() checks this table on every authenticated request.
    expires_at mirrors the token's original exp so old rows can be pruned safely.
    """

    __tablename__ = "revoked_tokens"

    id = Column(Integer, primary_key=True, index=True)
    jti = Column(String(36), unique=True, nullable=False, index=True)
    revoked_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)  # original token exp — for TTL cleanup
