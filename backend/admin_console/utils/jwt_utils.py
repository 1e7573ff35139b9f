"""Session tokens — RS256 keypair management, signing, verification, and JWKS"""
import base64
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from admin_console.config import settings
from admin_console.errors import AuthenticationRequired
from admin_console.utils.logger import logger

SESSION_TOKEN_TYPE = "session"

# ---------------------------------------------------------------------------
# Keypair management
# ---------------------------------------------------------------------------

_private_key: Any = None   # cryptography RSAPrivateKey object
_public_key: Any = None    # cryptography RSAPublicKey object


def _load_keypair() -> None:
    """Load or auto-generate the RSA keypair.

    Reads JWT_PRIVATE_KEY from settings (PEM string).
    If absent, generates a fresh RSA-2048 keypair for this process; sessions
    then do not survive a restart.
    """
    global _private_key, _public_key

    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric import rsa

    if settings.JWT_PRIVATE_KEY:
        pem = settings.JWT_PRIVATE_KEY.encode()
        _private_key = serialization.load_pem_private_key(pem, password=None)
        _public_key = _private_key.public_key()
        logger.info("JWT keypair loaded from JWT_PRIVATE_KEY setting")
    else:
        _private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        _public_key = _private_key.public_key()
        logger.warning(
            "JWT_PRIVATE_KEY not set — auto-generated RSA-2048 keypair for this process. "
            "All sessions will be invalidated on restart."
        )


def get_private_key() -> Any:
    """Return the loaded private key, initialising on first call."""
    if _private_key is None:
        _load_keypair()
    return _private_key


def get_public_key() -> Any:
    """Return the loaded public key, initialising on first call."""
    if _public_key is None:
        _load_keypair()
    return _public_key


# ---------------------------------------------------------------------------
# Token creation
# ---------------------------------------------------------------------------

def create_session_token(user_id: str, extra_claims: Dict[str, Any] = None) -> str:
    """Sign and return a session token for ``user_id`` (the ``sub`` claim)."""
    now = int(datetime.now(timezone.utc).timestamp())

    payload: Dict[str, Any] = {
        "sub": user_id,
        "jti": str(uuid.uuid4()),
        "iat": now,
        "exp": now + settings.JWT_SESSION_EXPIRE_SECONDS,
        "type": SESSION_TOKEN_TYPE,
        **(extra_claims or {}),
    }

    headers = {"kid": settings.JWT_KEY_ID} if settings.JWT_KEY_ID else None
    return jwt.encode(payload, get_private_key(), algorithm=settings.JWT_ALGORITHM, headers=headers)


# ---------------------------------------------------------------------------
# Token verification
# ---------------------------------------------------------------------------

def decode_session_token(token: str, db: Session) -> Dict[str, Any]:
    """Verify a session token and return its payload.

    Checks:
    1. Signature validity (RS256 with our public key)
    2. Token not expired (jose handles 'exp')
    3. ``type`` is a session token
    4. jti not in the revoked_tokens table

    Raises:
        AuthenticationRequired: on any verification failure.
    """
    from admin_console.models.revoked_token import RevokedToken

    try:
        payload = jwt.decode(
            token,
            get_public_key(),
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError as exc:
        logger.debug(f"JWT decode failed: {exc}")
        raise AuthenticationRequired("Invalid or expired session")

    if payload.get("type") != SESSION_TOKEN_TYPE or not payload.get("jti") or not payload.get("sub"):
        raise AuthenticationRequired("Invalid or expired session")

    revoked = db.query(RevokedToken).filter(RevokedToken.jti == payload["jti"]).first()
    if revoked:
        raise AuthenticationRequired("Session has been signed out")

    return payload


# ---------------------------------------------------------------------------
# JWKS
# ---------------------------------------------------------------------------

def get_jwks() -> Dict[str, Any]:
    """Return the public key in JWKS format so the other apps can verify sessions."""
    public_key = get_public_key()
    pub_numbers = public_key.public_numbers()

    def _to_base64url(n: int) -> str:
        byte_length = (n.bit_length() + 7) // 8
        return base64.urlsafe_b64encode(n.to_bytes(byte_length, "big")).rstrip(b"=").decode()

    key_entry: Dict[str, Any] = {
        "kty": "RSA",
        "use": "sig",
        "alg": settings.JWT_ALGORITHM,
        "n": _to_base64url(pub_numbers.n),
        "e": _to_base64url(pub_numbers.e),
    }

    if settings.JWT_KEY_ID:
        key_entry["kid"] = settings.JWT_KEY_ID

    return {"keys": [key_entry]}
