"""Session, access-code and password endpoints"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from admin_console.api.deps import get_session_payload, get_session_user_id, require_admin
from admin_console.config import settings
from admin_console.database import get_db
from admin_console.errors import AuthenticationRequired, DependencyFailure
from admin_console.middleware.rate_limit import get_rate_limit, limiter
from admin_console.models.admin_access import AdminAccess
from admin_console.models.revoked_token import RevokedToken
from admin_console.models.user import User
from admin_console.schemas.admin import (
    AdminAccessResponse,
    ChangePasswordRequest,
    Envelope,
    SetPasswordRequest,
    UserSummary,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from admin_console.schemas.auth import RevokeResponse, TokenRequest, TokenResponse
from admin_console.services import admins as admin_service
from admin_console.services import invitations as invitation_service
from admin_console.utils.access_codes import normalize_access_code, normalize_email
from admin_console.utils.jwt_utils import create_session_token, get_jwks
from admin_console.utils.logger import logger
from admin_console.utils.passwords import verify_password

router = APIRouter(prefix="/auth", tags=["authentication"])
jwks_router = APIRouter(tags=["authentication"])


def _password_matches(password: str, hashed: str) -> bool:
    if verify_password(password, hashed):
        return True
    # Access codes are case-insensitive until a real password replaces them
    code = normalize_access_code(password)
    if code == password or not code.startswith(settings.ACCESS_CODE_PREFIX):
        return False
    return verify_password(code, hashed)


# ---------------------------------------------------------------------------
# POST /auth/token
# ---------------------------------------------------------------------------

@router.post("/token", response_model=Envelope[TokenResponse])
@limiter.limit(get_rate_limit("token"))
def issue_token(
    request: Request,
    credentials: TokenRequest,
    db: Session = Depends(get_db),
):
    """Exchange email + password for a signed session token.

    Right after access-code verification the password is the access code
    itself. The returned JWT is sent as `Authorization: Bearer <token>` on
    every admin call.
    """
    email = normalize_email(credentials.email)
    try:
        user = db.query(User).filter(User.email == email).first()
    except SQLAlchemyError:
        logger.error("Sign-in lookup failed", exc_info=True)
        raise DependencyFailure("Failed to sign in")

    if user is None or not _password_matches(credentials.password, user.hashed_password or ""):
        logger.warning("Sign-in rejected", extra={"action": "sign_in"})
        raise AuthenticationRequired("Invalid email or password")

    token = create_session_token(user.id)
    logger.info("Session issued", extra={"user_id": user.id, "action": "sign_in"})
    return {
        "success": True,
        "data": TokenResponse(access_token=token, expires_in=settings.JWT_SESSION_EXPIRE_SECONDS),
    }


# ---------------------------------------------------------------------------
# POST /auth/logout
# ---------------------------------------------------------------------------

@router.post("/logout", response_model=Envelope[RevokeResponse])
def logout(
    payload: Optional[Dict[str, Any]] = Depends(get_session_payload),
    db: Session = Depends(get_db),
):
    """Revoke the presented session token.

    The jti goes to the revoked_tokens table; every later request carrying the
    token is rejected with 401 until it would have expired anyway.
    """
    if payload is None:
        raise AuthenticationRequired()

    jti = payload["jti"]
    expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc).replace(tzinfo=None)

    try:
        db.add(RevokedToken(jti=jti, expires_at=expires_at))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Session revocation failed", extra={"user_id": payload["sub"]}, exc_info=True)
        raise DependencyFailure("Failed to sign out")

    logger.info("Session revoked", extra={"user_id": payload["sub"], "action": "sign_out"})
    return {"success": True, "data": RevokeResponse(revoked=True)}


# ---------------------------------------------------------------------------
# POST /auth/verify-code
# ---------------------------------------------------------------------------

@router.post("/verify-code", response_model=Envelope[VerifyCodeResponse])
@limiter.limit(get_rate_limit("verify_code"))
def verify_code(
    request: Request,
    body: VerifyCodeRequest,
    db: Session = Depends(get_db),
):
    """Exchange an email + access code for an ACTIVE admin account.

    Wrong email, wrong code, revoked and already-used codes all answer
    401 "Invalid access code"; only a matching expired code answers 410.
    """
    result = invitation_service.verify_access_code(db, body.email, body.code)
    return {
        "success": True,
        "data": VerifyCodeResponse(
            user=UserSummary.model_validate(result.user),
            admin_access=AdminAccessResponse.model_validate(result.admin_access),
            needs_password_setup=result.needs_password_setup,
        ),
    }


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

@router.post("/change-password", response_model=Envelope[dict])
@limiter.limit(get_rate_limit("change_password"))
def change_password(
    request: Request,
    body: ChangePasswordRequest,
    user_id: Optional[str] = Depends(get_session_user_id),
    db: Session = Depends(get_db),
):
    """Change the signed-in user's password"""
    if not user_id:
        raise AuthenticationRequired()
    admin_service.change_password(db, user_id, body.current_password, body.new_password)
    return {"success": True, "data": {}}


@router.post("/set-password", response_model=Envelope[dict])
def set_password(
    body: SetPasswordRequest,
    admin: AdminAccess = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Replace the access-code password after the first sign-in"""
    admin_service.set_initial_password(db, admin, body.new_password)
    return {"success": True, "data": {}}


# ---------------------------------------------------------------------------
# GET /.well-known/jwks.json
# ---------------------------------------------------------------------------

@jwks_router.get("/.well-known/jwks.json")
def jwks() -> Dict[str, Any]:
    """Public key set for verifying session tokens in the other apps.

    No authentication required.
    """
    return get_jwks()
