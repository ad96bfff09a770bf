"""Authentication API routes (OIDC login, session inspection, logout)."""
from functools import lru_cache
from typing import Optional
from fastapi import APIRouter, Cookie, Depends
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from sentiment_tracker.api.schemas import SuccessResponse, UserResponse, user_to_dict
from sentiment_tracker.core.auth import get_current_user, session_cookie
from sentiment_tracker.core.config import settings
from sentiment_tracker.core.database import get_db
from sentiment_tracker.core.errors import UnauthorizedError, ValidationError
from sentiment_tracker.models import User
from sentiment_tracker.providers.oidc import (
    OIDCError,
    OIDCProvider,
    compute_code_challenge,
    generate_code_verifier,
    generate_state,
)
from sentiment_tracker.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["authentication"])
logger = logging.getLogger(__name__)

CODE_VERIFIER_COOKIE = "code_verifier"
AUTH_STATE_COOKIE = "auth_state"
# PKCE cookies only need to survive the round trip to the IdP
PKCE_COOKIE_MAX_AGE = 600


@lru_cache()
def get_oidc_provider() -> OIDCProvider:
    """Process-wide OIDC provider; overridable in tests."""
    return OIDCProvider()


def _set_pkce_cookie(response: RedirectResponse, key: str, value: str) -> None:
    response.set_cookie(
        key=key,
        value=value,
        max_age=PKCE_COOKIE_MAX_AGE,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax"
    )


@router.get("/login")
async def login(provider: OIDCProvider = Depends(get_oidc_provider)):
    """Start the authorization code flow and redirect to the identity provider."""
    code_verifier = generate_code_verifier()
    state = generate_state()

    try:
        url = await provider.build_authorization_url(compute_code_challenge(code_verifier), state)
    except OIDCError as e:
        logger.error(f"Failed to build authorization URL: {e}")
        raise UnauthorizedError("Identity provider unavailable")

    response = RedirectResponse(url=url, status_code=302)
    _set_pkce_cookie(response, CODE_VERIFIER_COOKIE, code_verifier)
    _set_pkce_cookie(response, AUTH_STATE_COOKIE, state)
    return response


@router.get("/callback")
async def callback(
    code: str,
    state: Optional[str] = None,
    code_verifier: Optional[str] = Cookie(default=None, alias=CODE_VERIFIER_COOKIE),
    auth_state: Optional[str] = Cookie(default=None, alias=AUTH_STATE_COOKIE),
    provider: OIDCProvider = Depends(get_oidc_provider),
    db: AsyncSession = Depends(get_db)
):
    """
    Complete the login: exchange the code, get-or-create the user, issue a
    session cookie and redirect to the frontend.
    """
    if not code_verifier:
        raise ValidationError("Missing code verifier")

    if not state or state != auth_state:
        logger.warning("OIDC callback state mismatch")
        raise UnauthorizedError("Invalid state")

    try:
        identity = await provider.exchange_code(code, code_verifier)
    except OIDCError as e:
        logger.warning(f"OIDC code exchange failed: {e}")
        raise UnauthorizedError("Authentication failed")

    result = await AuthService.complete_login(db, identity)

    response = RedirectResponse(url=settings.frontend_url, status_code=302)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=result.session_id,
        max_age=int(AuthService.session_lifetime().total_seconds()),
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax"
    )
    response.delete_cookie(CODE_VERIFIER_COOKIE)
    response.delete_cookie(AUTH_STATE_COOKIE)
    return response


@router.get("/session", response_model=UserResponse)
async def get_session(current_user: User = Depends(get_current_user)):
    """Return the authenticated user."""
    return user_to_dict(current_user)


@router.get("/logout", response_model=SuccessResponse)
async def logout(
    session_id: Optional[str] = Depends(session_cookie),
    db: AsyncSession = Depends(get_db)
):
    """Revoke the current session and clear the cookie; safe to repeat."""
    await AuthService.logout(db, session_id)

    response = JSONResponse(content={"success": True})
    response.delete_cookie(settings.session_cookie_name)
    return response
