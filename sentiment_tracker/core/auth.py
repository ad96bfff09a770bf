"""Session cookie authentication for API requests."""
from datetime import datetime
from typing import Optional
from fastapi import Depends
from fastapi.security import APIKeyCookie
from sqlalchemy.ext.asyncio import AsyncSession

from sentiment_tracker.core.config import settings
from sentiment_tracker.core.database import get_db
from sentiment_tracker.core.errors import PermissionDeniedError, UnauthorizedError
from sentiment_tracker.models import User
from sentiment_tracker.services.session_service import ResolvedSession, SessionService
from sentiment_tracker.utils.time import ensure_utc, utcnow

# Cookie scheme for session extraction; missing cookies are handled by the gate
session_cookie = APIKeyCookie(name=settings.session_cookie_name, auto_error=False)


def check_session(resolved: Optional[ResolvedSession], now: datetime) -> User:
    """
    Decide whether a looked-up session authenticates the request.

    Args:
        resolved: Result of the session store lookup
        now: Current instant

    Returns:
        The session's user

    Raises:
        UnauthorizedError: If there is no session or it has expired
    """
    if resolved is None:
        raise UnauthorizedError("Unauthorized")

    if ensure_utc(resolved.expires_at) <= ensure_utc(now):
        raise UnauthorizedError("Session expired")

    return resolved.user


async def authenticate_session(
    db: AsyncSession,
    session_id: Optional[str],
    now: Optional[datetime] = None
) -> User:
    """Resolve a session credential into its user or raise UnauthorizedError."""
    if not session_id:
        raise UnauthorizedError("Unauthorized")

    resolved = await SessionService.resolve_session(db, session_id)
    return check_session(resolved, now or utcnow())


async def get_current_user(
    session_id: Optional[str] = Depends(session_cookie),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    FastAPI dependency to get the user behind the session cookie.

    Handlers receive the user as a parameter; nothing is attached to the
    request object.
    """
    return await authenticate_session(db, session_id)


def ensure_owner(user_id: str, current_user: User) -> None:
    """Reject requests that address another user's rows."""
    if user_id != current_user.user_id:
        raise PermissionDeniedError("Cannot act on another user's data")
