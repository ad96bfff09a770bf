"""Authentication service turning verified identities into sessions."""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from sentiment_tracker.core.config import settings
from sentiment_tracker.models import User
from sentiment_tracker.providers.oidc import IdentityClaims
from sentiment_tracker.services.session_service import SessionService
from sentiment_tracker.services.user_service import UserService
from sentiment_tracker.utils.time import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a completed login."""
    user: User
    session_id: str
    expires_at: datetime


class AuthService:
    """Service for login and logout."""

    @staticmethod
    def session_lifetime() -> timedelta:
        return timedelta(minutes=settings.session_ttl_minutes)

    @staticmethod
    async def complete_login(
        db: AsyncSession,
        identity: IdentityClaims,
        now: Optional[datetime] = None
    ) -> LoginResult:
        """
        Finish a login for a verified identity.

        Creates the user on first login and always issues a new session;
        sessions are never refreshed in place.
        """
        user = await UserService.get_or_create_from_identity(db, identity)

        expires_at = (now or utcnow()) + AuthService.session_lifetime()
        session_id = await SessionService.create_session(db, user.user_id, expires_at)

        logger.info(f"User {user.user_id} logged in")
        return LoginResult(user=user, session_id=session_id, expires_at=expires_at)

    @staticmethod
    async def logout(db: AsyncSession, session_id: Optional[str]) -> None:
        """Revoke a session if one was presented."""
        if not session_id:
            return
        await SessionService.delete_session(db, session_id)
