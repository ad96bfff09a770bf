"""Session store for opaque login tokens."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import secrets

from sentiment_tracker.core.errors import PersistenceError
from sentiment_tracker.models import Session, User
from sentiment_tracker.utils.time import ensure_utc, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedSession:
    """A session row joined to its owner."""
    session_id: str
    user: User
    expires_at: datetime


class SessionService:
    """Service for session persistence.

    The store never judges staleness; it hands back the raw expiry and lets
    the auth gate decide.
    """

    @staticmethod
    def generate_session_id() -> str:
        """Generate a cryptographically random opaque token."""
        return secrets.token_urlsafe(32)

    @staticmethod
    async def create_session(db: AsyncSession, user_id: str, expires_at: datetime) -> str:
        """
        Persist a new session for a user.

        Args:
            db: Database session
            user_id: Owning user
            expires_at: Absolute expiry instant

        Returns:
            The new session id

        Raises:
            PersistenceError: If the session could not be stored (e.g. unknown user)
        """
        session_id = SessionService.generate_session_id()
        db.add(Session(
            session_id=session_id,
            user_id=user_id,
            expires_at=ensure_utc(expires_at)
        ))
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.error(f"Failed to create session for user {user_id}: {str(e)}")
            raise PersistenceError("Failed to create session")

        logger.info(f"Created session for user {user_id} expiring at {expires_at.isoformat()}")
        return session_id

    @staticmethod
    async def resolve_session(db: AsyncSession, session_id: str) -> Optional[ResolvedSession]:
        """Look up a session and its user; None if no row matches."""
        result = await db.execute(
            select(Session, User)
            .join(User, Session.user_id == User.user_id)
            .where(Session.session_id == session_id)
            .limit(1)
        )
        row = result.first()
        if row is None:
            logger.debug("Session lookup missed")
            return None

        session, user = row
        return ResolvedSession(
            session_id=session.session_id,
            user=user,
            expires_at=ensure_utc(session.expires_at)
        )

    @staticmethod
    async def delete_session(db: AsyncSession, session_id: str) -> None:
        """Delete a session; deleting an absent session is not an error."""
        result = await db.execute(delete(Session).where(Session.session_id == session_id))
        await db.commit()
        if result.rowcount:
            logger.info("Session deleted")

    @staticmethod
    async def delete_expired_sessions(db: AsyncSession, now: Optional[datetime] = None) -> int:
        """Remove every session whose expiry is at or before now."""
        now = ensure_utc(now) if now else utcnow()
        result = await db.execute(delete(Session).where(Session.expires_at <= now))
        await db.commit()

        count = result.rowcount or 0
        logger.info(f"Deleted {count} expired sessions")
        return count
