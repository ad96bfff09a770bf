"""User service for registration and notification preferences."""
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from sentiment_tracker.core.errors import ConflictError, NotFoundError, ValidationError
from sentiment_tracker.models import User
from sentiment_tracker.providers.oidc import IdentityClaims

logger = logging.getLogger(__name__)


class UserService:
    """Service for user management."""

    @staticmethod
    async def get_user(db: AsyncSession, user_id: str) -> Optional[User]:
        """Get user by identity provider subject id."""
        result = await db.execute(select(User).where(User.user_id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def require_user(db: AsyncSession, user_id: str) -> User:
        """Get user or raise NotFoundError."""
        user = await UserService.get_user(db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    async def register_user(
        db: AsyncSession,
        user_id: str,
        email: str,
        username: Optional[str] = None
    ) -> User:
        """
        Register a user explicitly.

        Args:
            db: Database session
            user_id: Identity provider subject id
            email: Email address (unique)
            username: Optional display name (unique)

        Returns:
            Created User object

        Raises:
            ValidationError: If user_id or email is blank
            ConflictError: If the id, email or username is already taken
        """
        if not user_id or not user_id.strip():
            raise ValidationError("userId is required")
        if not email or not email.strip():
            raise ValidationError("email is required")

        user = User(
            user_id=user_id.strip(),
            email=email.strip(),
            username=username.strip() if username and username.strip() else None
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning(f"Registration failed: duplicate user {user_id} / {email}")
            raise ConflictError("User already exists")

        await db.refresh(user)
        logger.info(f"Registered user {user.user_id} ({user.email})")
        return user

    @staticmethod
    async def get_or_create_from_identity(db: AsyncSession, identity: IdentityClaims) -> User:
        """
        Return the user for a verified identity, creating it on first login.

        Existing users are returned unchanged.
        """
        user = await UserService.get_user(db, identity.subject)
        if user:
            return user

        if not identity.email:
            raise ValidationError("Identity provider did not supply an email address")

        logger.info(f"First login for subject {identity.subject}, creating user")
        try:
            return await UserService.register_user(
                db, identity.subject, identity.email, identity.username
            )
        except ConflictError:
            if not identity.username:
                raise
            # Usernames are unique but not owned by the provider; retry without one
            logger.warning(f"Username {identity.username} taken, creating {identity.subject} without it")
            return await UserService.register_user(db, identity.subject, identity.email)

    @staticmethod
    async def set_notifications(db: AsyncSession, user_id: str, enabled: bool) -> bool:
        """Toggle the user's global notification flag."""
        user = await UserService.require_user(db, user_id)

        user.notification_enabled = enabled
        await db.commit()
        logger.info(f"User {user_id} notifications set to {enabled}")

        return True
