"""User model."""
from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.orm import relationship, validates
from datetime import datetime, timezone
from sentiment_tracker.core.database import Base


class User(Base):
    """User keyed by the identity provider's subject id."""

    __tablename__ = "users"

    user_id = Column(String(191), primary_key=True)
    email = Column(String(254), unique=True, nullable=False, index=True)
    username = Column(String(191), unique=True, nullable=True)
    notification_enabled = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    watchlist_entries = relationship(
        "WatchlistEntry", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    sessions = relationship(
        "Session", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    @validates('email')
    def validate_email(self, key, value):
        """Emails are stored trimmed and must be non-empty."""
        if value is None or not value.strip():
            raise ValueError("email must not be empty")
        return value.strip()
