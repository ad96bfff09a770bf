"""Watchlist entry model linking users to tickers."""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from sentiment_tracker.core.database import Base


class WatchlistEntry(Base):
    """One tracked ticker for one user, with its own notification flag."""

    __tablename__ = "user_watchlist"
    __table_args__ = (
        UniqueConstraint("user_id", "ticker_id", name="user_watchlist_user_ticker_uq"),
        Index("user_watchlist_user_idx", "user_id"),
        Index("user_watchlist_ticker_idx", "ticker_id"),
    )

    watchlist_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        String(191),
        ForeignKey("users.user_id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )
    ticker_id = Column(
        Integer,
        ForeignKey("tickers.ticker_id", ondelete="RESTRICT", onupdate="CASCADE"),
        nullable=False,
    )
    notification_enabled = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationships
    user = relationship("User", back_populates="watchlist_entries")
    ticker = relationship("Ticker", back_populates="watchlist_entries")
