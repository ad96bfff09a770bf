"""Ticker registry model."""
import enum
from sqlalchemy import Column, String, Integer, DateTime, Enum, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from sentiment_tracker.core.database import Base


class TickerType(str, enum.Enum):
    """Asset class of a ticker."""
    STOCK = "stock"
    CRYPTO = "crypto"


class Ticker(Base):
    """A tradable symbol; the same symbol may exist once per type."""

    __tablename__ = "tickers"
    __table_args__ = (
        UniqueConstraint("symbol", "ticker_type", name="tickers_symbol_type_uq"),
        Index("tickers_symbol_idx", "symbol"),
        Index("tickers_type_idx", "ticker_type"),
    )

    ticker_id = Column(Integer, primary_key=True, autoincrement=True)
    symbol = Column(String(32), nullable=False)
    type = Column(
        "ticker_type",
        Enum(TickerType, name="ticker_type", values_callable=lambda members: [m.value for m in members]),
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    # Deletes are restricted by the database while entries or sentiments reference the ticker
    watchlist_entries = relationship("WatchlistEntry", back_populates="ticker", passive_deletes="all")
    article_sentiments = relationship("ArticleTickerSentiment", back_populates="ticker", passive_deletes="all")
