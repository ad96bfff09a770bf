"""News article and per-ticker sentiment models."""
from sqlalchemy import Column, String, Integer, Text, Numeric, DateTime, ForeignKey, Index, PrimaryKeyConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from sentiment_tracker.core.database import Base


class NewsArticle(Base):
    """A news article keyed by the SHA-256 fingerprint of its URL."""

    __tablename__ = "news_articles"
    __table_args__ = (
        Index("news_articles_published_idx", "published_at"),
        Index("news_articles_source_domain_idx", "source_domain"),
    )

    article_id = Column(String(64), primary_key=True)
    url = Column(String(2048), nullable=False)
    source_domain = Column(String(255), nullable=True)
    title = Column(Text, nullable=False)
    summary = Column(Text, nullable=True)
    overall_sentiment_score = Column(Numeric(5, 4), nullable=True)  # -1.0000..1.0000
    overall_sentiment_label = Column(String(32), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    ticker_sentiments = relationship(
        "ArticleTickerSentiment", back_populates="article", cascade="all, delete-orphan", passive_deletes=True
    )


class ArticleTickerSentiment(Base):
    """Sentiment of one article towards one ticker."""

    __tablename__ = "news_article_tickers"
    __table_args__ = (
        PrimaryKeyConstraint("article_id", "ticker_id", name="news_article_tickers_pk"),
    )

    article_id = Column(
        String(64),
        ForeignKey("news_articles.article_id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )
    ticker_id = Column(
        Integer,
        ForeignKey("tickers.ticker_id", ondelete="RESTRICT", onupdate="CASCADE"),
        nullable=False,
    )
    ticker_sentiment_score = Column(Numeric(5, 4), nullable=True)  # -1.0000..1.0000
    ticker_sentiment_label = Column(String(32), nullable=True)
    relevance_score = Column(Numeric(4, 3), nullable=True)  # 0.000..1.000

    # Relationships
    article = relationship("NewsArticle", back_populates="ticker_sentiments")
    ticker = relationship("Ticker", back_populates="article_sentiments")
