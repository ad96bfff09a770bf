"""Per-article, per-ticker sentiment upserts."""
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Tuple, Union
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from sentiment_tracker.core.errors import ConflictError, PersistenceError, ValidationError
from sentiment_tracker.models import ArticleTickerSentiment, Ticker

logger = logging.getLogger(__name__)


class _Unset:
    """Marker for an argument the caller did not supply."""

    def __repr__(self):
        return "UNSET"

    def __bool__(self):
        return False


UNSET: Any = _Unset()

SENTIMENT_PLACES = Decimal("0.0001")
RELEVANCE_PLACES = Decimal("0.001")
MAX_LABEL_LENGTH = 32


def to_score(
    value: Union[Decimal, float, int, str, None],
    field: str,
    low: Decimal,
    high: Decimal,
    places: Decimal
) -> Optional[Decimal]:
    """
    Convert a score to a fixed-point Decimal within [low, high].

    Raises:
        ValidationError: If the value is not numeric or out of range
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        score = Decimal(str(value)).quantize(places)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not score.is_finite() or score < low or score > high:
        raise ValidationError(f"{field} must be between {low} and {high}")
    return score


def to_sentiment_score(value, field: str = "tickerSentimentScore") -> Optional[Decimal]:
    return to_score(value, field, Decimal("-1"), Decimal("1"), SENTIMENT_PLACES)


def to_relevance_score(value, field: str = "relevanceScore") -> Optional[Decimal]:
    return to_score(value, field, Decimal("0"), Decimal("1"), RELEVANCE_PLACES)


def to_label(value: Optional[str], field: str) -> Optional[str]:
    """Sentiment labels are free text of at most 32 characters."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    label = value.strip()
    if len(label) > MAX_LABEL_LENGTH:
        raise ValidationError(f"{field} must be at most {MAX_LABEL_LENGTH} characters")
    return label or None


class SentimentService:
    """Service for article ticker sentiment rows."""

    @staticmethod
    async def get_sentiment(
        db: AsyncSession,
        article_id: str,
        ticker_id: int,
        refresh: bool = False
    ) -> Optional[ArticleTickerSentiment]:
        """Fetch one sentiment row; refresh=True overwrites any in-session copy."""
        query = select(ArticleTickerSentiment).where(
            ArticleTickerSentiment.article_id == article_id,
            ArticleTickerSentiment.ticker_id == ticker_id
        )
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def upsert_sentiment(
        db: AsyncSession,
        article_id: str,
        ticker_id: int,
        score: Any = UNSET,
        label: Any = UNSET,
        relevance: Any = UNSET
    ) -> ArticleTickerSentiment:
        """
        Insert or patch the sentiment of an article towards a ticker.

        Omitted fields (UNSET) are stored as NULL on insert and left untouched
        on update; an explicit None sets the field to NULL. The row is read
        back after commit so the caller sees what was stored.

        Raises:
            ValidationError: If a score is out of range
            ConflictError: If a concurrent upsert inserted the row first
            PersistenceError: If the row cannot be read back after writing
        """
        values = {}
        if score is not UNSET:
            values["ticker_sentiment_score"] = to_sentiment_score(score)
        if label is not UNSET:
            values["ticker_sentiment_label"] = to_label(label, "tickerSentimentLabel")
        if relevance is not UNSET:
            values["relevance_score"] = to_relevance_score(relevance)

        existing = await SentimentService.get_sentiment(db, article_id, ticker_id)

        if existing is None:
            db.add(ArticleTickerSentiment(article_id=article_id, ticker_id=ticker_id, **values))
            action = "Inserted"
        else:
            for key, value in values.items():
                setattr(existing, key, value)
            action = "Updated"

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning(f"Concurrent sentiment upsert for article {article_id} ticker {ticker_id}")
            raise ConflictError("Sentiment row was written concurrently; retry")

        # Read back from the database rather than echoing the in-session object
        row = await SentimentService.get_sentiment(db, article_id, ticker_id, refresh=True)
        if row is None:
            logger.error(f"Sentiment row for article {article_id} ticker {ticker_id} missing after write")
            raise PersistenceError("Failed to upsert article ticker sentiment")

        logger.info(f"{action} sentiment for article {article_id} ticker {ticker_id}")
        return row

    @staticmethod
    async def list_for_articles(
        db: AsyncSession,
        article_ids: List[str]
    ) -> List[Tuple[ArticleTickerSentiment, str]]:
        """All sentiment rows of the given articles with their ticker symbol."""
        if not article_ids:
            return []

        result = await db.execute(
            select(ArticleTickerSentiment, Ticker.symbol)
            .join(Ticker, ArticleTickerSentiment.ticker_id == Ticker.ticker_id)
            .where(ArticleTickerSentiment.article_id.in_(article_ids))
            .order_by(Ticker.symbol, Ticker.ticker_id)
        )
        return [(row[0], row[1]) for row in result.all()]
