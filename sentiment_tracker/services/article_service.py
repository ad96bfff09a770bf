"""News article creation and aggregation."""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from sentiment_tracker.core.errors import ConflictError, ValidationError
from sentiment_tracker.models import ArticleTickerSentiment, NewsArticle, Ticker
from sentiment_tracker.services.sentiment_service import SentimentService, to_label, to_sentiment_score
from sentiment_tracker.utils.fingerprint import compute_article_id, extract_source_domain
from sentiment_tracker.utils.time import ensure_utc

logger = logging.getLogger(__name__)

MAX_URL_LENGTH = 2048


@dataclass
class TickerSentimentView:
    """One ticker's sentiment as attached to an article listing."""
    ticker_id: int
    symbol: str
    ticker_sentiment_score: Optional[Decimal]
    ticker_sentiment_label: Optional[str]
    relevance_score: Optional[Decimal]


@dataclass
class ArticleWithSentiments:
    """An article plus every per-ticker sentiment recorded for it."""
    article: NewsArticle
    tickers: List[TickerSentimentView] = field(default_factory=list)


class ArticleService:
    """Service for news articles."""

    @staticmethod
    async def create_article(
        db: AsyncSession,
        url: str,
        title: str,
        published_at: Optional[datetime] = None,
        summary: Optional[str] = None,
        source_domain: Optional[str] = None,
        overall_sentiment_score=None,
        overall_sentiment_label: Optional[str] = None
    ) -> NewsArticle:
        """
        Store a news article keyed by its URL fingerprint.

        The source domain defaults to the URL host.

        Raises:
            ValidationError: If url or title is blank or a field is malformed
            ConflictError: If an article with the same URL already exists
        """
        if not isinstance(url, str) or not url.strip():
            raise ValidationError("Missing or invalid url")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Missing or invalid title")

        normalized_url = url.strip()
        if len(normalized_url) > MAX_URL_LENGTH:
            raise ValidationError(f"url must be at most {MAX_URL_LENGTH} characters")

        article = NewsArticle(
            article_id=compute_article_id(normalized_url),
            url=normalized_url,
            title=title.strip(),
            summary=summary,
            source_domain=source_domain or extract_source_domain(normalized_url),
            overall_sentiment_score=to_sentiment_score(overall_sentiment_score, "overallSentimentScore"),
            overall_sentiment_label=to_label(overall_sentiment_label, "overallSentimentLabel"),
            published_at=ensure_utc(published_at)
        )
        db.add(article)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.info(f"Article already exists: {normalized_url}")
            raise ConflictError("Article already exists")

        await db.refresh(article)
        logger.info(f"Created article {article.article_id} ({article.source_domain})")
        return article

    @staticmethod
    async def get_article(db: AsyncSession, article_id: str) -> Optional[NewsArticle]:
        """Get article by fingerprint id."""
        result = await db.execute(select(NewsArticle).where(NewsArticle.article_id == article_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def list_articles(
        db: AsyncSession,
        symbol: Optional[str] = None
    ) -> List[ArticleWithSentiments]:
        """
        List articles with their per-ticker sentiments attached.

        Articles are ordered newest published first, unpublished (NULL) last.
        With a symbol filter only articles carrying a sentiment row for a
        ticker with that symbol (any type) are returned; an unknown symbol
        yields an empty list. The attached sentiment list is always complete,
        not just the filtered ticker.
        """
        query = select(NewsArticle)

        if symbol is not None:
            symbol = symbol.strip()
            ticker_ids = list((await db.execute(
                select(Ticker.ticker_id).where(Ticker.symbol == symbol)
            )).scalars().all())
            if not ticker_ids:
                logger.debug(f"No ticker with symbol {symbol}; empty article list")
                return []

            query = query.join(
                ArticleTickerSentiment,
                ArticleTickerSentiment.article_id == NewsArticle.article_id
            ).where(ArticleTickerSentiment.ticker_id.in_(ticker_ids))

        query = query.order_by(
            NewsArticle.published_at.is_(None),
            NewsArticle.published_at.desc(),
            NewsArticle.created_at.desc()
        )
        result = await db.execute(query)

        # A symbol listed as both stock and crypto joins one article twice
        articles: List[NewsArticle] = []
        seen = set()
        for article in result.scalars().all():
            if article.article_id in seen:
                continue
            seen.add(article.article_id)
            articles.append(article)

        rows = await SentimentService.list_for_articles(db, [a.article_id for a in articles])
        by_article = {a.article_id: ArticleWithSentiments(article=a) for a in articles}
        for sentiment, ticker_symbol in rows:
            by_article[sentiment.article_id].tickers.append(TickerSentimentView(
                ticker_id=sentiment.ticker_id,
                symbol=ticker_symbol,
                ticker_sentiment_score=sentiment.ticker_sentiment_score,
                ticker_sentiment_label=sentiment.ticker_sentiment_label,
                relevance_score=sentiment.relevance_score
            ))

        return [by_article[a.article_id] for a in articles]
