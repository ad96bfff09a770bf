"""News article and sentiment API routes."""
from decimal import Decimal
from typing import List, Optional, Union
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from sentiment_tracker.api.schemas import (
    ArticleResponse,
    ArticleWithTickersResponse,
    CamelModel,
    SentimentRowResponse,
    article_to_dict,
    article_with_tickers_to_dict,
    sentiment_to_dict,
)
from sentiment_tracker.core.database import get_db
from sentiment_tracker.core.errors import NotFoundError, ValidationError
from sentiment_tracker.services.article_service import ArticleService
from sentiment_tracker.services.sentiment_service import SentimentService
from sentiment_tracker.services.ticker_service import TickerService, normalize_symbol
from sentiment_tracker.utils.fingerprint import compute_article_id
from sentiment_tracker.utils.time import parse_published_at

router = APIRouter(prefix="/api/articles", tags=["articles"])
logger = logging.getLogger(__name__)

Score = Union[Decimal, float, int, str]


class CreateArticleRequest(CamelModel):
    """
    Request to store a news article.

    publishedAt accepts ISO-8601 or compact YYYYMMDDTHHMMSS (UTC).
    """
    title: str
    url: str
    published_at: Optional[str] = None
    summary: Optional[str] = None
    source_domain: Optional[str] = None
    overall_sentiment_score: Optional[Score] = None
    overall_sentiment_label: Optional[str] = None


class UpsertTickerSentimentRequest(CamelModel):
    """Sentiment patch for one ticker; omitted fields are left unchanged."""
    ticker_symbol: str
    ticker_sentiment_score: Optional[Score] = None
    ticker_sentiment_label: Optional[str] = None
    relevance_score: Optional[Score] = None


# Request field -> upsert_sentiment keyword
SENTIMENT_FIELDS = {
    "ticker_sentiment_score": "score",
    "ticker_sentiment_label": "label",
    "relevance_score": "relevance",
}


@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(
    request: CreateArticleRequest,
    db: AsyncSession = Depends(get_db)
):
    """Create a news article; its id is the SHA-256 of the trimmed URL."""
    published_at = None
    if request.published_at is not None:
        published_at = parse_published_at(request.published_at)

    article = await ArticleService.create_article(
        db,
        url=request.url,
        title=request.title,
        published_at=published_at,
        summary=request.summary,
        source_domain=request.source_domain,
        overall_sentiment_score=request.overall_sentiment_score,
        overall_sentiment_label=request.overall_sentiment_label
    )
    return article_to_dict(article)


@router.post("/{article_id}/tickers", response_model=SentimentRowResponse)
async def upsert_ticker_sentiment(
    article_id: str,
    request: UpsertTickerSentimentRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Upsert sentiment for a ticker on an article.

    Only fields present in the body are written; an explicit null clears a
    field.
    """
    symbol = normalize_symbol(request.ticker_symbol)
    ticker = await TickerService.get_ticker_by_symbol(db, symbol)
    if ticker is None:
        raise ValidationError("Invalid tickerSymbol; ticker not found")

    if await ArticleService.get_article(db, article_id) is None:
        raise NotFoundError("Article not found")

    patch = {
        keyword: getattr(request, name)
        for name, keyword in SENTIMENT_FIELDS.items()
        if name in request.model_fields_set
    }
    logger.debug(f"Upserting sentiment for {article_id}/{symbol} with fields {sorted(patch)}")

    row = await SentimentService.upsert_sentiment(db, article_id, ticker.ticker_id, **patch)
    return sentiment_to_dict(row)


@router.get("/findArticleId/{url:path}")
async def find_article_id(url: str):
    """Compute the article id for a URL without touching the database."""
    if not url.strip():
        raise ValidationError("Missing or invalid url")
    return {"articleId": compute_article_id(url)}


@router.get("/", response_model=List[ArticleWithTickersResponse])
@router.get("", response_model=List[ArticleWithTickersResponse], include_in_schema=False)
async def list_articles(
    ticker: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """All articles with their ticker sentiments, optionally filtered by symbol."""
    articles = await ArticleService.list_articles(db, ticker)
    return [article_with_tickers_to_dict(item) for item in articles]
