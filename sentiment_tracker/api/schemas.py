"""Request/response models shared by the API routes."""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from sentiment_tracker.models import ArticleTickerSentiment, NewsArticle, Ticker, User, WatchlistEntry
from sentiment_tracker.services.article_service import ArticleWithSentiments
from sentiment_tracker.utils.time import ensure_utc


class CamelModel(BaseModel):
    """Base model exposing camelCase JSON while accepting snake_case too."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserResponse(CamelModel):
    user_id: str
    email: str
    username: Optional[str] = None
    notification_enabled: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class TickerResponse(CamelModel):
    ticker_id: int
    symbol: str
    type: str
    created_at: datetime


class WatchlistEntryResponse(CamelModel):
    watchlist_id: int
    user_id: str
    ticker_id: int
    notification_enabled: bool
    created_at: datetime


class ArticleResponse(CamelModel):
    article_id: str
    url: str
    source_domain: Optional[str] = None
    title: str
    summary: Optional[str] = None
    overall_sentiment_score: Optional[Decimal] = None
    overall_sentiment_label: Optional[str] = None
    published_at: Optional[datetime] = None
    created_at: datetime


class TickerSentimentResponse(CamelModel):
    ticker_id: int
    symbol: str
    ticker_sentiment_score: Optional[Decimal] = None
    ticker_sentiment_label: Optional[str] = None
    relevance_score: Optional[Decimal] = None


class ArticleWithTickersResponse(ArticleResponse):
    tickers: List[TickerSentimentResponse]


class SentimentRowResponse(CamelModel):
    article_id: str
    ticker_id: int
    ticker_sentiment_score: Optional[Decimal] = None
    ticker_sentiment_label: Optional[str] = None
    relevance_score: Optional[Decimal] = None


class SuccessResponse(BaseModel):
    success: bool


def user_to_dict(user: User) -> dict:
    return {
        "userId": user.user_id,
        "email": user.email,
        "username": user.username,
        "notificationEnabled": user.notification_enabled,
        "createdAt": ensure_utc(user.created_at),
        "updatedAt": ensure_utc(user.updated_at),
    }


def ticker_to_dict(ticker: Ticker) -> dict:
    return {
        "tickerId": ticker.ticker_id,
        "symbol": ticker.symbol,
        "type": ticker.type.value if hasattr(ticker.type, "value") else ticker.type,
        "createdAt": ensure_utc(ticker.created_at),
    }


def entry_to_dict(entry: WatchlistEntry) -> dict:
    return {
        "watchlistId": entry.watchlist_id,
        "userId": entry.user_id,
        "tickerId": entry.ticker_id,
        "notificationEnabled": entry.notification_enabled,
        "createdAt": ensure_utc(entry.created_at),
    }


def article_to_dict(article: NewsArticle) -> dict:
    return {
        "articleId": article.article_id,
        "url": article.url,
        "sourceDomain": article.source_domain,
        "title": article.title,
        "summary": article.summary,
        "overallSentimentScore": article.overall_sentiment_score,
        "overallSentimentLabel": article.overall_sentiment_label,
        "publishedAt": ensure_utc(article.published_at),
        "createdAt": ensure_utc(article.created_at),
    }


def article_with_tickers_to_dict(item: ArticleWithSentiments) -> dict:
    data = article_to_dict(item.article)
    data["tickers"] = [
        {
            "tickerId": view.ticker_id,
            "symbol": view.symbol,
            "tickerSentimentScore": view.ticker_sentiment_score,
            "tickerSentimentLabel": view.ticker_sentiment_label,
            "relevanceScore": view.relevance_score,
        }
        for view in item.tickers
    ]
    return data


def sentiment_to_dict(row: ArticleTickerSentiment) -> dict:
    return {
        "articleId": row.article_id,
        "tickerId": row.ticker_id,
        "tickerSentimentScore": row.ticker_sentiment_score,
        "tickerSentimentLabel": row.ticker_sentiment_label,
        "relevanceScore": row.relevance_score,
    }
