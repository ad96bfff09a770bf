"""Models package initialization."""
from sentiment_tracker.models.user import User
from sentiment_tracker.models.ticker import Ticker, TickerType
from sentiment_tracker.models.watchlist import WatchlistEntry
from sentiment_tracker.models.article import NewsArticle, ArticleTickerSentiment
from sentiment_tracker.models.session import Session

__all__ = [
    "User",
    "Ticker",
    "TickerType",
    "WatchlistEntry",
    "NewsArticle",
    "ArticleTickerSentiment",
    "Session"
]
