"""Services package initialization."""
from sentiment_tracker.services.user_service import UserService
from sentiment_tracker.services.ticker_service import TickerService
from sentiment_tracker.services.watchlist_service import WatchlistService
from sentiment_tracker.services.session_service import SessionService, ResolvedSession
from sentiment_tracker.services.sentiment_service import SentimentService, UNSET
from sentiment_tracker.services.article_service import ArticleService, ArticleWithSentiments
from sentiment_tracker.services.auth_service import AuthService, LoginResult

__all__ = [
    "UserService",
    "TickerService",
    "WatchlistService",
    "SessionService",
    "ResolvedSession",
    "SentimentService",
    "UNSET",
    "ArticleService",
    "ArticleWithSentiments",
    "AuthService",
    "LoginResult"
]
