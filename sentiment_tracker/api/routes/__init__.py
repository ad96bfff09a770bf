"""API routes package initialization."""
from sentiment_tracker.api.routes import articles, auth, health, public, tickers, users

__all__ = ["articles", "auth", "health", "public", "tickers", "users"]
