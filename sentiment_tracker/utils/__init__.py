"""Utilities package initialization."""
from sentiment_tracker.utils.time import utcnow, ensure_utc, parse_published_at
from sentiment_tracker.utils.fingerprint import compute_article_id, extract_source_domain

__all__ = [
    "utcnow",
    "ensure_utc",
    "parse_published_at",
    "compute_article_id",
    "extract_source_domain"
]
