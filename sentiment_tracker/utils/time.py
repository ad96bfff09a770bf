"""Time utilities for timestamp parsing and UTC normalisation."""
import re
from datetime import datetime, timezone
from typing import Optional

from sentiment_tracker.core.errors import ValidationError


# Compact timestamp used by news feeds, e.g. 20251028T170116
COMPACT_TIMESTAMP = re.compile(r'^(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})$')


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes and convert aware ones to UTC.

    SQLite hands timestamps back without tzinfo even for timezone-aware
    columns; everything we write is UTC, so naive values are UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_published_at(value: str) -> datetime:
    """
    Parse an article publication timestamp.

    Accepts ISO-8601 (a trailing ``Z`` included) or the compact
    ``YYYYMMDDTHHMMSS`` form, which is always UTC.

    Args:
        value: Raw timestamp string

    Returns:
        Aware UTC datetime

    Raises:
        ValidationError: If the value is not a recognisable timestamp
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("publishedAt must be a non-empty string")

    raw = value.strip()
    match = COMPACT_TIMESTAMP.match(raw)
    try:
        if match:
            year, month, day, hour, minute, second = (int(part) for part in match.groups())
            return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)

        if raw.endswith("Z") or raw.endswith("z"):
            raw = raw[:-1] + "+00:00"
        return ensure_utc(datetime.fromisoformat(raw))
    except ValueError:
        raise ValidationError("publishedAt is not a valid date")
