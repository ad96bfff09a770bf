"""Unit tests for SentimentService.

This module tests score validation and the insert/patch semantics of the
sentiment upsert, including the read-after-write check.
"""
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, patch
from sqlalchemy.exc import IntegrityError

from sentiment_tracker.core.errors import ConflictError, PersistenceError, ValidationError
from sentiment_tracker.models import ArticleTickerSentiment
from sentiment_tracker.services.sentiment_service import (
    UNSET,
    SentimentService,
    to_label,
    to_relevance_score,
    to_sentiment_score,
)

from factories import make_sentiment

ARTICLE_ID = "a" * 64


# ============================================================================
# Tests for score/label conversion
# ============================================================================

@pytest.mark.unit
class TestScoreConversion:
    """Test fixed-point score conversion."""

    def test_sentiment_quantized_to_four_places(self):
        """✅ 0.123456 → 0.1235."""
        assert to_sentiment_score(0.123456) == Decimal("0.1235")

    def test_string_and_int_accepted(self):
        """✅ Numeric strings and ints are accepted."""
        assert to_sentiment_score("-1") == Decimal("-1.0000")
        assert to_relevance_score(1) == Decimal("1.000")

    def test_relevance_quantized_to_three_places(self):
        """✅ 0.98765 → 0.988."""
        assert to_relevance_score(0.98765) == Decimal("0.988")

    def test_none_passes_through(self):
        """✅ None stays None."""
        assert to_sentiment_score(None) is None

    @pytest.mark.parametrize("value", [1.5, -1.0001, "abc", True, "NaN"])
    def test_invalid_sentiment(self, value):
        """✅ Out of range or non-numeric → ValidationError."""
        with pytest.raises(ValidationError):
            to_sentiment_score(value)

    def test_negative_relevance(self):
        """✅ Relevance below zero → ValidationError."""
        with pytest.raises(ValidationError):
            to_relevance_score(-0.1)

    def test_label_trimmed_and_blank_is_none(self):
        """✅ Labels are trimmed; blank becomes None."""
        assert to_label(" Bullish ", "label") == "Bullish"
        assert to_label("  ", "label") is None

    def test_label_too_long(self):
        """✅ Labels over 32 characters → ValidationError."""
        with pytest.raises(ValidationError):
            to_label("x" * 33, "label")

    def test_unset_is_falsy(self):
        """✅ UNSET behaves like a missing value."""
        assert not UNSET
        assert repr(UNSET) == "UNSET"


# ============================================================================
# Tests for upsert_sentiment
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
class TestUpsertSentiment:
    """Test sentiment upserts."""

    async def test_insert_with_omitted_fields_null(self, mock_db):
        """✅ Insert stores omitted fields as NULL."""
        stored = make_sentiment(ARTICLE_ID, score=Decimal("0.5000"), label=None, relevance=None)
        with patch.object(SentimentService, "get_sentiment", AsyncMock(side_effect=[None, stored])) as mock_get:
            row = await SentimentService.upsert_sentiment(mock_db, ARTICLE_ID, 1, score=0.5)

        inserted = mock_db.add.call_args[0][0]
        assert isinstance(inserted, ArticleTickerSentiment)
        assert inserted.ticker_sentiment_score == Decimal("0.5000")
        assert inserted.ticker_sentiment_label is None
        assert inserted.relevance_score is None
        assert row is stored
        assert mock_get.call_args_list[1].kwargs == {"refresh": True}

    async def test_update_patches_only_supplied(self, mock_db):
        """✅ Update leaves omitted fields untouched."""
        existing = make_sentiment(ARTICLE_ID, score=Decimal("0.5000"), label="Bullish", relevance=Decimal("0.900"))
        with patch.object(SentimentService, "get_sentiment", AsyncMock(side_effect=[existing, existing])):
            await SentimentService.upsert_sentiment(mock_db, ARTICLE_ID, 1, label="Bearish")

        assert existing.ticker_sentiment_label == "Bearish"
        assert existing.ticker_sentiment_score == Decimal("0.5000")
        assert existing.relevance_score == Decimal("0.900")
        mock_db.add.assert_not_called()

    async def test_explicit_none_clears_field(self, mock_db):
        """✅ Explicit None sets the field to NULL."""
        existing = make_sentiment(ARTICLE_ID, score=Decimal("0.5000"))
        with patch.object(SentimentService, "get_sentiment", AsyncMock(side_effect=[existing, existing])):
            await SentimentService.upsert_sentiment(mock_db, ARTICLE_ID, 1, score=None)

        assert existing.ticker_sentiment_score is None

    async def test_invalid_score_before_store(self, mock_db):
        """✅ Out-of-range score → ValidationError, nothing written."""
        with pytest.raises(ValidationError):
            await SentimentService.upsert_sentiment(mock_db, ARTICLE_ID, 1, score=2)

        mock_db.execute.assert_not_called()
        mock_db.commit.assert_not_called()

    async def test_concurrent_insert_conflict(self, mock_db):
        """✅ Losing the insert race → ConflictError."""
        mock_db.commit.side_effect = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
        with patch.object(SentimentService, "get_sentiment", AsyncMock(return_value=None)):
            with pytest.raises(ConflictError):
                await SentimentService.upsert_sentiment(mock_db, ARTICLE_ID, 1, score=0.1)

        mock_db.rollback.assert_called_once()

    async def test_missing_after_write(self, mock_db):
        """✅ Row absent on read-back → PersistenceError."""
        with patch.object(SentimentService, "get_sentiment", AsyncMock(side_effect=[None, None])):
            with pytest.raises(PersistenceError):
                await SentimentService.upsert_sentiment(mock_db, ARTICLE_ID, 1, score=0.1)


@pytest.mark.unit
@pytest.mark.asyncio
class TestListForArticles:
    """Test batched sentiment lookup."""

    async def test_empty_ids_skip_query(self, mock_db):
        """✅ No ids → no query."""
        assert await SentimentService.list_for_articles(mock_db, []) == []
        mock_db.execute.assert_not_called()
