"""Unit tests for WatchlistService.

This module tests watchlist add/remove/toggle logic with a mocked session.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, PropertyMock, patch
from sqlalchemy.exc import IntegrityError, MissingGreenlet

from sentiment_tracker.core.errors import ConflictError, NotFoundError, ValidationError
from sentiment_tracker.models import WatchlistEntry
from sentiment_tracker.services.watchlist_service import WatchlistService

from factories import make_entry, make_ticker, make_user, rowcount_result, scalar_result


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def mock_user_service():
    """UserService.require_user returning a user."""
    with patch("sentiment_tracker.services.watchlist_service.UserService") as mock:
        mock.require_user = AsyncMock(return_value=make_user())
        yield mock


@pytest.fixture
def mock_ticker_service():
    """TickerService resolving AAPL."""
    with patch("sentiment_tracker.services.watchlist_service.TickerService") as mock:
        mock.resolve_or_create = AsyncMock(return_value=make_ticker())
        mock.get_ticker_by_symbol = AsyncMock(return_value=make_ticker())
        yield mock


def integrity_error():
    return IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))


def expire_on_rollback(mock_db, ticker_id=1, symbol="AAPL"):
    """Ticker whose attributes cannot be read once the session rolls back.

    Mirrors an expired ORM instance in an async session, where attribute
    access after rollback would trigger a lazy load.
    """
    ticker = MagicMock()
    rolled_back = []
    mock_db.rollback.side_effect = lambda: rolled_back.append(True)

    def read(value):
        def getter():
            if rolled_back:
                raise MissingGreenlet("greenlet_spawn has not been called")
            return value
        return PropertyMock(side_effect=getter)

    type(ticker).ticker_id = read(ticker_id)
    type(ticker).symbol = read(symbol)
    return ticker


# ============================================================================
# Tests for add_to_watchlist
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
class TestAddToWatchlist:
    """Test adding tickers to a watchlist."""

    async def test_add_success(self, mock_db, mock_user_service, mock_ticker_service):
        """✅ New entry is added and committed."""
        entry = await WatchlistService.add_to_watchlist(mock_db, "u1", "AAPL", "stock")

        assert isinstance(entry, WatchlistEntry)
        assert entry.user_id == "u1"
        assert entry.ticker_id == 1
        assert entry.notification_enabled is True
        mock_db.commit.assert_called_once()
        mock_ticker_service.resolve_or_create.assert_called_once_with(mock_db, "AAPL", "stock")

    async def test_duplicate_conflict(self, mock_db, mock_user_service, mock_ticker_service):
        """✅ Unique (user, ticker) violation → ConflictError, ticker not read after rollback."""
        mock_ticker_service.resolve_or_create.return_value = expire_on_rollback(mock_db)
        mock_db.commit.side_effect = integrity_error()

        with pytest.raises(ConflictError) as exc:
            await WatchlistService.add_to_watchlist(mock_db, "u1", "AAPL")

        assert exc.value.message == "Ticker already in watchlist"
        mock_db.rollback.assert_called_once()

    async def test_unknown_user(self, mock_db, mock_user_service, mock_ticker_service):
        """✅ Missing user → NotFoundError before ticker resolution."""
        mock_user_service.require_user.side_effect = NotFoundError("User not found")

        with pytest.raises(NotFoundError):
            await WatchlistService.add_to_watchlist(mock_db, "ghost", "AAPL", "stock")

        mock_ticker_service.resolve_or_create.assert_not_called()

    async def test_unknown_ticker_without_type(self, mock_db, mock_user_service, mock_ticker_service):
        """✅ Resolution failure propagates unchanged."""
        mock_ticker_service.resolve_or_create.side_effect = ValidationError("Ticker not found")

        with pytest.raises(ValidationError):
            await WatchlistService.add_to_watchlist(mock_db, "u1", "NEW")

        mock_db.add.assert_not_called()


# ============================================================================
# Tests for set_watchlist_notification
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
class TestSetWatchlistNotification:
    """Test the conditional upsert of per-ticker notification flags."""

    async def test_updates_existing_entry_in_place(self, mock_db, mock_user_service, mock_ticker_service):
        """✅ Existing entry → flag updated, no insert."""
        existing = make_entry(notification_enabled=True)
        mock_db.execute.return_value = scalar_result(existing)

        entry = await WatchlistService.set_watchlist_notification(mock_db, "u1", "AAPL", False)

        assert entry is existing
        assert entry.notification_enabled is False
        mock_db.add.assert_not_called()
        mock_db.commit.assert_called_once()

    async def test_inserts_missing_entry(self, mock_db, mock_user_service, mock_ticker_service):
        """✅ No entry → one inserted with the requested flag."""
        mock_db.execute.return_value = scalar_result(None)

        entry = await WatchlistService.set_watchlist_notification(mock_db, "u1", "AAPL", False, "stock")

        assert entry.notification_enabled is False
        mock_db.add.assert_called_once_with(entry)

    async def test_concurrent_insert_retried_as_update(self, mock_db, mock_user_service, mock_ticker_service):
        """✅ Losing an insert race → rollback, then update the winner's row."""
        winner = make_entry(notification_enabled=True)
        mock_ticker_service.resolve_or_create.side_effect = [expire_on_rollback(mock_db), make_ticker()]
        mock_db.execute.side_effect = [scalar_result(None), scalar_result(winner)]
        mock_db.commit.side_effect = [integrity_error(), None]

        entry = await WatchlistService.set_watchlist_notification(mock_db, "u1", "AAPL", False)

        assert entry is winner
        assert winner.notification_enabled is False
        mock_db.rollback.assert_called_once()
        assert mock_db.commit.call_count == 2

    async def test_ticker_resolved_again_after_rollback(self, mock_db, mock_user_service, mock_ticker_service):
        """✅ A ticker created in the failed attempt is re-resolved, not reused."""
        recreated = make_ticker(ticker_id=7)
        mock_ticker_service.resolve_or_create.side_effect = [expire_on_rollback(mock_db, ticker_id=5), recreated]
        mock_db.execute.return_value = scalar_result(None)
        mock_db.commit.side_effect = [integrity_error(), None]

        entry = await WatchlistService.set_watchlist_notification(mock_db, "u1", "AAPL", True, "stock")

        assert entry.ticker_id == 7
        assert mock_ticker_service.resolve_or_create.call_count == 2

    async def test_lazy_ticker_flush_conflict_retried(self, mock_db, mock_user_service, mock_ticker_service):
        """✅ Concurrent creation of the same new ticker → rollback and retry."""
        mock_ticker_service.resolve_or_create.side_effect = [integrity_error(), make_ticker()]
        mock_db.execute.return_value = scalar_result(None)

        entry = await WatchlistService.set_watchlist_notification(mock_db, "u1", "AAPL", False, "stock")

        assert entry.notification_enabled is False
        mock_db.rollback.assert_called_once()
        mock_db.commit.assert_called_once()

    async def test_second_conflict_raises(self, mock_db, mock_user_service, mock_ticker_service):
        """✅ Two failed attempts → ConflictError."""
        mock_db.execute.return_value = scalar_result(None)
        mock_db.commit.side_effect = integrity_error()

        with pytest.raises(ConflictError):
            await WatchlistService.set_watchlist_notification(mock_db, "u1", "AAPL", True)

        assert mock_db.rollback.call_count == 2


# ============================================================================
# Tests for remove_from_watchlist
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
class TestRemoveFromWatchlist:
    """Test removing tickers from a watchlist."""

    async def test_remove_success(self, mock_db, mock_user_service, mock_ticker_service):
        """✅ Existing entry → deleted and committed."""
        mock_db.execute.return_value = rowcount_result(1)

        assert await WatchlistService.remove_from_watchlist(mock_db, "u1", "AAPL") is True
        mock_db.commit.assert_called_once()

    async def test_unknown_ticker(self, mock_db, mock_user_service, mock_ticker_service):
        """✅ Unknown ticker → NotFoundError."""
        mock_ticker_service.get_ticker_by_symbol.return_value = None

        with pytest.raises(NotFoundError) as exc:
            await WatchlistService.remove_from_watchlist(mock_db, "u1", "NOPE")

        assert exc.value.message == "Ticker not found"

    async def test_missing_entry(self, mock_db, mock_user_service, mock_ticker_service):
        """✅ Ticker exists but is not watched → NotFoundError."""
        mock_db.execute.return_value = rowcount_result(0)

        with pytest.raises(NotFoundError) as exc:
            await WatchlistService.remove_from_watchlist(mock_db, "u1", "AAPL")

        assert exc.value.message == "Watchlist entry not found"
        mock_db.commit.assert_not_called()
