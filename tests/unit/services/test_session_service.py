"""Unit tests for SessionService."""
import pytest
from datetime import timedelta
from unittest.mock import MagicMock
from sqlalchemy.exc import IntegrityError

from sentiment_tracker.core.errors import PersistenceError
from sentiment_tracker.models import Session
from sentiment_tracker.services.session_service import ResolvedSession, SessionService

from factories import NOW, make_user, rowcount_result


@pytest.mark.unit
class TestGenerateSessionId:
    """Test token generation."""

    def test_tokens_are_unique_and_long(self):
        """✅ Tokens are random and at least 43 characters."""
        tokens = {SessionService.generate_session_id() for _ in range(50)}

        assert len(tokens) == 50
        assert all(len(token) >= 43 for token in tokens)


@pytest.mark.unit
@pytest.mark.asyncio
class TestCreateSession:
    """Test session creation."""

    async def test_create_success(self, mock_db):
        """✅ Session row stored with the given expiry."""
        expires_at = NOW + timedelta(days=7)

        session_id = await SessionService.create_session(mock_db, "u1", expires_at)

        stored = mock_db.add.call_args[0][0]
        assert isinstance(stored, Session)
        assert stored.session_id == session_id
        assert stored.user_id == "u1"
        assert stored.expires_at == expires_at
        mock_db.commit.assert_called_once()

    async def test_unknown_user(self, mock_db):
        """✅ Foreign key violation → PersistenceError."""
        mock_db.commit.side_effect = IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))

        with pytest.raises(PersistenceError):
            await SessionService.create_session(mock_db, "ghost", NOW)

        mock_db.rollback.assert_called_once()


@pytest.mark.unit
@pytest.mark.asyncio
class TestResolveSession:
    """Test session lookup."""

    async def test_hit(self, mock_db):
        """✅ Matching row → ResolvedSession with user and UTC expiry."""
        user = make_user()
        session = Session(session_id="s1", user_id="u1", expires_at=NOW.replace(tzinfo=None))
        result = MagicMock()
        result.first.return_value = (session, user)
        mock_db.execute.return_value = result

        resolved = await SessionService.resolve_session(mock_db, "s1")

        assert resolved == ResolvedSession(session_id="s1", user=user, expires_at=NOW)

    async def test_miss(self, mock_db):
        """✅ No row → None (the store does not judge expiry)."""
        result = MagicMock()
        result.first.return_value = None
        mock_db.execute.return_value = result

        assert await SessionService.resolve_session(mock_db, "nope") is None


@pytest.mark.unit
@pytest.mark.asyncio
class TestDeleteSessions:
    """Test session deletion."""

    async def test_delete_absent_is_not_an_error(self, mock_db):
        """✅ Deleting an unknown session succeeds."""
        mock_db.execute.return_value = rowcount_result(0)

        await SessionService.delete_session(mock_db, "nope")

        mock_db.commit.assert_called_once()

    async def test_delete_expired_returns_count(self, mock_db):
        """✅ Expired sweep reports the number of rows removed."""
        mock_db.execute.return_value = rowcount_result(3)

        assert await SessionService.delete_expired_sessions(mock_db, NOW) == 3
