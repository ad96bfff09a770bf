"""Unit tests for AuthService."""
import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, patch

from sentiment_tracker.providers.oidc import IdentityClaims
from sentiment_tracker.services.auth_service import AuthService

from factories import NOW, make_user


@pytest.fixture
def mock_services():
    """Patch the user and session services used by AuthService."""
    with patch("sentiment_tracker.services.auth_service.UserService") as users, \
         patch("sentiment_tracker.services.auth_service.SessionService") as sessions:
        users.get_or_create_from_identity = AsyncMock(return_value=make_user())
        sessions.create_session = AsyncMock(return_value="session-token")
        sessions.delete_session = AsyncMock()
        yield users, sessions


@pytest.mark.unit
@pytest.mark.asyncio
class TestCompleteLogin:
    """Test login completion."""

    async def test_issues_session_with_configured_ttl(self, mock_db, mock_services):
        """✅ Login → user resolved and session expiring now + TTL."""
        users, sessions = mock_services

        with patch("sentiment_tracker.services.auth_service.settings") as mock_settings:
            mock_settings.session_ttl_minutes = 60
            result = await AuthService.complete_login(mock_db, IdentityClaims(subject="u1", email="a@b.com"), now=NOW)

        assert result.session_id == "session-token"
        assert result.user.user_id == "u1"
        assert result.expires_at == NOW + timedelta(minutes=60)
        sessions.create_session.assert_called_once_with(mock_db, "u1", NOW + timedelta(minutes=60))


@pytest.mark.unit
@pytest.mark.asyncio
class TestLogout:
    """Test logout."""

    async def test_logout_deletes_session(self, mock_db, mock_services):
        """✅ Presented session is deleted."""
        _, sessions = mock_services

        await AuthService.logout(mock_db, "session-token")

        sessions.delete_session.assert_called_once_with(mock_db, "session-token")

    async def test_logout_without_session(self, mock_db, mock_services):
        """✅ No cookie → nothing to delete."""
        _, sessions = mock_services

        await AuthService.logout(mock_db, None)

        sessions.delete_session.assert_not_called()
