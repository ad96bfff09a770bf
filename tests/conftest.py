"""Shared pytest fixtures for sentiment tracker tests."""
import pytest
from unittest.mock import AsyncMock, MagicMock

from factories import NOW, make_ticker, make_user


@pytest.fixture
def now():
    """Fixed reference instant."""
    return NOW


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def sample_user():
    return make_user()


@pytest.fixture
def sample_ticker():
    return make_ticker()
