"""
Shared test fixtures for the personalization service test suite.

Provides:
- async FastAPI test client (no external services needed)
- mock Redis for the rate limiter
- a fixed clock (``now``) matching tests.helpers.factories.NOW
"""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

# Ensure test env vars before any app imports
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("REDIS_URL", "redis://localhost:26379/0")
os.environ.setdefault("SENTRY_DSN", "")

from services.personalization.tests.helpers.factories import NOW  # noqa: E402


@pytest.fixture
def now():
    return NOW


# ---------------------------------------------------------------------------
# App and client, with Redis mocked out
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_redis():
    """Redis stand-in whose rate-limit window is always empty.

    Tests that need a full window patch ``pipeline.return_value.execute``.
    """
    window = MagicMock()
    # results of zremrangebyscore, zcard, zadd, expire
    window.execute = AsyncMock(return_value=[0, 0, 1, True])
    client = AsyncMock()
    client.pipeline = MagicMock(return_value=window)
    return client


@pytest.fixture
async def app(mock_redis):
    """The FastAPI app with mocked state (lifespan does not run under ASGITransport)."""
    from services.personalization.config import settings
    from services.personalization.main import app as _app

    _app.state.redis = mock_redis
    _app.state.settings = settings
    yield _app
    _app.state.redis = None


@pytest.fixture
async def client(app):
    """Async HTTP client bound to the test app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
