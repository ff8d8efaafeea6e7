"""
Shared test fixtures for Playlist Tracker API tests.

Provides:
- FastAPI test client (no auth)
- Authenticated test client (mocked user, fixed "today", fake YouTube client)
- Database pool mock
"""

import os
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock, MagicMock, patch

# Settings are read at import time; PGPASSWORD has no default.
os.environ.setdefault("PGPASSWORD", "test")
os.environ.setdefault("YOUTUBE_API_KEY", "test-key")
os.environ.setdefault("ACTIVITY_TIMEZONE", "UTC")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fakes import MOCK_USER, TODAY, FakeYouTubeClient
from tracker_api.models.auth import CurrentUser


# ---------------------------------------------------------------------------
# Dependency overrides
# ---------------------------------------------------------------------------

def make_pool_mock():
    """Create an asyncpg pool mock that returns empty results by default."""
    pool = AsyncMock()
    conn = AsyncMock()
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=0)
    conn.execute = AsyncMock(return_value="UPDATE 0")
    conn.executemany = AsyncMock(return_value=None)

    # conn.transaction() is a synchronous call returning an async context manager
    tx = AsyncMock()
    tx.__aenter__ = AsyncMock(return_value=tx)
    tx.__aexit__ = AsyncMock(return_value=False)
    conn.transaction = MagicMock(return_value=tx)

    # Context manager for pool.acquire()
    acq = AsyncMock()
    acq.__aenter__ = AsyncMock(return_value=conn)
    acq.__aexit__ = AsyncMock(return_value=False)
    pool.acquire = MagicMock(return_value=acq)

    return pool, conn


# ---------------------------------------------------------------------------
# App factory with dependency overrides
# ---------------------------------------------------------------------------

def _build_app(user: Optional[CurrentUser] = None, youtube: Optional[FakeYouTubeClient] = None):
    """
    Import the FastAPI app and override auth, database, clock and YouTube.

    If user is None the real auth dependencies run; Firebase is never
    initialized in tests, so protected routes answer 401.
    """
    with patch("tracker_api.auth.firebase.initialize_firebase", return_value=False):
        from tracker_api.main import app

    from tracker_api.auth.dependencies import (
        get_current_user_optional as real_get_current_user_optional,
        require_auth as real_require_auth,
    )
    from tracker_api.database import get_pool as real_get_pool
    from tracker_api.routers.playlists import get_youtube_client as real_get_youtube_client
    from tracker_api.services.clock import get_today as real_get_today

    pool_mock, conn_mock = make_pool_mock()
    youtube = youtube or FakeYouTubeClient()

    app.dependency_overrides[real_get_pool] = lambda: pool_mock
    app.dependency_overrides[real_get_today] = lambda: TODAY
    app.dependency_overrides[real_get_youtube_client] = lambda: youtube

    if user is not None:
        app.dependency_overrides[real_require_auth] = lambda: user
        app.dependency_overrides[real_get_current_user_optional] = lambda: user
    else:
        app.dependency_overrides.pop(real_require_auth, None)
        app.dependency_overrides.pop(real_get_current_user_optional, None)

    return app, pool_mock, conn_mock, youtube


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def pool_and_conn():
    """A bare pool/connection mock pair for service-level tests."""
    return make_pool_mock()


@pytest_asyncio.fixture
async def anon_client() -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with NO authentication; protected routes answer 401 on protected routes."""
    app, _, _, _ = _build_app(user=None)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def auth_client() -> AsyncGenerator[tuple[AsyncClient, AsyncMock, FakeYouTubeClient], None]:
    """HTTP client authenticated as a normal user."""
    app, _, conn_mock, youtube = _build_app(user=MOCK_USER)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client, conn_mock, youtube
    app.dependency_overrides.clear()
