"""
Profile Service - Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock AsyncSession (no real DB needed)
    ├── database: Schema created in a temporary SQLite file, dropped afterwards
    ├── identity_provider: JWT provider over TEST_SECRET
    ├── make_token: Builds signed bearer credentials
    ├── app: Fresh application (fresh rate-limit counters)
    └── client: HTTPX AsyncClient talking to `app` through ASGITransport
"""

import os
import tempfile
import time
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

# Settings are read at import time, so the environment must be in place
# BEFORE any profile_service import.
_db_dir = tempfile.mkdtemp(prefix="profile_service_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_db_dir}/test.db"
os.environ["AUTH_SECRET"] = "test-secret-not-real-0123456789abcdef"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("TIMEOUT", None)

import jwt  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from profile_service.database import Base, engine  # noqa: E402
from profile_service.main import create_app  # noqa: E402
from profile_service.models.user import User  # noqa: E402,F401
from profile_service.services.identity import JWTIdentityProvider  # noqa: E402

TEST_SECRET = os.environ["AUTH_SECRET"]


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        result = MagicMock()
        result.mappings.return_value.all.return_value = [{"email": ...}]
        mock_db_session.execute.return_value = result
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def database():
    """Creates the schema for one test and drops it afterwards."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Pooled aiosqlite connections belong to this test's event loop
    await engine.dispose()


@pytest.fixture
def identity_provider():
    return JWTIdentityProvider(secret=TEST_SECRET)


@pytest.fixture
def make_token():
    """
    Builds a signed credential.

    Usage:
        token = make_token(email="ada@example.com", given_name="Ada")
    """

    def _make(secret: str = TEST_SECRET, expires_in: int = 3600, **claims: Any) -> str:
        payload: Dict[str, Any] = {
            "email": "ada@example.com",
            "given_name": "Ada",
            "family_name": "Lovelace",
            "exp": int(time.time()) + expires_in,
        }
        payload.update(claims)
        return jwt.encode(payload, secret, algorithm="HS256")

    return _make


@pytest.fixture
def auth_headers(make_token):
    def _headers(**claims: Any) -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(**claims)}"}

    return _headers


@pytest.fixture
def app(identity_provider):
    return create_app(identity_provider=identity_provider)


@pytest_asyncio.fixture
async def client(app, database):
    """
    HTTPX AsyncClient wired straight into the app.

    raise_app_exceptions=False: an error raised outside SessionMiddleware is
    re-raised by Starlette after its 500 envelope; the tests assert on the
    envelope instead.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
