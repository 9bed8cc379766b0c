"""
FinSight Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── test_settings: Settings with fake secrets and keys
    ├── token_service: TokenService over the fake secret
    ├── fake_llm: scripted LLMService (no network)
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── sqlite_session_factory: real schema in a temporary SQLite file
    ├── api_app: FastAPI app wired to fake_llm and the SQLite database
    └── test_client: HTTPX AsyncClient for API endpoint testing
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["OPENROUTER_API_KEY"] = "test-key-not-real"
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import List, Optional, Union
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config import Settings
from app.database import Base, get_db_session
from app.exceptions import UpstreamError
from app.main import create_app
from app.models import user as user_models  # noqa: F401  (registers the users table)
from app.security import TokenService
from app.services.llm_base import LLMService


class FakeLLM(LLMService):
    """
    Scripted completion provider.

    Each queued reply is either a string (returned) or an exception (raised).
    Every prompt received is recorded in `prompts`.
    """

    name = "fake"

    def __init__(self, replies: Optional[List[Union[str, Exception]]] = None):
        self.replies = list(replies or [])
        self.prompts: List[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise UpstreamError(message="No content returned from model", reason="empty")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        openrouter_api_key="test-key-not-real",
        jwt_secret="test-secret-not-real",
        jwt_expires_in=3600,
        log_level="WARNING",
    )


@pytest.fixture
def token_service(test_settings):
    return TokenService.from_settings(test_settings)


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = user
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def sqlite_session_factory(tmp_path):
    """
    A real schema in a throwaway SQLite file.

    Exercises what mocks cannot: the pre-save hashing hook and the unique
    email index.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'finsight.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def api_app(test_settings, fake_llm, sqlite_session_factory):
    application = create_app(app_settings=test_settings, llm_service=fake_llm)

    async def override_db_session():
        async with sqlite_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_db_session
    return application


@pytest_asyncio.fixture
async def test_client(api_app):
    """
    HTTPX AsyncClient routed straight into the FastAPI app.

    Usage:
        async def test_root(test_client):
            response = await test_client.get("/")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=api_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
