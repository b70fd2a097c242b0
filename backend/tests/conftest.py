"""
SnipStash Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test that touches the database gets its own throwaway SQLite
       file (aiosqlite) with the full schema created from Base.metadata.

Fixture Hierarchy:
    engine ─┬─ session_factory ─┬─ db_session        (service tests)
            │                   └─ test_client       (HTTP tests)
            └─ make_user / make_snippet helpers
    mock_db_session                                  (failure injection)
"""

import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

# Must be set before anything imports snipstash.config
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["AUTO_TAGGING_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from snipstash.database import Base, build_engine, get_db_session
from snipstash.models import associations  # noqa: F401
from snipstash.models.folder import Folder  # noqa: F401
from snipstash.models.snippet import Snippet  # noqa: F401
from snipstash.models.tag import Tag  # noqa: F401
from snipstash.models.usage_log import UsageLog  # noqa: F401
from snipstash.models.user import User
from snipstash.schemas.snippet import SnippetCreate
from snipstash.services.snippet_service import snippet_service


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    """A fresh SQLite database file with every table created."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'snipstash_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """
    A session on the throwaway database.

    Tests commit explicitly when they need another session to see their
    writes; otherwise everything is discarded with the database file.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A mock async session for tests that inject database failures.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception())
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Data Helpers
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(db_session):
    """
    Insert a user directly (no bcrypt round-trip).

        alice = await make_user("alice@example.com")
    """
    async def _make(email: str, name: str = "Test User") -> User:
        now = datetime.now(timezone.utc)
        user = User(
            name=name,
            email=email,
            password_hash="not-a-real-hash",
            email_verified=False,
            created_at=now,
            updated_at=now,
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


@pytest.fixture
def make_snippet(db_session):
    """
    Create a snippet through SnippetService.

        s1 = await make_snippet(alice, "Reverse list", tags=["python"])
    """
    async def _make(
        user: User,
        title: str,
        content: str = "print('hello')",
        language: str = "python",
        description=None,
        tags=(),
        folder_ids=(),
    ):
        data = SnippetCreate(
            title=title,
            content=content,
            language=language,
            description=description,
            tags=list(tags),
            folder_ids=list(folder_ids),
        )
        return await snippet_service.create_snippet(db_session, user.id, data)

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient wired to the FastAPI app, with the session dependency
    pointed at the throwaway database.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    from snipstash.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
