"""
SnipStash Backend — Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   Creates an async engine with connection pooling, provides a session
       dependency that auto-commits on success and auto-rolls-back on error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

Transaction Model:
    One session (one transaction) per request. Services only flush; the
    dependency commits once at the end, so a multi-step write such as
    "replace this snippet's tag set" is either fully visible to other
    transactions or not at all.

    Find-or-create uses SAVEPOINTs (session.begin_nested()) inside that
    transaction. SQLite's driver manages BEGIN itself and breaks SAVEPOINT
    semantics, so for SQLite URLs the engine takes over BEGIN explicitly
    (see configure_sqlite_engine).
"""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from snipstash.config import settings


def configure_sqlite_engine(engine: AsyncEngine) -> AsyncEngine:
    """
    Make an aiosqlite engine honour SAVEPOINTs and foreign keys.

    The driver's implicit transaction handling is disabled and SQLAlchemy
    emits BEGIN itself, which is the documented recipe for SAVEPOINT
    support on pysqlite/aiosqlite.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine for a URL.

    PostgreSQL gets the pooled configuration from settings; SQLite gets the
    driver defaults plus configure_sqlite_engine().
    """
    if database_url.startswith("sqlite"):
        return configure_sqlite_engine(create_async_engine(database_url, echo=echo))

    return create_async_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,  # Recycle after 1 hour
        echo=echo,
    )


# ── Engine Configuration ──────────────────────────────────────────────────
# SQL echo only in DEBUG mode
engine = build_engine(settings.database_url, echo=settings.log_level == "DEBUG")

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after the request commits
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for migrations and
    the test suite uses for create_all().
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back the transaction
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/snippets/{snippet_id}")
        async def get_snippet(snippet_id: UUID, db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Closes all pooled connections. Called from the application lifespan on shutdown."""
    await engine.dispose()
