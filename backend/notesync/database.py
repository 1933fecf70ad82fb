"""
NoteSync Backend: Database Session Management
=============================================

What:  Async SQLAlchemy engine, session factory and declarative base.
How:   Creates an async engine with connection pooling; SqlRecordStore opens
       one session per store call from `async_session_factory`.
Who:   Used by the sql record store backend, Alembic and the app lifespan.
When:  Engine is created at module import; sessions are created per call.

Connection Pooling:
    pool_size / max_overflow / pool_pre_ping come from settings and apply to
    server databases only. SQLite (aiosqlite) URLs get the dialect's default
    pool, since in-memory SQLite uses a static pool that rejects sizing.
"""

from typing import Any, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from notesync.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """
    What:  Keyword arguments for create_async_engine for the given URL.
    Returns: Pool sizing for server databases, nothing extra for SQLite.
    """
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine: AsyncEngine = create_async_engine(
    settings.database_url,
    **engine_options(settings.database_url),
)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: rows stay readable after the session commits,
# which SqlRecordStore relies on when converting rows to Note models.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models (shared metadata for Alembic)."""
    pass


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_tables(bind: AsyncEngine = engine) -> None:
    """
    What:  Creates missing tables from the ORM metadata.
    When:  At startup when DB_CREATE_TABLES is enabled (local SQLite runs)
           and in tests. Production schemas are managed by Alembic.
    """
    # Registers NoteRecord with Base.metadata
    from notesync.models import note  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
