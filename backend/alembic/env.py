"""
Alembic Migration Environment
=============================

What:  Migrates the `notes` table behind the SQL record store.
How:   The URL comes from notesync settings (DATABASE_URL), never from
       alembic.ini; online runs use the async engine through run_sync().
Who:   The `alembic` CLI (upgrade, downgrade, revision --autogenerate).

Scope:
    - RECORD_STORE_BACKEND=graphql: the remote service owns its schema, so
      the run is skipped with a log line.
    - Autogenerate compares column types (e.g. String → Text) and ignores
      tables that NoteRecord does not declare.
"""

import asyncio
import logging
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from alembic import context

from notesync.config import settings
from notesync.database import Base

# Registers the notes table on Base.metadata
from notesync.models.note import NoteRecord  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata


def include_object(obj, name, type_, reflected, compare_to):
    """Leave tables this package does not model alone."""
    if type_ == "table" and reflected and compare_to is None:
        return name in target_metadata.tables
    return True


def _configure(**options) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        include_object=include_object,
        **options,
    )


def run_offline(url: str) -> None:
    """Emit migration SQL to stdout without connecting."""
    _configure(url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_online(url: str) -> None:
    engine = create_async_engine(url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if settings.record_store_backend != "sql":
    logger.info(
        "RECORD_STORE_BACKEND=%s has no local schema; nothing to migrate",
        settings.record_store_backend,
    )
elif context.is_offline_mode():
    run_offline(settings.database_url)
else:
    asyncio.run(run_online(settings.database_url))
