"""
NoteSync Backend: Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── record_store:       AsyncMock RecordStore (no database or network)
    ├── blob_store:         AsyncMock BlobStore resolving keys to fake URLs
    ├── synchronizer:       NoteSynchronizer over the two mocks
    ├── temp_storage:       temporary blob root
    ├── local_blob_store:   LocalBlobStore rooted in temp_storage
    ├── sample_image_bytes: fake image content for upload tests
    ├── session_factory:    in-memory SQLite session factory with tables
    └── test_client:        HTTPX AsyncClient against create_app()
"""

import os
import tempfile
from unittest.mock import AsyncMock

# Override settings BEFORE any notesync import: config, database and the
# module-level app read the environment at import time.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RECORD_STORE_BACKEND"] = "sql"
os.environ["BLOB_ROOT"] = tempfile.mkdtemp(prefix="notesync_test_")
os.environ["PUBLIC_BASE_URL"] = ""
os.environ["FETCH_ON_STARTUP"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from notesync.database import create_tables
from notesync.services.blob_service import LocalBlobStore
from notesync.services.note_synchronizer import NoteSynchronizer
from notesync.services.store_base import BlobStore, RecordStore

FAKE_BLOB_HOST = "https://blobs.test"


def fake_url(key: str) -> str:
    """The handle the mocked blob store resolves `key` to."""
    return f"{FAKE_BLOB_HOST}/{key}"


# ══════════════════════════════════════════════════════════════════════════
# Collaborator Mocks
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def record_store():
    """
    Mock record store.

    Usage:
        record_store.list.return_value = [Note(...)]
        record_store.create.return_value = "note-1"
    """
    store = AsyncMock(spec=RecordStore)
    store.list.return_value = []
    store.create.return_value = "note-1"
    store.delete.return_value = None
    store.health_check.return_value = True
    return store


@pytest.fixture
def blob_store():
    """Mock blob store: put succeeds, get resolves every key with fake_url()."""
    store = AsyncMock(spec=BlobStore)
    store.put.return_value = None
    store.get.side_effect = fake_url
    store.health_check.return_value = True
    return store


@pytest.fixture
def synchronizer(record_store, blob_store):
    return NoteSynchronizer(record_store=record_store, blob_store=blob_store)


# ══════════════════════════════════════════════════════════════════════════
# Local Storage
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path):
    """A fresh blob root per test (pytest's tmp_path is cleaned up)."""
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def local_blob_store(temp_storage):
    return LocalBlobStore(storage_root=temp_storage, public_base_url="")


@pytest.fixture
def sample_image_bytes():
    """
    Minimal JPEG bytes: SOI marker + JFIF header + EOI marker.
    Content is never decoded, so any bytes would do.
    """
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def session_factory():
    """
    Session factory over a private in-memory SQLite database.

    StaticPool keeps a single connection, so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(bind=engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def api_synchronizer(record_store, local_blob_store):
    """Synchronizer behind the test app: mocked records, real local blobs."""
    return NoteSynchronizer(record_store=record_store, blob_store=local_blob_store)


@pytest_asyncio.fixture
async def test_client(api_synchronizer):
    """
    HTTPX AsyncClient talking to a fresh app.

    ASGITransport does not run the lifespan, so the synchronizer is
    injected through create_app() instead of being built from settings.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from notesync.main import create_app

    app = create_app(synchronizer=api_synchronizer)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
