"""
NoteSync Backend: SQL Record Store Tests
========================================

What:  Tests for SqlRecordStore against a real (in-memory SQLite) database.
How:   conftest.session_factory creates the tables on a private engine;
       error paths use a mocked session.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import Text
from sqlalchemy.exc import OperationalError

from notesync.exceptions import RecordStoreError
from notesync.models.note import NoteRecord
from notesync.schemas.note import Draft, ImageKey, Note
from notesync.services.sql_record_store import SqlRecordStore, record_to_note


def failing_session_factory(error):
    """A session factory whose sessions raise `error` on execute/flush."""
    session = AsyncMock()
    session.execute = AsyncMock(side_effect=error)
    session.flush = AsyncMock(side_effect=error)
    session.add = MagicMock()
    session.__aenter__.return_value = session
    session.__aexit__.return_value = False
    return MagicMock(return_value=session)


class TestRecordConversion:

    def test_record_with_image(self):
        record = NoteRecord(id="1", name="a", description="b", image="cat.png")

        assert record_to_note(record) == Note(
            id="1", name="a", description="b", image=ImageKey(key="cat.png")
        )

    @pytest.mark.parametrize("image", [None, ""])
    def test_record_without_image(self, image):
        record = NoteRecord(id="1", name="a", description="b", image=image)

        assert record_to_note(record).image is None


class TestSqlRecordStore:

    @pytest.mark.asyncio
    async def test_create_returns_identifier(self, session_factory):
        store = SqlRecordStore(session_factory=session_factory)

        note_id = await store.create(Draft(name="A", description="B"))

        assert isinstance(note_id, str) and note_id
        notes = await store.list()
        assert notes == [Note(id=note_id, name="A", description="B", image=None)]

    @pytest.mark.asyncio
    async def test_create_stores_image_key(self, session_factory):
        store = SqlRecordStore(session_factory=session_factory)

        await store.create(Draft(name="A", description="B", image=ImageKey(key="x.jpg")))

        notes = await store.list()
        assert notes[0].image == ImageKey(key="x.jpg")

    @pytest.mark.asyncio
    async def test_list_in_creation_order(self, session_factory):
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        async with session_factory() as session:
            session.add_all([
                NoteRecord(id="late", name="2", description="d", created_at=base + timedelta(minutes=5)),
                NoteRecord(id="early", name="1", description="d", created_at=base),
            ])
            await session.commit()

        notes = await SqlRecordStore(session_factory=session_factory).list()

        assert [note.id for note in notes] == ["early", "late"]

    @pytest.mark.asyncio
    async def test_equal_timestamps_list_in_stable_order(self, session_factory):
        same = datetime(2026, 1, 1, tzinfo=timezone.utc)
        async with session_factory() as session:
            session.add_all([
                NoteRecord(id=note_id, name=note_id, description="d", created_at=same)
                for note_id in ("c", "a", "b")
            ])
            await session.commit()
        store = SqlRecordStore(session_factory=session_factory)

        first = [note.id for note in await store.list()]
        second = [note.id for note in await store.list()]

        assert first == second == ["a", "b", "c"]

    def test_name_column_is_unbounded(self):
        """Long titles are stored, not rejected by the database as a store failure."""
        name_type = NoteRecord.__table__.c.name.type

        assert isinstance(name_type, Text)
        assert getattr(name_type, "length", None) is None

    @pytest.mark.asyncio
    async def test_create_long_name(self, session_factory):
        store = SqlRecordStore(session_factory=session_factory)
        long_name = "n" * 1000

        note_id = await store.create(Draft(name=long_name, description="B"))

        assert (await store.list())[0] == Note(id=note_id, name=long_name, description="B")

    @pytest.mark.asyncio
    async def test_delete_removes_record(self, session_factory):
        store = SqlRecordStore(session_factory=session_factory)
        keep = await store.create(Draft(name="keep", description="d"))
        drop = await store.create(Draft(name="drop", description="d"))

        await store.delete(drop)

        assert [note.id for note in await store.list()] == [keep]

    @pytest.mark.asyncio
    async def test_delete_unknown_id_is_not_an_error(self, session_factory):
        store = SqlRecordStore(session_factory=session_factory)

        await store.delete("does-not-exist")

    @pytest.mark.asyncio
    async def test_health_check(self, session_factory):
        assert await SqlRecordStore(session_factory=session_factory).health_check() is True


class TestSqlRecordStoreErrors:
    """Database failures surface as RecordStoreError with the operation name."""

    def setup_method(self):
        error = OperationalError("SELECT", {}, Exception("database is locked"))
        self.store = SqlRecordStore(session_factory=failing_session_factory(error))

    @pytest.mark.asyncio
    async def test_list_failure(self):
        with pytest.raises(RecordStoreError) as exc_info:
            await self.store.list()
        assert exc_info.value.operation == "list"

    @pytest.mark.asyncio
    async def test_create_failure(self):
        with pytest.raises(RecordStoreError) as exc_info:
            await self.store.create(Draft(name="A", description="B"))
        assert exc_info.value.operation == "create"

    @pytest.mark.asyncio
    async def test_delete_failure(self):
        with pytest.raises(RecordStoreError) as exc_info:
            await self.store.delete("1")
        assert exc_info.value.operation == "delete"
        assert exc_info.value.context["note_id"] == "1"

    @pytest.mark.asyncio
    async def test_health_check_failure(self):
        assert await self.store.health_check() is False
