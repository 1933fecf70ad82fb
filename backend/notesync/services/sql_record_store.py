"""
NoteSync Backend: SQL Record Store
==================================

What:  RecordStore implementation backed by the `notes` table.
How:   Each call opens its own AsyncSession from the session factory and
       commits before returning; SQLAlchemy errors become RecordStoreError.
Who:   Selected when RECORD_STORE_BACKEND=sql (the default).

Query plans:
    list():   SELECT ... FROM notes ORDER BY created_at ASC, id ASC
              → arrival order, uses idx_notes_created_at; equal
                timestamps fall back to id so the order is stable
    create(): INSERT INTO notes (id, name, description, image, created_at)
    delete(): DELETE FROM notes WHERE id = :id
              → a missing id deletes nothing and is only logged
"""

import logging
from typing import List, Optional

from sqlalchemy import asc, delete, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notesync.exceptions import RecordStoreError
from notesync.models.note import NoteRecord
from notesync.schemas.note import Draft, ImageKey, Note
from notesync.services.store_base import RecordStore

logger = logging.getLogger(__name__)


def record_to_note(record: NoteRecord) -> Note:
    """Convert a row to a Note; empty image keys count as no image."""
    return Note(
        id=record.id,
        name=record.name,
        description=record.description,
        image=ImageKey(key=record.image) if record.image else None,
    )


class SqlRecordStore(RecordStore):
    """Async SQLAlchemy record store."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        """
        Args:
            session_factory: Override the module-level factory (used in tests
                with an in-memory SQLite engine).
        """
        if session_factory is None:
            from notesync.database import async_session_factory
            session_factory = async_session_factory
        self._session_factory = session_factory

    async def list(self) -> List[Note]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(NoteRecord).order_by(asc(NoteRecord.created_at), asc(NoteRecord.id))
                )
                records = list(result.scalars().all())
        except (SQLAlchemyError, OSError) as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise RecordStoreError(
                message="Could not retrieve notes. Please try again.",
                operation="list",
                context={"error_type": type(e).__name__},
            )

        logger.debug("Listed %d note records", len(records))
        return [record_to_note(record) for record in records]

    async def create(self, draft: Draft) -> str:
        fields = draft.record_fields()
        try:
            async with self._session_factory() as session:
                record = NoteRecord(**fields)
                session.add(record)
                # flush assigns the primary key default before commit
                await session.flush()
                note_id = record.id
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Database error creating note: %s", str(e), exc_info=True)
            raise RecordStoreError(
                message="Could not save the note. Please try again.",
                operation="create",
                context={"error_type": type(e).__name__},
            )

        logger.info("Note record created: %s", note_id)
        return note_id

    async def delete(self, note_id: str) -> None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(NoteRecord).where(NoteRecord.id == note_id)
                )
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e))
            raise RecordStoreError(
                message="Could not delete the note. Please try again.",
                operation="delete",
                context={"note_id": note_id, "error_type": type(e).__name__},
            )

        if result.rowcount == 0:
            logger.info("Delete for unknown note %s matched no record", note_id)
        else:
            logger.info("Note record deleted: %s", note_id)

    async def health_check(self) -> bool:
        """Executes SELECT 1."""
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Record store health check failed: %s", str(e))
            return False
