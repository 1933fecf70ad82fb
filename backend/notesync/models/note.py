"""
NoteSync Backend: Note SQLAlchemy Model
=======================================

What:  ORM model representing the `notes` table used by the sql record store.
How:   Inherits from the shared DeclarativeBase; Alembic reads it for migrations.
Who:   Used by SqlRecordStore for list/create/delete and by Alembic.

Table Design:
    - id: UUID rendered as text, assigned at insert and never changed
    - name / description: the note's text fields (both required)
    - image: blob store key, NULL when the note has no image. The table only
      ever holds keys; resolved handles exist in memory only.
    - created_at: insertion time, the list order returned to the synchronizer
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from notesync.database import Base


def _new_note_id() -> str:
    return str(uuid.uuid4())


class NoteRecord(Base):
    """
    A persisted note row.

    Lifecycle:
        1. Inserted by SqlRecordStore.create() with a fresh UUID
        2. Read back by SqlRecordStore.list() in created_at order
        3. Deleted by SqlRecordStore.delete(); rows are never updated
    """

    __tablename__ = "notes"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_new_note_id,
        comment="Record identifier assigned on create",
    )

    # Unbounded, like description
    name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Note title",
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Note body text",
    )

    # Key into the blob store (the uploaded file's name)
    image: Mapped[Optional[str]] = mapped_column(
        String(1024),
        nullable=True,
        default=None,
        comment="Blob store key of the attached image",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        comment="When this note was created (UTC)",
    )

    __table_args__ = (
        Index("idx_notes_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<NoteRecord(id={self.id}, name='{self.name}', image={self.image!r})>"
