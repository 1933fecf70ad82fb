"""
NoteSync Backend: Package Initializer
=====================================

What: Marks the `notesync` directory as a Python package.
Who:  Imported by uvicorn (`notesync.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← presentation intents over HTTP
    ├─────────────────────────────────────┤
    │     NoteSynchronizer (Core)         │  ← owns the note list and draft
    ├─────────────────────────────────────┤
    │   RecordStore   │    BlobStore      │  ← collaborator clients
    ├─────────────────────────────────────┤
    │  SQL / GraphQL  │  local filesystem │  ← backing stores
    └─────────────────────────────────────┘

    Routes never touch the stores directly. Everything that changes the
    visible note list goes through the synchronizer.
"""

__version__ = "1.0.0"
