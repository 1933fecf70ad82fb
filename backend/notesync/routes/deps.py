"""
NoteSync Backend: Route Dependencies
====================================

What:  FastAPI dependencies shared by the route modules.
How:   The lifespan stores the app's NoteSynchronizer on app.state; routes
       receive it through Depends(get_synchronizer). Tests put a
       synchronizer with fake stores on app.state instead.
"""

from fastapi import Request

from notesync.exceptions import NoteSyncError
from notesync.services.blob_service import LocalBlobStore
from notesync.services.note_synchronizer import NoteSynchronizer


def get_synchronizer(request: Request) -> NoteSynchronizer:
    synchronizer = getattr(request.app.state, "synchronizer", None)
    if synchronizer is None:
        raise NoteSyncError(message="The note synchronizer is not initialized")
    return synchronizer


def get_local_blob_store(request: Request) -> LocalBlobStore:
    """The local blob store, for routes that serve blob files."""
    blob_store = get_synchronizer(request).blob_store
    if not isinstance(blob_store, LocalBlobStore):
        raise NoteSyncError(message="Image files are not served by this backend")
    return blob_store
