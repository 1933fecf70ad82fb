"""
NoteSync Backend: Notes Route Handlers
======================================

What:  The note-list half of the presentation boundary.
How:   Each handler forwards one user intent to the NoteSynchronizer and
       returns a snapshot; no handler touches a store directly.

Routes:
    GET    /api/notes            render the current list (no remote call)
    POST   /api/notes/refresh    fetchAll: reload from the record store
    POST   /api/notes            submitCreate: persist the current draft
    DELETE /api/notes/{note_id}  requestDelete (optimistic)
    GET    /api/files/{key}      serve a locally stored image blob
"""

import logging

from fastapi import APIRouter, Depends, Response
from fastapi.responses import FileResponse

from notesync.schemas.note import ErrorResponse, NoteListResponse, SubmitResponse
from notesync.services.blob_service import LocalBlobStore
from notesync.services.note_synchronizer import NoteSynchronizer
from notesync.routes.deps import get_local_blob_store, get_synchronizer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notes"])


def _list_response(synchronizer: NoteSynchronizer) -> NoteListResponse:
    notes = synchronizer.notes_snapshot()
    return NoteListResponse(notes=notes, count=len(notes))


@router.get(
    "/notes",
    response_model=NoteListResponse,
    summary="Current note list",
    description="Returns the synchronizer's in-memory note list without contacting any store.",
)
async def list_notes(
    synchronizer: NoteSynchronizer = Depends(get_synchronizer),
) -> NoteListResponse:
    return _list_response(synchronizer)


@router.post(
    "/notes/refresh",
    response_model=NoteListResponse,
    responses={
        200: {"description": "List reloaded, every image resolved", "model": NoteListResponse},
        503: {"description": "Record or blob store failed; list unchanged", "model": ErrorResponse},
    },
    summary="Reload notes from the record store",
)
async def refresh_notes(
    synchronizer: NoteSynchronizer = Depends(get_synchronizer),
) -> NoteListResponse:
    """
    fetchAll: lists every record and resolves every image key.

    All-or-nothing: if the list call or any image resolution fails, the
    response is a 503 and the in-memory list keeps its previous contents.
    """
    await synchronizer.fetch_all()
    return _list_response(synchronizer)


@router.post(
    "/notes",
    response_model=SubmitResponse,
    responses={
        201: {"description": "Note created", "model": SubmitResponse},
        200: {"description": "Draft incomplete; nothing written", "model": SubmitResponse},
        503: {"description": "Record or blob store failed; draft kept", "model": ErrorResponse},
    },
    summary="Submit the current draft",
)
async def submit_note(
    response: Response,
    synchronizer: NoteSynchronizer = Depends(get_synchronizer),
) -> SubmitResponse:
    """
    submitCreate: writes the draft as a new note.

    A draft missing its name or description is not an error: the response
    is 200 with created=false and the draft is returned unchanged.
    """
    note = await synchronizer.create()
    if note is None:
        return SubmitResponse(created=False, note=None, draft=synchronizer.draft_snapshot())

    response.status_code = 201
    return SubmitResponse(created=True, note=note, draft=synchronizer.draft_snapshot())


@router.delete(
    "/notes/{note_id}",
    status_code=204,
    responses={
        204: {"description": "Removed locally and deleted remotely"},
        503: {"description": "Remote delete failed; local removal kept", "model": ErrorResponse},
    },
    summary="Delete a note",
)
async def delete_note(
    note_id: str,
    synchronizer: NoteSynchronizer = Depends(get_synchronizer),
) -> Response:
    await synchronizer.delete_note(note_id)
    return Response(status_code=204)


@router.get(
    "/files/{key:path}",
    summary="Serve a stored image",
    responses={
        200: {"description": "Image file"},
        404: {"description": "No image stored under this key", "model": ErrorResponse},
    },
)
async def serve_file(
    key: str,
    blob_store: LocalBlobStore = Depends(get_local_blob_store),
) -> FileResponse:
    """
    The target of resolved image handles produced by LocalBlobStore.get().
    The key is checked against the blob root, so "../" cannot escape it.
    """
    path = blob_store.local_path(key)
    return FileResponse(
        path=str(path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
