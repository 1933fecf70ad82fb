"""
NoteSync Backend: Draft Route Handlers
======================================

What:  The form half of the presentation boundary.

Routes:
    GET    /api/draft        render the current draft
    PATCH  /api/draft        updateDraftField(field, value)
    DELETE /api/draft        clear the form
    POST   /api/draft/image  selectFile: attach an image to the draft

Upload flow:
    The multipart `file` field is optional. Without it the request is a
    no-op that returns the draft unchanged. With it, the file name becomes
    the draft's image key and the bytes are uploaded under that key.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from notesync.schemas.note import Draft, DraftFieldUpdate, ErrorResponse
from notesync.services.note_synchronizer import NoteSynchronizer
from notesync.routes.deps import get_synchronizer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Draft"])


@router.get("/draft", response_model=Draft, summary="Current draft")
async def get_draft(
    synchronizer: NoteSynchronizer = Depends(get_synchronizer),
) -> Draft:
    return synchronizer.draft_snapshot()


@router.patch(
    "/draft",
    response_model=Draft,
    responses={
        200: {"description": "Draft after the update", "model": Draft},
        400: {"description": "Field is not name or description", "model": ErrorResponse},
    },
    summary="Set a draft text field",
)
async def update_draft(
    update: DraftFieldUpdate,
    synchronizer: NoteSynchronizer = Depends(get_synchronizer),
) -> Draft:
    return synchronizer.update_draft_field(update.field, update.value)


@router.delete("/draft", response_model=Draft, summary="Clear the draft")
async def clear_draft(
    synchronizer: NoteSynchronizer = Depends(get_synchronizer),
) -> Draft:
    return synchronizer.reset_draft()


@router.post(
    "/draft/image",
    response_model=Draft,
    responses={
        200: {"description": "Draft after the attachment", "model": Draft},
        400: {"description": "File name is not a usable key", "model": ErrorResponse},
        503: {"description": "Upload failed", "model": ErrorResponse},
    },
    summary="Attach an image to the draft",
)
async def attach_image(
    file: Optional[UploadFile] = File(default=None, description="Image to attach"),
    synchronizer: NoteSynchronizer = Depends(get_synchronizer),
) -> Draft:
    if file is None or not file.filename:
        return synchronizer.draft_snapshot()

    content = await file.read()
    await synchronizer.attach_image(file.filename, content)
    return synchronizer.draft_snapshot()
