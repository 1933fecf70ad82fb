"""
NoteSync Backend: Pydantic Domain and API Schemas
=================================================

What:  Pydantic models for notes, drafts and image references, plus the
       request/response models of the HTTP presentation layer.
How:   The synchronizer and the store clients exchange the domain models;
       routes wrap snapshots of them in response models.

Image references:
    A note's image is one of three states, and the type says which:

        None            no image
        ImageKey        opaque blob store key (as stored in the record store)
        ResolvedImage   displayable handle (URL) produced by hydration

    Hydration turns an ImageKey into a ResolvedImage. A ResolvedImage is
    never hydrated again, and a Draft can only ever hold an ImageKey.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Domain Models: exchanged between synchronizer and store clients
# ══════════════════════════════════════════════════════════════════════════


class ImageKey(BaseModel):
    """Blob store key of an image that has not been resolved yet."""

    kind: Literal["key"] = "key"
    key: str = Field(min_length=1, description="Blob store key (the uploaded file's name)")

    model_config = {"frozen": True}


class ResolvedImage(BaseModel):
    """Displayable handle for an image, produced by BlobStore.get()."""

    kind: Literal["resolved"] = "resolved"
    url: str = Field(description="URL the client can render directly")

    model_config = {"frozen": True}


ImageRef = Optional[Annotated[Union[ImageKey, ResolvedImage], Field(discriminator="kind")]]


class Note(BaseModel):
    """
    A note as held in the synchronizer's list.

    `id` is None only for notes that were never written to a record store.
    Notes fetched from a store carry ImageKey images until hydrated.
    """

    id: Optional[str] = Field(default=None, description="Identifier assigned by the record store")
    name: str
    description: str
    image: ImageRef = None


class Draft(BaseModel):
    """
    The transient note the user is composing.

    Same shape as Note minus the identifier. The image field holds only a
    blob key, set by attach_image before the upload completes.
    """

    name: str = ""
    description: str = ""
    image: Optional[ImageKey] = None

    def is_submittable(self) -> bool:
        """True when both text fields are non-empty."""
        return bool(self.name) and bool(self.description)

    def record_fields(self) -> dict:
        """
        Fields written to the record store.

        The image key is included only when the draft has one, so a note
        without an image is written as {name, description}.
        """
        fields = {"name": self.name, "description": self.description}
        if self.image is not None:
            fields["image"] = self.image.key
        return fields


# ══════════════════════════════════════════════════════════════════════════
# Request Models: what the client sends
# ══════════════════════════════════════════════════════════════════════════


class DraftFieldUpdate(BaseModel):
    """
    What:  Body of PATCH /api/draft (the form's per-keystroke update).
    Only "name" and "description" are editable; the synchronizer rejects any
    other field with a ValidationError (400). The image key is set by uploading.
    """

    field: str = Field(description="Draft field to set: name or description")
    value: str = Field(default="", description="New field value (may be empty)")


# ══════════════════════════════════════════════════════════════════════════
# Response Models: what the API returns
# ══════════════════════════════════════════════════════════════════════════


class NoteListResponse(BaseModel):
    """Snapshot of the synchronizer's note list, in list order."""

    notes: List[Note] = Field(description="Notes in arrival order")
    count: int = Field(description="Number of notes in the list")


class SubmitResponse(BaseModel):
    """
    What:  Result of POST /api/notes (submitCreate).

    created=False means the draft was missing a name or description and
    nothing was written; `draft` then shows the unchanged draft.
    """

    created: bool = Field(description="Whether a note was written")
    note: Optional[Note] = Field(default=None, description="The created note, image pre-hydrated")
    draft: Draft = Field(description="Draft after the submission")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "remote_error",
            "message": "The note record store is temporarily unavailable",
            "details": {"operation": "list"},
            "request_id": "a1b2c3d4"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and collaborator status."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    record_store: str = Field(description="Record store status: available, unavailable")
    blob_store: str = Field(description="Blob store status: available, unavailable")
    notes_loaded: int = Field(description="Notes currently held in memory")
    uptime_seconds: float = Field(description="Seconds since service started")
