"""
NoteSync Backend: Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for the synchronizer and its stores.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) turn them into
       structured JSON error responses with the matching HTTP status.
Who:   Raised by the store clients and the synchronizer; caught by handlers.

Exception Hierarchy:
    NoteSyncError (base)
    ├── ValidationError          → 400 Bad Request
    ├── NotFoundError            → 404 Not Found
    └── RemoteError              → 503 Service Unavailable
        ├── RecordStoreError     (list / create / delete failed)
        └── BlobStoreError       (put / get failed, or key absent)

Silent validation:
    An empty name or description on create, and a missing file on attach,
    are no-ops rather than errors. ValidationError is reserved for input
    that can never succeed (unknown draft field, note without identifier,
    blob key escaping the storage root).
"""

from typing import Any, Dict, Optional


class NoteSyncError(Exception):
    """
    Base exception for all NoteSync application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where handlers choose)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NoteSyncError):
    """
    Raised when client input fails validation.

    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Draft field 'image' cannot be edited directly",
            "details": {"field": "image"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(NoteSyncError):
    """
    Raised when a requested resource does not exist.

    When:    GET /api/files/{key} for a key the blob store does not hold.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class RemoteError(NoteSyncError):
    """
    Raised when a collaborator store fails.

    What:    Transport, auth or backend failure reported by a store client.
    HTTP:    503 Service Unavailable

    Propagation:
        The synchronizer never catches RemoteError to retry. It reaches the
        caller unchanged; local state is left as described per operation
        (fetch: list unchanged, create: nothing appended, delete: local
        removal kept).
    """

    def __init__(
        self,
        message: str = "A backing store is temporarily unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RecordStoreError(RemoteError):
    """Raised when the record store fails to list, create or delete a note."""

    def __init__(
        self,
        message: str = "The note record store is temporarily unavailable",
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if operation:
            ctx["operation"] = operation
        super().__init__(message=message, context=ctx)
        self.operation = operation


class BlobStoreError(RemoteError):
    """
    Raised when the blob store fails to store or resolve an image.

    Also raised by get() for an absent key, which is how a dangling image
    reference surfaces during hydration.
    """

    def __init__(
        self,
        message: str = "The image store is temporarily unavailable",
        key: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if key:
            ctx["key"] = key
        super().__init__(message=message, context=ctx)
        self.key = key
