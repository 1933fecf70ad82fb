"""
NoteSync Backend: Abstract Store Interfaces
===========================================

What:  Abstract base classes for the two collaborators the synchronizer needs.
How:   Concrete backends inherit from RecordStore / BlobStore and implement
       every abstract coroutine. The synchronizer only ever sees these types.
Who:   Implemented by SqlRecordStore, GraphQLRecordStore and LocalBlobStore;
       consumed by NoteSynchronizer and the health route.

Contract shared by both interfaces:
    - Every method is a coroutine and therefore a suspension point.
    - Backend-specific failures are translated into RecordStoreError /
      BlobStoreError (both RemoteError). Nothing else escapes.
    - Retries, if any, happen inside the implementation. Callers never retry.
"""

from abc import ABC, abstractmethod
from typing import List

from notesync.schemas.note import Draft, Note


class RecordStore(ABC):
    """
    Structured-data backend holding note metadata, keyed by record identifier.

    Implementations:
        - SqlRecordStore: async SQLAlchemy `notes` table
        - GraphQLRecordStore: remote listNotes / createNote / deleteNote API
    """

    @abstractmethod
    async def list(self) -> List[Note]:
        """
        Return every stored note in arrival order.

        Returned notes carry an ImageKey when the record has a non-empty
        image key, otherwise no image. They are never hydrated here.

        Raises:
            RecordStoreError: transport, auth or backend failure.
        """
        ...

    @abstractmethod
    async def create(self, draft: Draft) -> str:
        """
        Persist a new record from the draft's fields and return its identifier.

        The caller has already checked that name and description are
        non-empty; implementations do not validate them again.

        Raises:
            RecordStoreError: the record was not written.
        """
        ...

    @abstractmethod
    async def delete(self, note_id: str) -> None:
        """
        Delete the record with the given identifier.

        Behavior for an unknown identifier is backend-defined.

        Raises:
            RecordStoreError: the deletion request failed.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability probe. Returns False instead of raising."""
        ...

    async def aclose(self) -> None:
        """Release client resources. Stores without any keep this no-op."""
        return None


class BlobStore(ABC):
    """
    Binary object storage addressed by string key.

    Implementations:
        - LocalBlobStore: files under a root directory, served by the
          /api/files route
    """

    @abstractmethod
    async def put(self, key: str, content: bytes) -> None:
        """
        Store `content` under `key`, replacing any existing object.

        Raises:
            ValidationError: the key can never be stored (e.g. path traversal).
            BlobStoreError: the write failed.
        """
        ...

    @abstractmethod
    async def get(self, key: str) -> str:
        """
        Resolve `key` to a displayable handle (a URL).

        Raises:
            BlobStoreError: the key is absent or the store is unreachable.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability probe. Returns False instead of raising."""
        ...

    async def aclose(self) -> None:
        """Release client resources. Stores without any keep this no-op."""
        return None
