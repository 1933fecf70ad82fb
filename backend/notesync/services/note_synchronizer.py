"""
NoteSync Backend: Note Synchronizer (Core Orchestrator)
=======================================================

What:  Keeps a logical note (text record + optional image blob) consistent
       across the record store and the blob store, and owns the in-memory
       note list and the draft the user is composing.
How:   Composes a RecordStore and a BlobStore. Every store call is a
       suspension point; between them, local state changes are atomic.
Who:   One instance per app (app.state.synchronizer); called by the routes.

Flows:
    fetch_all()
        record_store.list() ──▶ blob_store.get(key) for every ImageKey
                                (concurrent, all awaited) ──▶ replace list

    attach_image(filename, content)
        draft.image = ImageKey(filename) ──▶ blob_store.put(filename, content)

    create()
        gate (name and description) ──▶ await pending upload for the key
        ──▶ record_store.create() ──▶ blob_store.get(key) ──▶ append ──▶ reset draft

    delete_note(target)
        remove from list (no suspension) ──▶ record_store.delete(id)

Failure semantics:
    fetch_all:  any failed list or resolution fails the fetch; list unchanged
    create:     nothing local changes unless the record write and the image
                resolution both succeed
    delete:     the local removal is never rolled back; the next fetch_all
                brings back server truth
"""

import asyncio
import logging
from typing import Dict, List, Optional, Union

from notesync.config import Settings, settings
from notesync.exceptions import RemoteError, ValidationError
from notesync.schemas.note import Draft, ImageKey, Note, ResolvedImage
from notesync.services.store_base import BlobStore, RecordStore

logger = logging.getLogger(__name__)

DRAFT_TEXT_FIELDS = ("name", "description")


class NoteSynchronizer:
    """
    Owner of the note list and the draft.

    State:
        _notes:            notes in arrival order (fetched, then created)
        _draft:            the note being composed; image is a key or None
        _pending_uploads:  key → upload task started by attach_image and not
                           yet finished; create() waits on it

    The presentation layer reads notes_snapshot() / draft_snapshot(), which
    are deep copies, and changes state only through the methods below.
    """

    def __init__(self, record_store: RecordStore, blob_store: BlobStore):
        self.record_store = record_store
        self.blob_store = blob_store
        self._notes: List[Note] = []
        self._draft = Draft()
        self._pending_uploads: Dict[str, "asyncio.Task[None]"] = {}

    # ── Snapshots ─────────────────────────────────────────────────────────

    def notes_snapshot(self) -> List[Note]:
        return [note.model_copy(deep=True) for note in self._notes]

    def draft_snapshot(self) -> Draft:
        return self._draft.model_copy(deep=True)

    @property
    def note_count(self) -> int:
        return len(self._notes)

    # ── Draft editing ─────────────────────────────────────────────────────

    def update_draft_field(self, field: str, value: str) -> Draft:
        """
        Set one text field of the draft.

        Raises:
            ValidationError: field is not "name" or "description". The image
                key is only ever set by attach_image.
        """
        if field not in DRAFT_TEXT_FIELDS:
            raise ValidationError(
                message=f"Draft field '{field}' cannot be edited directly",
                field=field,
                context={"editable": list(DRAFT_TEXT_FIELDS)},
            )
        self._draft = self._draft.model_copy(update={field: value})
        return self.draft_snapshot()

    def reset_draft(self) -> Draft:
        self._draft = Draft()
        return self.draft_snapshot()

    # ── Hydration ─────────────────────────────────────────────────────────

    async def _hydrate(self, note: Note) -> None:
        """
        Replace an ImageKey with the ResolvedImage for it, in place.

        Notes without an image, or already resolved, are left alone, so a
        note is hydrated at most once.
        """
        if not isinstance(note.image, ImageKey):
            return
        url = await self.blob_store.get(note.image.key)
        note.image = ResolvedImage(url=url)

    # ── Operations ────────────────────────────────────────────────────────

    async def fetch_all(self) -> List[Note]:
        """
        Replace the local list with every note from the record store,
        images resolved.

        All resolutions run concurrently and are all awaited, even after one
        has failed. If any failed, the first failure is raised and the local
        list keeps its previous contents.

        Raises:
            RecordStoreError: the list call failed.
            BlobStoreError: at least one image could not be resolved.
        """
        notes = await self.record_store.list()

        keyed = [note for note in notes if isinstance(note.image, ImageKey)]
        results = await asyncio.gather(
            *(self._hydrate(note) for note in keyed),
            return_exceptions=True,
        )
        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            logger.error(
                "Fetch aborted: %d of %d image resolutions failed",
                len(failures),
                len(keyed),
            )
            raise failures[0]

        self._notes = notes
        logger.info("Fetched %d notes (%d with images)", len(notes), len(keyed))
        return self.notes_snapshot()

    async def attach_image(self, filename: Optional[str], content: bytes) -> Optional[ImageKey]:
        """
        Record `filename` as the draft's image key, then upload the bytes
        under that key.

        No-op (returns None) when no file name is given. The key is set on
        the draft before the upload finishes; create() waits for the upload.
        If the upload fails, the key is taken back off the draft (unless a
        newer attachment has replaced it) and the error is raised.

        Raises:
            ValidationError: the file name is not a usable blob key.
            BlobStoreError: the upload failed.
        """
        if not filename:
            logger.debug("Attach skipped: no file selected")
            return None

        key = ImageKey(key=filename)
        self._draft = self._draft.model_copy(update={"image": key})

        task = asyncio.ensure_future(self.blob_store.put(filename, content))
        self._pending_uploads[filename] = task
        task.add_done_callback(lambda done: self._forget_upload(filename, done))
        try:
            # shield: a cancelled caller must not abort an issued upload
            await asyncio.shield(task)
        except Exception:
            # Identity: a later attach of the same file name is a new ImageKey
            if self._draft.image is key:
                self._draft = self._draft.model_copy(update={"image": None})
            raise

        logger.info("Image attached to draft: %s (%d bytes)", filename, len(content))
        return key

    def _forget_upload(self, key: str, task: "asyncio.Task[None]") -> None:
        if self._pending_uploads.get(key) is task:
            del self._pending_uploads[key]

    async def _await_pending_upload(self, key: str) -> None:
        task = self._pending_uploads.get(key)
        if task is None or task.done():
            return
        logger.debug("Create waiting for in-flight upload of %s", key)
        await asyncio.shield(task)

    async def create(self, draft: Optional[Draft] = None) -> Optional[Note]:
        """
        Persist a draft as a new note and add it to the local list.

        Args:
            draft: Fields to submit. Defaults to the synchronizer's own draft.

        Returns:
            A copy of the new note (identifier set, image resolved), or None
            when the draft lacks a name or description. In that case nothing
            is written and the draft is left as it was.

        Raises:
            BlobStoreError: the pending upload or the image resolution failed.
            RecordStoreError: the record write failed.
            In every error case the local list and the draft are unchanged.
        """
        submitted = (draft if draft is not None else self._draft).model_copy(deep=True)
        if not submitted.is_submittable():
            logger.debug("Create skipped: name and description are both required")
            return None

        if submitted.image is not None:
            await self._await_pending_upload(submitted.image.key)

        note_id = await self.record_store.create(submitted)

        note = Note(
            id=note_id,
            name=submitted.name,
            description=submitted.description,
            image=submitted.image,
        )
        await self._hydrate(note)

        # A fetch that finished while this create was suspended may already
        # hold the record; identifiers stay unique in the list.
        for index, existing in enumerate(self._notes):
            if existing.id == note_id:
                self._notes[index] = note
                break
        else:
            self._notes.append(note)

        self._draft = Draft()
        logger.info("Note created: %s (image=%s)", note_id, note.image is not None)
        return note.model_copy(deep=True)

    async def delete_note(self, target: Union[Note, str]) -> None:
        """
        Remove a note locally at once, then delete it remotely.

        Every local note with the target's identifier is removed before the
        first suspension point. A failed remote delete is raised but the
        local removal stays (optimistic update, no rollback).

        Raises:
            ValidationError: the target has no identifier.
            RecordStoreError: the remote deletion failed.
        """
        note_id = target if isinstance(target, str) else target.id
        if not note_id:
            raise ValidationError(
                message="Only notes with an identifier can be deleted",
                field="id",
            )

        remaining = [note for note in self._notes if note.id != note_id]
        removed = len(self._notes) - len(remaining)
        self._notes = remaining
        logger.info("Note %s removed locally (%d entries)", note_id, removed)

        try:
            await self.record_store.delete(note_id)
        except RemoteError as e:
            logger.warning(
                "Remote delete of note %s failed: %s. Local removal kept until next fetch.",
                note_id,
                e.message,
            )
            raise

    async def aclose(self) -> None:
        """Close both collaborator clients."""
        await self.record_store.aclose()
        await self.blob_store.aclose()


def build_synchronizer(config: Settings = settings) -> NoteSynchronizer:
    """
    What:  Assemble a synchronizer from configuration.
    When:  Called once by the app lifespan.
    How:   RECORD_STORE_BACKEND picks SqlRecordStore or GraphQLRecordStore;
           blobs always go to LocalBlobStore under BLOB_ROOT.
    """
    from notesync.services.blob_service import LocalBlobStore

    if config.record_store_backend == "graphql":
        from notesync.services.graphql_record_store import GraphQLRecordStore
        record_store: RecordStore = GraphQLRecordStore(
            url=config.graphql_url,
            api_key=config.graphql_api_key,
        )
    else:
        from notesync.services.sql_record_store import SqlRecordStore
        record_store = SqlRecordStore()

    blob_store = LocalBlobStore(
        storage_root=config.blob_root,
        public_base_url=config.public_base_url,
    )
    logger.info(
        "NoteSynchronizer built with record_store=%s, blob_root=%s",
        config.record_store_backend,
        blob_store.storage_root,
    )
    return NoteSynchronizer(record_store=record_store, blob_store=blob_store)
