"""
NoteSync Backend: Local Blob Store
==================================

What:  BlobStore implementation that keeps image bytes as files on disk.
How:   put() writes `<blob_root>/<key>` with async file I/O; get() checks the
       file exists and returns the URL under which the /api/files route
       serves it.
Who:   Built by the app lifespan; called by NoteSynchronizer (put on attach,
       get on hydration) and by the file route (local_path).

Keys:
    The key is the uploaded file's name, so two uploads with the same name
    overwrite each other, as in a bucket. Keys may contain "/" to form
    sub-directories but must stay inside the blob root:

        "cat.png"          → <root>/cat.png
        "2024/cat.png"     → <root>/2024/cat.png
        "../etc/passwd"    → ValidationError on put, BlobStoreError on get

Handles:
    get("cat.png") → "{public_base_url}/api/files/cat.png"
    With an empty public_base_url the handle is root-relative.
"""

import logging
import os
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import aiofiles
import aiofiles.os

from notesync.config import settings
from notesync.exceptions import BlobStoreError, NotFoundError, ValidationError
from notesync.services.store_base import BlobStore

logger = logging.getLogger(__name__)

FILES_ROUTE_PREFIX = "/api/files"


class LocalBlobStore(BlobStore):
    """
    Filesystem-backed blob store.

    Directory Structure:
        storage/
        ├── cat.png
        └── holiday/
            └── beach.jpg
    """

    def __init__(
        self,
        storage_root: Optional[str] = None,
        public_base_url: Optional[str] = None,
    ):
        """
        Args:
            storage_root: Override settings.blob_root (used in tests).
            public_base_url: Override settings.public_base_url.
        """
        self.storage_root = Path(storage_root or settings.blob_root).resolve()
        base = settings.public_base_url if public_base_url is None else public_base_url
        self.public_base_url = base.rstrip("/")
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("LocalBlobStore initialized with storage_root=%s", self.storage_root)

    def _path_for(self, key: str) -> Path:
        """
        Map a key to its absolute path inside the storage root.

        Raises:
            ValidationError: empty key, absolute key, or a key whose resolved
                path leaves the storage root.
        """
        if not key or not key.strip():
            raise ValidationError(message="Blob key must not be empty", field="key")
        if Path(key).is_absolute():
            raise ValidationError(
                message=f"Blob key '{key}' must be a relative name",
                field="key",
                context={"key": key},
            )
        path = (self.storage_root / key).resolve()
        if self.storage_root not in path.parents:
            raise ValidationError(
                message=f"Blob key '{key}' escapes the storage root",
                field="key",
                context={"key": key},
            )
        return path

    def url_for(self, key: str) -> str:
        """Displayable handle for a key (no existence check)."""
        return f"{self.public_base_url}{FILES_ROUTE_PREFIX}/{quote(key)}"

    async def put(self, key: str, content: bytes) -> None:
        """
        Write `content` under `key`, creating sub-directories as needed.

        Raises:
            ValidationError: unsafe key (nothing written).
            BlobStoreError: directory creation or file write failed.
        """
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store blob %s: %s", key, str(e))
            raise BlobStoreError(
                message="Failed to save the image. Please try again.",
                key=key,
                context={"os_error": str(e)},
            )
        logger.info("Blob stored: %s (%d bytes)", key, len(content))

    async def get(self, key: str) -> str:
        """
        Resolve `key` to its URL.

        Raises:
            BlobStoreError: the key is unsafe or no file exists for it.
        """
        try:
            path = self._path_for(key)
        except ValidationError as e:
            raise BlobStoreError(message=e.message, key=key)

        if not await aiofiles.os.path.isfile(path):
            logger.warning("Blob not found: %s", key)
            raise BlobStoreError(message=f"Image '{key}' was not found", key=key)

        return self.url_for(key)

    def local_path(self, key: str) -> Path:
        """
        Absolute path of an existing blob, for the file-serving route.

        Raises:
            ValidationError: unsafe key.
            NotFoundError: no file exists for the key.
        """
        path = self._path_for(key)
        if not path.is_file():
            raise NotFoundError(resource="image", resource_id=key)
        return path

    async def health_check(self) -> bool:
        """The storage root must exist and be writable."""
        available = self.storage_root.is_dir() and os.access(self.storage_root, os.W_OK)
        if not available:
            logger.warning("Blob storage root not writable: %s", self.storage_root)
        return available
