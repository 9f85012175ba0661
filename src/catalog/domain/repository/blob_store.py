"""Abstract blob store for product images.

The store hands out opaque ids for the bytes it keeps. It knows nothing
about products; ownership of a blob is tracked solely by the product
document that references it.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

from catalog.domain.exceptions import StoreUnavailableError, ValidationError
from catalog.domain.model.blob import StoredFile
from catalog.domain.model.value_objects import BlobId, is_valid_object_id

_CONTENT_TYPE_RE = re.compile(r"^[\w.+-]+/[\w.+-]+$")


class BlobStore(ABC):

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        """True once the underlying bucket has been initialized."""

    def ensure_ready(self) -> None:
        """Raise StoreUnavailableError if the store cannot take requests yet."""
        if not self.is_ready:
            raise StoreUnavailableError("Blob store is not initialized")

    @abstractmethod
    def store(self, data: bytes, filename: str, content_type: str) -> BlobId:
        """Write *data* under a freshly allocated id and return the id.

        Raises StoreUnavailableError before initialization and
        StorageIOError on a write fault.
        """

    @abstractmethod
    def delete(self, blob_id: BlobId) -> None:
        """Remove a blob. Unknown or already-deleted ids are a no-op.

        Raises StorageIOError only on a genuine I/O fault.
        """

    @abstractmethod
    def read(self, blob_id: BlobId) -> StoredFile:
        """Return a stored blob, or raise EntityNotFoundError."""

    @staticmethod
    def validate(candidate: object) -> bool:
        return is_valid_object_id(candidate)

    @staticmethod
    def check_upload(data: bytes, content_type: str) -> None:
        """Reject payloads no implementation should accept."""
        if not data:
            raise ValidationError("Cannot store an empty file")
        if not content_type or not _CONTENT_TYPE_RE.match(content_type):
            raise ValidationError(f"Malformed content type: {content_type!r}")
