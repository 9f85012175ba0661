"""Binary objects as the blob store hands them back."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from catalog.domain.model.value_objects import BlobId


@dataclass(frozen=True)
class StoredFile:
    blob_id: BlobId
    filename: str
    content_type: str
    data: bytes
    uploaded_at: datetime

    @property
    def length(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Upload:
    """A raw file attached to a create or update request."""

    data: bytes
    filename: str
    content_type: str


@dataclass(frozen=True)
class BlobDeletion:
    """Outcome of one best-effort blob delete."""

    blob_id: BlobId
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
