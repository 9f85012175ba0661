"""Application service: Show Image use case (query)."""

from __future__ import annotations

from catalog.domain.exceptions import ValidationError
from catalog.domain.model.blob import StoredFile
from catalog.domain.model.value_objects import BlobId
from catalog.domain.repository.blob_store import BlobStore


class ShowImageHandler:

    def __init__(self, blob_store: BlobStore) -> None:
        self._blob_store = blob_store

    def handle(self, image_id: str) -> StoredFile:
        if not self._blob_store.validate(image_id):
            raise ValidationError("Invalid image ID.")
        self._blob_store.ensure_ready()
        return self._blob_store.read(BlobId(image_id))
