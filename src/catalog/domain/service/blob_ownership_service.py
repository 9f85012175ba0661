"""Domain service: Blob Ownership.

Every image a product owns goes through this service on its way into or
out of the blob store. It lives in the domain layer because the failure
policy is a core business rule:

  * writes are fatal — the first failed upload aborts the operation;
  * deletes are best-effort — a failed delete is recorded and logged but
    never stops the surrounding operation.

Uploads that succeeded before a failure are not rolled back. They are
logged as orphans so an operator can find them.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

import structlog

from catalog.domain.exceptions import StorageIOError
from catalog.domain.model.blob import BlobDeletion, Upload
from catalog.domain.model.value_objects import BlobId
from catalog.domain.repository.blob_store import BlobStore

logger = structlog.get_logger(__name__)

DEFAULT_UPLOAD_WORKERS = 4


class BlobOwnershipService:

    def __init__(
        self,
        blob_store: BlobStore,
        upload_workers: int = DEFAULT_UPLOAD_WORKERS,
    ) -> None:
        self._blob_store = blob_store
        self._upload_workers = max(1, upload_workers)

    def ensure_ready(self) -> None:
        self._blob_store.ensure_ready()

    def upload_all(self, uploads: Sequence[Upload]) -> list[BlobId]:
        """Store every upload and return the new ids in input order.

        Uploads run concurrently. If any of them fails, the others are
        allowed to settle and then the first failure (in input order) is
        raised.
        """
        if not uploads:
            return []

        workers = min(self._upload_workers, len(uploads))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self._store_one, upload) for upload in uploads]

        stored: list[BlobId] = []
        failure: BaseException | None = None
        for future in futures:
            exc = future.exception()
            if exc is None:
                stored.append(future.result())
            elif failure is None:
                failure = exc

        if failure is not None:
            if stored:
                logger.warning(
                    "orphaned_blobs",
                    reason="upload_failed",
                    blob_ids=[str(b) for b in stored],
                )
            raise failure
        return stored

    def delete_all(self, blob_ids: Sequence[BlobId]) -> list[BlobDeletion]:
        """Attempt to delete every blob; one failure never stops the rest."""
        results: list[BlobDeletion] = []
        for blob_id in blob_ids:
            try:
                self._blob_store.delete(blob_id)
            except StorageIOError as exc:
                logger.warning("blob_delete_failed", blob_id=str(blob_id), error=str(exc))
                results.append(BlobDeletion(blob_id, exc))
            else:
                logger.debug("blob_deleted", blob_id=str(blob_id))
                results.append(BlobDeletion(blob_id))
        return results

    def _store_one(self, upload: Upload) -> BlobId:
        blob_id = self._blob_store.store(
            upload.data, upload.filename, upload.content_type
        )
        logger.debug(
            "blob_stored",
            blob_id=str(blob_id),
            filename=upload.filename,
            length=len(upload.data),
        )
        return blob_id
