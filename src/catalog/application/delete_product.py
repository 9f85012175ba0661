"""Application service: Delete Product use case.

Every blob the product owns is deleted first, each attempt independent
of the others. Failed blob deletes are reported in the result but never
stop the document from being removed: a stray blob is cheaper than a
product that can't be deleted.
"""

from __future__ import annotations

import structlog

from catalog.application.dto import DeleteReport
from catalog.application.payload_rules import require_product_id
from catalog.domain.exceptions import EntityNotFoundError, StorageIOError
from catalog.domain.repository.product_repository import ProductRepository
from catalog.domain.service.blob_ownership_service import BlobOwnershipService

logger = structlog.get_logger(__name__)


class DeleteProductHandler:

    def __init__(
        self,
        product_repo: ProductRepository,
        blobs: BlobOwnershipService,
    ) -> None:
        self._product_repo = product_repo
        self._blobs = blobs

    def handle(self, product_id: str) -> DeleteReport:
        require_product_id(product_id)
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError("Product not found.")

        owned = product.owned_blob_ids()
        if owned:
            self._blobs.ensure_ready()
            logger.info(
                "deleting_product_images",
                product_id=product_id,
                blob_ids=[str(b) for b in owned],
            )
        deletions = self._blobs.delete_all(owned)

        # Some blobs may already be gone at this point; the caller has to
        # learn that the document is still there.
        if not self._product_repo.delete(product_id):
            logger.error("product_delete_failed", product_id=product_id)
            raise StorageIOError("Failed to delete product document.")

        report = DeleteReport(product_id=product_id, blob_deletions=deletions)
        logger.info(
            "product_deleted",
            product_id=product_id,
            blobs=len(deletions),
            failed=len(report.failed_deletions),
        )
        return report
