"""Application service: Update Product use case.

The payload replaces the product's fields and its shade list wholesale.
Images are only replaced where a new file is attached:

  * main image — changed only when a main image file is attached; any
    ``mainImage`` value in the payload is ignored;
  * shade ``i`` — if a file is attached at position ``i``, the blob the
    *stored* product had at that position is deleted and the new upload
    takes its place; otherwise the payload's referenceImage is kept.

Blobs are written first, replaced blobs are deleted best-effort, and the
document write is the final step.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence

import structlog

from catalog.application.dto import ProductPayload, UpdateResult
from catalog.application.payload_rules import (
    MAX_SHADE_IMAGES,
    attached_slots,
    build_shades,
    check_shade_images,
    check_uploads,
    require_product_id,
)
from catalog.domain.exceptions import (
    ConflictError,
    EntityNotFoundError,
    StorageIOError,
)
from catalog.domain.model.blob import BlobDeletion, Upload
from catalog.domain.model.product import Category, Product
from catalog.domain.model.value_objects import BlobId, Money, StoredBlob
from catalog.domain.repository.product_repository import ProductRepository
from catalog.domain.service.blob_ownership_service import BlobOwnershipService

logger = structlog.get_logger(__name__)


class UpdateProductHandler:

    def __init__(
        self,
        product_repo: ProductRepository,
        blobs: BlobOwnershipService,
        max_shade_images: int = MAX_SHADE_IMAGES,
        prune_removed_shade_images: bool = False,
    ) -> None:
        self._product_repo = product_repo
        self._blobs = blobs
        self._max_shade_images = max_shade_images
        self._prune_removed_shade_images = prune_removed_shade_images

    def handle(
        self,
        product_id: str,
        payload: ProductPayload,
        main_image: Upload | None = None,
        shade_images: Sequence[Upload | None] = (),
        expected_version: int | None = None,
    ) -> UpdateResult:
        """Apply *payload* to a stored product.

        When *expected_version* is given the update is refused with
        ConflictError unless it matches the stored version. Without it,
        concurrent updates are last-write-wins.
        """
        require_product_id(product_id)
        current = self._product_repo.get_by_id(product_id)
        if current is None:
            raise EntityNotFoundError("Product not found")
        if expected_version is not None and expected_version != current.version:
            raise ConflictError(
                f"Product {product_id} is at version {current.version}, "
                f"not {expected_version}"
            )

        check_shade_images(payload.shades, shade_images, self._max_shade_images)
        check_uploads(main_image, shade_images)
        updated = dataclasses.replace(
            current,
            name=payload.name.strip(),
            price=Money.of(payload.price),
            category=Category.parse(payload.category),
            brand=payload.brand,
            description=payload.description,
            features=list(payload.features),
            ingredients=list(payload.ingredients),
            shades=build_shades(payload.shades, shade_images),
            sale=payload.sale,
            rating=payload.rating,
        )
        if main_image is not None:
            updated.main_image = None  # filled in after the upload

        # Work out which blobs lose their owner before touching the store.
        # Fresh uploads are never in the stored product, so only the
        # references carried over from the payload can keep one alive.
        kept = set(updated.owned_blob_ids())
        slots = attached_slots(shade_images)
        replaced = self._replaced_blobs(current, main_image, slots)
        replaced = [b for b in replaced if b not in kept]
        abandoned = [
            b for b in current.owned_blob_ids() if b not in kept and b not in replaced
        ]
        prune = abandoned if self._prune_removed_shade_images else []

        uploads = [main_image] if main_image is not None else []
        uploads += [shade_images[i] for i in slots]
        if uploads or replaced or prune:
            self._blobs.ensure_ready()

        new_ids = self._blobs.upload_all(uploads)
        if main_image is not None:
            updated.main_image = StoredBlob(new_ids.pop(0))
        for index, blob_id in zip(slots, new_ids):
            updated.shades[index].reference_image = StoredBlob(blob_id)

        deletions: list[BlobDeletion] = self._blobs.delete_all(replaced)
        if prune:
            deletions += self._blobs.delete_all(prune)
        elif abandoned:
            logger.warning(
                "orphaned_blobs",
                reason="shades_removed",
                product_id=product_id,
                blob_ids=[str(b) for b in abandoned],
            )

        updated.touch()
        try:
            self._product_repo.save(updated)
        except StorageIOError:
            logger.warning(
                "orphaned_blobs",
                reason="document_write_failed",
                product_id=product_id,
                blob_ids=[str(b) for b in updated.owned_blob_ids() if b not in kept],
            )
            raise

        logger.info(
            "product_updated",
            product_id=product_id,
            version=updated.version,
            uploaded=len(uploads),
            deleted=sum(1 for d in deletions if d.ok),
        )
        return UpdateResult(product=updated, blob_deletions=deletions)

    @staticmethod
    def _replaced_blobs(
        current: Product, main_image: Upload | None, slots: list[int]
    ) -> list[BlobId]:
        """Stored blobs sitting in the slots that receive a new file."""
        replaced: list[BlobId] = []
        if main_image is not None and isinstance(current.main_image, StoredBlob):
            replaced.append(current.main_image.blob_id)
        for index in slots:
            if index >= len(current.shades):
                continue
            reference = current.shades[index].reference_image
            if isinstance(reference, StoredBlob):
                replaced.append(reference.blob_id)
        return replaced
