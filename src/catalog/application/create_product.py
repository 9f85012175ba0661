"""Application service: Create Product use case.

Shade images are matched to shades by position: the i-th entry of
``shade_images`` belongs to the i-th shade in the payload. Shades with no
file at their position (a ``None`` entry, or past the end of the list)
keep the referenceImage the client sent.

Order of work:
  1. validate the whole request (no store is touched on failure);
  2. upload the main image and shade images;
  3. write the document, last.

If step 3 fails the blobs from step 2 are orphaned. They are logged,
not rolled back.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

import structlog

from catalog.application.dto import ProductPayload
from catalog.application.payload_rules import (
    MAX_SHADE_IMAGES,
    attached_slots,
    build_shades,
    check_shade_images,
    check_uploads,
)
from catalog.domain.exceptions import StorageIOError, ValidationError
from catalog.domain.model.blob import Upload
from catalog.domain.model.product import Category, Product
from catalog.domain.model.value_objects import Money, StoredBlob
from catalog.domain.repository.product_repository import ProductRepository
from catalog.domain.service.blob_ownership_service import BlobOwnershipService

logger = structlog.get_logger(__name__)


class CreateProductHandler:

    def __init__(
        self,
        product_repo: ProductRepository,
        blobs: BlobOwnershipService,
        max_shade_images: int = MAX_SHADE_IMAGES,
    ) -> None:
        self._product_repo = product_repo
        self._blobs = blobs
        self._max_shade_images = max_shade_images

    def handle(
        self,
        payload: ProductPayload,
        main_image: Upload | None,
        shade_images: Sequence[Upload | None] = (),
    ) -> Product:
        if main_image is None:
            raise ValidationError("Main image is required")
        check_shade_images(payload.shades, shade_images, self._max_shade_images)
        check_uploads(main_image, shade_images)

        now = datetime.now(timezone.utc)
        product = Product(
            id=self._product_repo.next_id(),
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
            created_at=now,
            updated_at=now,
        )

        slots = attached_slots(shade_images)
        self._blobs.ensure_ready()
        main_id, *shade_ids = self._blobs.upload_all(
            [main_image, *(shade_images[i] for i in slots)]
        )
        product.main_image = StoredBlob(main_id)
        for index, blob_id in zip(slots, shade_ids):
            product.shades[index].reference_image = StoredBlob(blob_id)

        try:
            self._product_repo.save(product)
        except StorageIOError:
            logger.warning(
                "orphaned_blobs",
                reason="document_write_failed",
                product_id=product.id,
                blob_ids=[str(b) for b in [main_id, *shade_ids]],
            )
            raise

        logger.info(
            "product_created",
            product_id=product.id,
            shades=len(product.shades),
            uploaded=1 + len(shade_ids),
        )
        return product
