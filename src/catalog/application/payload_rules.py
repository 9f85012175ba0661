"""Checks and conversions shared by the create and update use cases.

Everything here runs before the first blob store call, so a request that
fails one of these rules leaves no trace in either store.
"""

from __future__ import annotations

from collections.abc import Sequence

from catalog.application.dto import ShadePayload
from catalog.domain.exceptions import ValidationError
from catalog.domain.model.blob import Upload
from catalog.domain.model.product import Shade
from catalog.domain.model.value_objects import (
    Money,
    Stock,
    is_valid_object_id,
    parse_image_ref,
)
from catalog.domain.repository.blob_store import BlobStore

MAX_SHADE_IMAGES = 10


def require_product_id(product_id: str) -> None:
    if not is_valid_object_id(product_id):
        raise ValidationError("Invalid product ID.")


def attached_slots(shade_images: Sequence[Upload | None]) -> list[int]:
    """Positions in the shade list that receive a newly attached file."""
    return [i for i, upload in enumerate(shade_images) if upload is not None]


def check_uploads(
    main_image: Upload | None, shade_images: Sequence[Upload | None]
) -> None:
    """Apply the blob store's upload checks to every attached file at once."""
    for upload in [main_image, *shade_images]:
        if upload is not None:
            BlobStore.check_upload(upload.data, upload.content_type)


def check_shade_images(
    shades: Sequence[ShadePayload],
    shade_images: Sequence[Upload | None],
    max_shade_images: int = MAX_SHADE_IMAGES,
) -> None:
    """Shade images pair with shades by position, so there can't be more."""
    attached = len(attached_slots(shade_images))
    if attached > max_shade_images:
        raise ValidationError(
            f"At most {max_shade_images} shade images may be attached, got {attached}"
        )
    if len(shade_images) > len(shades):
        raise ValidationError(
            f"Got {len(shade_images)} shade images for {len(shades)} shades"
        )


def build_shades(
    shades: Sequence[ShadePayload], shade_images: Sequence[Upload | None]
) -> list[Shade]:
    """Turn shade payloads into Shade entities.

    Shades with a file at their position will receive a freshly uploaded
    image, so whatever reference the client sent for them is dropped.
    The rest keep the client's reference verbatim and must have one.
    """
    slots = set(attached_slots(shade_images))
    result: list[Shade] = []
    for index, payload in enumerate(shades):
        reference = None if index in slots else parse_image_ref(payload.reference_image)
        if index not in slots and reference is None:
            raise ValidationError(
                f"Shade '{payload.name}' at position {index} needs an image: "
                "attach a file or send a referenceImage"
            )
        result.append(
            Shade(
                name=payload.name,
                color_code=payload.color_code,
                stock=Stock(payload.stock),
                price=None if payload.price is None else Money.of(payload.price),
                reference_image=reference,
            )
        )
    return result
