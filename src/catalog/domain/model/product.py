"""Product aggregate.

A Product owns its shades and, through them, every image blob the
catalog uploaded for it. Nothing else may hold a reference to those
blobs, which is what lets the application layer delete them together
with the product.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from catalog.domain.exceptions import ValidationError
from catalog.domain.model.value_objects import (
    BlobId,
    ImageRef,
    Money,
    Stock,
    StoredBlob,
)

MAX_RATING = 5


class Category(Enum):
    FACE = "face"
    EYES = "eyes"
    LIPS = "lips"
    CHEEKS = "cheeks"
    NAILS = "nails"
    SKINCARE = "skincare"
    FRAGRANCE = "fragrance"
    TOOLS = "tools"

    @staticmethod
    def parse(raw: str | None) -> Category | None:
        if raw is None or raw == "":
            return None
        if not isinstance(raw, str):
            raise ValidationError(f"Category must be a string, got {raw!r}")
        try:
            return Category(raw.strip().lower())
        except ValueError:
            allowed = ", ".join(c.value for c in Category)
            raise ValidationError(
                f"Unknown category '{raw}' (expected one of: {allowed})"
            ) from None


@dataclass
class Shade:
    """A colour variant of a product, with its own stock and swatch image."""

    name: str
    color_code: str
    stock: Stock = field(default_factory=lambda: Stock(0))
    price: Money | None = None  # overrides the product price when set
    reference_image: ImageRef | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Shade name is required")
        if not self.color_code or not self.color_code.strip():
            raise ValidationError(f"Shade '{self.name}' requires a color code")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Product:
    """Aggregate root for catalog entries.

    ``__init__`` does only field-level validation so the repository can
    reconstitute legacy rows (missing category, shades without images).
    The handlers enforce the stricter rules for new writes.
    """

    id: str
    name: str
    price: Money
    category: Category | None = None
    brand: str = ""
    description: str = ""
    features: list[str] = field(default_factory=list)
    ingredients: list[str] = field(default_factory=list)
    main_image: ImageRef | None = None
    shades: list[Shade] = field(default_factory=list)
    sale: bool = False
    rating: float = 0
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    version: int = 1

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Product name is required")
        if not 0 <= self.rating <= MAX_RATING:
            raise ValidationError(
                f"Rating must be between 0 and {MAX_RATING}, got {self.rating}"
            )

    def owned_blob_ids(self) -> list[BlobId]:
        """Every uploaded blob this product references, main image first.

        Legacy URL references are not owned and are left out.
        """
        owned: list[BlobId] = []
        if isinstance(self.main_image, StoredBlob):
            owned.append(self.main_image.blob_id)
        for shade in self.shades:
            if isinstance(shade.reference_image, StoredBlob):
                owned.append(shade.reference_image.blob_id)
        return owned

    def touch(self, now: datetime | None = None) -> None:
        """Record a mutation: bump ``updated_at`` and the version counter."""
        self.updated_at = now or _utcnow()
        self.version += 1
