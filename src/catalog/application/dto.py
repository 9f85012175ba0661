"""Data Transfer Objects — plain containers that cross layer boundaries.

Inbound payloads mirror the JSON tree clients send (camelCase keys);
outbound reports carry domain objects plus the per-blob outcomes of the
cleanup work an operation did.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from catalog.domain.exceptions import ValidationError
from catalog.domain.model.blob import BlobDeletion
from catalog.domain.model.product import Product


def _pick(raw: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return default


def _text(raw: dict[str, Any], *keys: str) -> str:
    """A string field; missing or null reads as empty."""
    value = _pick(raw, *keys)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"'{keys[0]}' must be a string")
    return value


def _str_list(raw: Any, field_name: str) -> list[str]:
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(x, str) for x in raw):
        raise ValidationError(f"'{field_name}' must be a list of strings")
    return list(raw)


@dataclass(frozen=True)
class ShadePayload:
    """Input: one shade as sent by the client."""

    name: str
    color_code: str
    stock: int = 0
    price: str | None = None
    reference_image: str | None = None  # echoed id or legacy URL

    @staticmethod
    def from_dict(raw: Any) -> ShadePayload:
        if not isinstance(raw, dict):
            raise ValidationError("Each shade must be an object")
        price = _pick(raw, "price")
        reference = _pick(raw, "referenceImage", "reference_image")
        return ShadePayload(
            name=_text(raw, "name"),
            color_code=_text(raw, "colorCode", "color_code"),
            stock=_pick(raw, "stock", default=0),
            price=None if price is None else str(price),
            reference_image=None if reference is None else str(reference),
        )


@dataclass(frozen=True)
class ProductPayload:
    """Input: the product fields of a create or update request."""

    name: str
    price: str
    category: str | None = None
    brand: str = ""
    description: str = ""
    features: list[str] = field(default_factory=list)
    ingredients: list[str] = field(default_factory=list)
    shades: list[ShadePayload] = field(default_factory=list)
    sale: bool = False
    rating: float = 0
    main_image: str | None = None  # never trusted; see the handlers

    @staticmethod
    def from_dict(raw: Any) -> ProductPayload:
        if not isinstance(raw, dict):
            raise ValidationError("Product payload must be a JSON object")
        price = _pick(raw, "price")
        if price is None:
            raise ValidationError("Product price is required")
        shades = _pick(raw, "shades", default=[])
        if not isinstance(shades, list):
            raise ValidationError("'shades' must be a list")
        rating = _pick(raw, "rating", default=0)
        if isinstance(rating, bool) or not isinstance(rating, (int, float)):
            raise ValidationError("'rating' must be a number")
        main_image = _pick(raw, "mainImage", "main_image", "img")
        return ProductPayload(
            name=_text(raw, "name"),
            price=str(price),
            category=_text(raw, "category") or None,
            brand=str(_pick(raw, "brand", default="") or ""),
            description=str(_pick(raw, "description", default="") or ""),
            features=_str_list(_pick(raw, "features"), "features"),
            ingredients=_str_list(_pick(raw, "ingredients"), "ingredients"),
            shades=[ShadePayload.from_dict(s) for s in shades],
            sale=bool(_pick(raw, "sale", default=False)),
            rating=rating,
            main_image=None if main_image is None else str(main_image),
        )


@dataclass(frozen=True)
class UpdateResult:
    """Output: the stored product and the cleanup it triggered."""

    product: Product
    blob_deletions: list[BlobDeletion]

    @property
    def failed_deletions(self) -> list[BlobDeletion]:
        return [d for d in self.blob_deletions if not d.ok]


@dataclass(frozen=True)
class DeleteReport:
    """Output: which of the product's blobs could be removed."""

    product_id: str
    blob_deletions: list[BlobDeletion]

    @property
    def failed_deletions(self) -> list[BlobDeletion]:
        return [d for d in self.blob_deletions if not d.ok]

    @property
    def message(self) -> str:
        if self.failed_deletions:
            return (
                "Product deleted; "
                f"{len(self.failed_deletions)} image(s) could not be removed."
            )
        return "Product and all images deleted successfully."


@dataclass(frozen=True)
class ProductPage:
    """Output: one page of a product listing."""

    products: list[Product]
    current_page: int
    total_pages: int
    total_products: int
