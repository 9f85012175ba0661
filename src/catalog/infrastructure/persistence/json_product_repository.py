"""JSON-file-backed implementation of ProductRepository.

Documents keep the field names of the original catalog collection
(``_id``, ``mainImage``, ``colorCode``, ``referenceImage``, ...) so
exported data can be loaded unchanged. Older rows that still carry the
main image under ``img`` are read transparently.
"""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

from catalog.domain.exceptions import StorageIOError
from catalog.domain.model.product import Category, Product, Shade
from catalog.domain.model.value_objects import (
    Money,
    Stock,
    new_object_id,
    parse_image_ref,
)
from catalog.domain.repository.product_repository import ProductRepository

_EPOCH = datetime.fromtimestamp(0, timezone.utc)


class JsonProductRepository(ProductRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._ensure_file()

    # --- ProductRepository interface ------------------------------------------

    def next_id(self) -> str:
        return new_object_id()

    def get_by_id(self, product_id: str) -> Product | None:
        for raw in self._load_raw():
            if raw["_id"] == product_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Product]:
        return [self._to_domain(raw) for raw in self._load_raw()]

    def save(self, product: Product) -> None:
        documents = self._load_raw()

        # Upsert: replace if exists, otherwise append
        for i, raw in enumerate(documents):
            if raw["_id"] == product.id:
                documents[i] = self._to_raw(product)
                break
        else:
            documents.append(self._to_raw(product))

        self._persist_raw(documents)

    def delete(self, product_id: str) -> bool:
        documents = self._load_raw()
        remaining = [raw for raw in documents if raw["_id"] != product_id]
        if len(remaining) == len(documents):
            return False
        self._persist_raw(remaining)
        return True

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(product: Product) -> dict[str, Any]:
        raw: dict[str, Any] = {
            "_id": product.id,
            "name": product.name,
            "price": str(product.price.amount),
            "currency": product.price.currency,
            "category": product.category.value if product.category else None,
            "brand": product.brand,
            "description": product.description,
            "features": list(product.features),
            "ingredients": list(product.ingredients),
            "shades": [
                {
                    "name": s.name,
                    "colorCode": s.color_code,
                    "stock": s.stock.value,
                    "price": None if s.price is None else str(s.price.amount),
                    "referenceImage": (
                        None if s.reference_image is None else str(s.reference_image)
                    ),
                }
                for s in product.shades
            ],
            "sale": product.sale,
            "rating": product.rating,
            "createdAt": product.created_at.isoformat(),
            "updatedAt": product.updated_at.isoformat(),
            "version": product.version,
        }
        if product.main_image is not None:
            raw["mainImage"] = str(product.main_image)
        return raw

    @staticmethod
    def _to_domain(raw: dict[str, Any]) -> Product:
        currency = raw.get("currency", "USD")
        return Product(
            id=raw["_id"],
            name=raw["name"],
            price=Money(Decimal(str(raw["price"])), currency),
            category=Category.parse(raw.get("category")),
            brand=raw.get("brand") or "",
            description=raw.get("description") or "",
            features=list(raw.get("features") or []),
            ingredients=list(raw.get("ingredients") or []),
            main_image=parse_image_ref(raw.get("mainImage", raw.get("img"))),
            shades=[
                Shade(
                    name=s["name"],
                    color_code=s["colorCode"],
                    stock=Stock(s.get("stock", 0)),
                    price=(
                        None
                        if s.get("price") is None
                        else Money(Decimal(str(s["price"])), currency)
                    ),
                    reference_image=parse_image_ref(s.get("referenceImage")),
                )
                for s in raw.get("shades") or []
            ],
            sale=bool(raw.get("sale", False)),
            rating=raw.get("rating", 0),
            created_at=_parse_time(raw.get("createdAt")),
            updated_at=_parse_time(raw.get("updatedAt", raw.get("createdAt"))),
            version=raw.get("version", 1),
        )

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> list[dict[str, Any]]:
        try:
            return json.loads(self._file_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageIOError(f"Cannot read {self._file_path}: {exc}") from exc

    def _persist_raw(self, documents: list[dict[str, Any]]) -> None:
        # Write a sibling temp file, then swap it in.
        payload = json.dumps(documents, indent=2) + "\n"
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self._file_path.parent, prefix=f".{self._file_path.name}."
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, self._file_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageIOError(f"Cannot write {self._file_path}: {exc}") from exc

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")


def _parse_time(raw: str | None) -> datetime:
    if not raw:
        return _EPOCH
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
