"""Abstract repository for Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON, in-memory)
live in the infrastructure layer and in the test fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from catalog.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    def next_id(self) -> str:
        """Generate a new unique product ID."""

    @abstractmethod
    def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Insert a new product or replace every field of an existing one."""

    @abstractmethod
    def delete(self, product_id: str) -> bool:
        """Remove a product. Returns False if nothing was removed."""
