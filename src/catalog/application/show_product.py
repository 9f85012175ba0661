"""Application service: Show Product use case (query)."""

from __future__ import annotations

from catalog.application.payload_rules import require_product_id
from catalog.domain.exceptions import EntityNotFoundError
from catalog.domain.model.product import Product
from catalog.domain.repository.product_repository import ProductRepository


class ShowProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(self, product_id: str) -> Product:
        require_product_id(product_id)
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError("Product not found.")
        return product
