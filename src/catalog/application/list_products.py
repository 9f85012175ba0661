"""Application service: List Products use case (query).

Filters by category and brand, matches free-text search against whole
words of the name and description (any term matches), orders newest
first and returns one page.
"""

from __future__ import annotations

import math
import re

from catalog.application.dto import ProductPage
from catalog.domain.model.product import Category, Product
from catalog.domain.repository.product_repository import ProductRepository

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

_WORD_RE = re.compile(r"\w+")


def _words(text: str) -> set[str]:
    return {w.lower() for w in _WORD_RE.findall(text)}


class ListProductsHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(
        self,
        page: int | None = None,
        limit: int | None = None,
        category: str | None = None,
        brand: str | None = None,
        search: str | None = None,
    ) -> ProductPage:
        page = page if page and page > 0 else DEFAULT_PAGE
        limit = limit if limit and limit > 0 else DEFAULT_LIMIT
        wanted_category = Category.parse(category)
        terms = _words(search or "")

        matches = [
            p
            for p in self._product_repo.list_all()
            if (wanted_category is None or p.category == wanted_category)
            and (not brand or p.brand == brand)
            and (not terms or self._matches(p, terms))
        ]
        matches.sort(key=lambda p: p.created_at, reverse=True)

        start = (page - 1) * limit
        return ProductPage(
            products=matches[start:start + limit],
            current_page=page,
            total_pages=math.ceil(len(matches) / limit),
            total_products=len(matches),
        )

    @staticmethod
    def _matches(product: Product, terms: set[str]) -> bool:
        return bool(terms & (_words(product.name) | _words(product.description)))
