"""Tests for the read-side use cases: show product, list products, show image."""

from datetime import datetime, timedelta, timezone

import pytest

from catalog.application.list_products import ListProductsHandler
from catalog.application.show_image import ShowImageHandler
from catalog.application.show_product import ShowProductHandler
from catalog.domain.exceptions import (
    EntityNotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from catalog.domain.model.product import Category, Product
from catalog.domain.model.value_objects import Money, new_object_id
from tests.fakes import FakeBlobStore, FakeProductRepository

_BASE = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _product(name: str, age_days: int, **overrides) -> Product:
    fields = dict(
        id=new_object_id(),
        name=name,
        price=Money.of("10"),
        created_at=_BASE - timedelta(days=age_days),
    )
    fields.update(overrides)
    return Product(**fields)


def _catalog() -> FakeProductRepository:
    return FakeProductRepository([
        _product("Velvet Lipstick", 1, category=Category.LIPS, brand="Glow",
                 description="Matte finish"),
        _product("Gloss Bomb", 2, category=Category.LIPS, brand="Shine"),
        _product("Brow Gel", 3, category=Category.EYES, brand="Glow",
                 description="Tinted, long-wear"),
        _product("Night Cream", 4, category=Category.SKINCARE, brand="Derm"),
    ])


class TestShowProduct:

    def test_found(self):
        product = _product("Brow Gel", 0)
        handler = ShowProductHandler(FakeProductRepository([product]))
        assert handler.handle(product.id).name == "Brow Gel"

    def test_not_found(self):
        handler = ShowProductHandler(FakeProductRepository())
        with pytest.raises(EntityNotFoundError):
            handler.handle(new_object_id())

    def test_malformed_id(self):
        handler = ShowProductHandler(FakeProductRepository())
        with pytest.raises(ValidationError, match="Invalid product ID"):
            handler.handle("abc")


class TestListProducts:

    def test_newest_first(self):
        page = ListProductsHandler(_catalog()).handle()
        assert [p.name for p in page.products] == [
            "Velvet Lipstick", "Gloss Bomb", "Brow Gel", "Night Cream",
        ]
        assert page.total_products == 4
        assert page.total_pages == 1
        assert page.current_page == 1

    def test_pagination(self):
        page = ListProductsHandler(_catalog()).handle(page=2, limit=3)
        assert [p.name for p in page.products] == ["Night Cream"]
        assert page.total_pages == 2

    def test_non_positive_paging_falls_back_to_defaults(self):
        page = ListProductsHandler(_catalog()).handle(page=0, limit=-5)
        assert page.current_page == 1
        assert len(page.products) == 4

    def test_filter_by_category_and_brand(self):
        page = ListProductsHandler(_catalog()).handle(category="lips", brand="Glow")
        assert [p.name for p in page.products] == ["Velvet Lipstick"]

    def test_search_matches_name_or_description_words(self):
        page = ListProductsHandler(_catalog()).handle(search="matte cream")
        assert [p.name for p in page.products] == ["Velvet Lipstick", "Night Cream"]

    def test_search_is_whole_word(self):
        page = ListProductsHandler(_catalog()).handle(search="lip")
        assert page.products == []
        assert page.total_pages == 0

    def test_unknown_category(self):
        with pytest.raises(ValidationError):
            ListProductsHandler(_catalog()).handle(category="snacks")


class TestShowImage:

    def test_reads_stored_blob(self):
        store = FakeBlobStore()
        blob_id = store.put(b"swatch", "ruby.png")
        image = ShowImageHandler(store).handle(str(blob_id))
        assert image.data == b"swatch"
        assert image.filename == "ruby.png"

    def test_unknown_image(self):
        with pytest.raises(EntityNotFoundError):
            ShowImageHandler(FakeBlobStore()).handle(new_object_id())

    def test_malformed_image_id(self):
        with pytest.raises(ValidationError, match="Invalid image ID"):
            ShowImageHandler(FakeBlobStore()).handle("../etc/passwd")

    def test_store_not_ready(self):
        with pytest.raises(StoreUnavailableError):
            ShowImageHandler(FakeBlobStore(ready=False)).handle(new_object_id())
