"""Integration tests for the UpdateProduct use case.

Uses in-memory fakes — no file I/O.
"""

import pytest
from structlog.testing import capture_logs

from catalog.application.dto import ProductPayload, ShadePayload
from catalog.application.update_product import UpdateProductHandler
from catalog.domain.exceptions import (
    ConflictError,
    EntityNotFoundError,
    StorageIOError,
    ValidationError,
)
from catalog.domain.model.blob import Upload
from catalog.domain.model.product import Product, Shade
from catalog.domain.model.value_objects import (
    LegacyUrl,
    Money,
    Stock,
    StoredBlob,
    new_object_id,
)
from catalog.domain.service.blob_ownership_service import BlobOwnershipService
from tests.fakes import FakeBlobStore, FakeProductRepository


def _upload(name: str) -> Upload:
    return Upload(data=name.encode(), filename=name, content_type="image/png")


def _setup(
    shade_count: int = 3, prune: bool = False
) -> tuple[UpdateProductHandler, FakeProductRepository, FakeBlobStore, Product]:
    store = FakeBlobStore()
    product = Product(
        id=new_object_id(),
        name="Silk Foundation",
        price=Money.of("38.00"),
        main_image=StoredBlob(store.put(filename="main.png")),
        shades=[
            Shade(
                name=f"Shade {i}",
                color_code=f"#00000{i}",
                stock=Stock(10),
                reference_image=StoredBlob(store.put(filename=f"shade{i}.png")),
            )
            for i in range(shade_count)
        ],
    )
    repo = FakeProductRepository([product])
    handler = UpdateProductHandler(
        repo, BlobOwnershipService(store), prune_removed_shade_images=prune
    )
    return handler, repo, store, product


def _echo(product: Product, **overrides) -> ProductPayload:
    """Payload a client would send back after editing *product*."""
    fields = dict(
        name=product.name,
        price=str(product.price.amount),
        shades=[
            ShadePayload(
                name=s.name,
                color_code=s.color_code,
                stock=s.stock.value,
                reference_image=str(s.reference_image),
            )
            for s in product.shades
        ],
    )
    fields.update(overrides)
    return ProductPayload(**fields)


class TestUpdateProductFields:

    def test_updates_fields_without_touching_blobs(self):
        handler, repo, store, product = _setup()
        result = handler.handle(product.id, _echo(product, name="Silk Foundation SPF"))

        assert result.product.name == "Silk Foundation SPF"
        assert repo.get_by_id(product.id).name == "Silk Foundation SPF"
        assert store.calls == 0
        assert result.blob_deletions == []

    def test_bumps_version_and_updated_at(self):
        handler, _, _, product = _setup()
        result = handler.handle(product.id, _echo(product))

        assert result.product.version == product.version + 1
        assert result.product.updated_at >= product.updated_at
        assert result.product.created_at == product.created_at

    def test_payload_main_image_is_ignored(self):
        handler, _, _, product = _setup()
        payload = _echo(product, main_image="https://cdn.example.com/other.png")
        result = handler.handle(product.id, payload)

        assert result.product.main_image == product.main_image


class TestUpdateProductImages:

    def test_replaces_main_image(self):
        handler, repo, store, product = _setup()
        old_main = product.main_image.blob_id
        result = handler.handle(product.id, _echo(product), main_image=_upload("new.png"))

        new_main = result.product.main_image
        assert isinstance(new_main, StoredBlob)
        assert new_main.blob_id != old_main
        assert new_main.blob_id in store.blobs
        assert old_main not in store.blobs
        assert store.deleted == [old_main]
        assert repo.get_by_id(product.id).main_image == new_main

    def test_file_only_at_index_two(self):
        handler, _, store, product = _setup(shade_count=3)
        old_refs = [s.reference_image for s in product.shades]

        result = handler.handle(
            product.id, _echo(product), shade_images=[None, None, _upload("s2.png")]
        )

        shades = result.product.shades
        assert shades[0].reference_image == old_refs[0]
        assert shades[1].reference_image == old_refs[1]
        assert isinstance(shades[2].reference_image, StoredBlob)
        assert shades[2].reference_image.blob_id in store.stored
        assert store.deleted == [old_refs[2].blob_id]
        assert old_refs[2].blob_id not in store.blobs

    def test_untouched_slots_take_payload_values(self):
        handler, _, store, product = _setup(shade_count=3)
        payload = _echo(product)
        payload.shades[0] = ShadePayload(
            "Shade 0", "#000000", reference_image="https://cdn/new-swatch.png"
        )

        result = handler.handle(
            product.id, payload, shade_images=[None, None, _upload("s2.png")]
        )

        assert result.product.shades[0].reference_image == LegacyUrl(
            "https://cdn/new-swatch.png"
        )
        # Shade 0's old blob lost its owner but its slot got no new file.
        assert product.shades[0].reference_image.blob_id not in store.deleted

    def test_echoed_blob_survives_when_its_old_slot_is_replaced(self):
        handler, _, store, product = _setup(shade_count=2)
        old_refs = [s.reference_image for s in product.shades]
        payload = _echo(product)
        # The client swaps the shades and uploads a new image for position
        # 0, so the blob that used to sit at 0 is still referenced at 1.
        payload.shades.reverse()

        result = handler.handle(product.id, payload, shade_images=[_upload("n.png")])

        assert result.product.shades[1].reference_image == old_refs[0]
        assert store.deleted == []
        assert old_refs[0].blob_id in store.blobs

    def test_deletes_blob_previously_at_the_replaced_index(self):
        handler, _, store, product = _setup(shade_count=3)
        payload = _echo(product)
        result = handler.handle(
            product.id,
            payload,
            shade_images=[_upload("a.png"), _upload("b.png"), _upload("c.png")],
        )

        old_ids = [s.reference_image.blob_id for s in product.shades]
        assert sorted(map(str, store.deleted)) == sorted(map(str, old_ids))
        assert all(d.ok for d in result.blob_deletions)
        for shade in result.product.shades:
            assert shade.reference_image.blob_id in store.blobs

    def test_legacy_reference_is_not_deleted(self):
        handler, repo, store, product = _setup(shade_count=1)
        product.shades[0].reference_image = LegacyUrl("https://cdn/legacy.png")
        repo.save(product)

        result = handler.handle(product.id, _echo(product), shade_images=[_upload("n.png")])

        assert store.deleted == []
        assert isinstance(result.product.shades[0].reference_image, StoredBlob)


class TestRemovedShades:

    def test_dropped_shade_images_are_logged_not_deleted(self):
        handler, _, store, product = _setup(shade_count=2)
        dropped = product.shades[1].reference_image.blob_id
        payload = _echo(product)
        payload.shades.pop()

        with capture_logs() as logs:
            handler.handle(product.id, payload)

        assert store.deleted == []
        assert dropped in store.blobs
        orphan_logs = [e for e in logs if e["event"] == "orphaned_blobs"]
        assert orphan_logs[0]["reason"] == "shades_removed"
        assert orphan_logs[0]["blob_ids"] == [str(dropped)]

    def test_dropped_shade_images_pruned_when_enabled(self):
        handler, _, store, product = _setup(shade_count=2, prune=True)
        dropped = product.shades[1].reference_image.blob_id
        payload = _echo(product)
        payload.shades.pop()

        result = handler.handle(product.id, payload)

        assert store.deleted == [dropped]
        assert dropped not in store.blobs
        assert [d.blob_id for d in result.blob_deletions] == [dropped]


class TestUpdateProductFailures:

    def test_not_found(self):
        handler, repo, store, product = _setup()
        with pytest.raises(EntityNotFoundError, match="Product not found"):
            handler.handle(new_object_id(), _echo(product), main_image=_upload("x.png"))
        assert store.calls == 0
        assert repo.saves == 0

    def test_malformed_id(self):
        handler, _, store, product = _setup()
        with pytest.raises(ValidationError, match="Invalid product ID"):
            handler.handle("not-an-id", _echo(product))
        assert store.calls == 0

    def test_version_conflict(self):
        handler, repo, store, product = _setup()
        with pytest.raises(ConflictError):
            handler.handle(
                product.id, _echo(product), main_image=_upload("x.png"), expected_version=7
            )
        assert store.calls == 0
        assert repo.saves == 0

    def test_matching_version_accepted(self):
        handler, _, _, product = _setup()
        result = handler.handle(product.id, _echo(product), expected_version=product.version)
        assert result.product.version == product.version + 1

    def test_failed_delete_does_not_abort_update(self):
        handler, repo, store, product = _setup()
        old_main = product.main_image.blob_id
        store.fail_delete_for.add(old_main)

        result = handler.handle(product.id, _echo(product), main_image=_upload("new.png"))

        assert [d.blob_id for d in result.failed_deletions] == [old_main]
        assert isinstance(result.failed_deletions[0].error, StorageIOError)
        assert repo.get_by_id(product.id).main_image == result.product.main_image

    def test_upload_failure_leaves_document_and_old_blobs(self):
        handler, repo, store, product = _setup()
        store.fail_store_for.add("bad.png")

        with pytest.raises(StorageIOError):
            handler.handle(product.id, _echo(product), main_image=_upload("bad.png"))

        assert store.deleted == []
        assert repo.saves == 0
        assert repo.get_by_id(product.id).main_image == product.main_image

    def test_empty_shade_file_rejected_before_any_upload(self):
        handler, repo, store, product = _setup(shade_count=2)
        empty = Upload(data=b"", filename="empty.png", content_type="image/png")
        with pytest.raises(ValidationError, match="empty file"):
            handler.handle(
                product.id,
                _echo(product),
                main_image=_upload("new.png"),
                shade_images=[None, empty],
            )
        assert store.calls == 0
        assert repo.saves == 0

    def test_shade_without_image_rejected(self):
        handler, _, store, product = _setup()
        payload = _echo(product)
        payload.shades.append(ShadePayload("New", "#ffffff"))
        with pytest.raises(ValidationError, match="needs an image"):
            handler.handle(product.id, payload)
        assert store.calls == 0
