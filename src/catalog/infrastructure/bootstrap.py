"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from catalog.application.create_product import CreateProductHandler
from catalog.application.delete_product import DeleteProductHandler
from catalog.application.update_product import UpdateProductHandler
from catalog.domain.service.blob_ownership_service import BlobOwnershipService
from catalog.infrastructure.config import Settings, get_settings
from catalog.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from catalog.infrastructure.storage.filesystem_blob_store import FilesystemBlobStore


def product_repository(settings: Settings | None = None) -> JsonProductRepository:
    settings = settings or get_settings()
    return JsonProductRepository(settings.products_path)


def blob_store(settings: Settings | None = None) -> FilesystemBlobStore:
    """Return a blob store that is already open for requests."""
    settings = settings or get_settings()
    return FilesystemBlobStore(settings.data_dir, settings.bucket_name).open()


def blob_ownership_service(settings: Settings | None = None) -> BlobOwnershipService:
    settings = settings or get_settings()
    return BlobOwnershipService(blob_store(settings), settings.upload_workers)


def create_product_handler(settings: Settings | None = None) -> CreateProductHandler:
    settings = settings or get_settings()
    return CreateProductHandler(
        product_repo=product_repository(settings),
        blobs=blob_ownership_service(settings),
        max_shade_images=settings.max_shade_images,
    )


def update_product_handler(settings: Settings | None = None) -> UpdateProductHandler:
    settings = settings or get_settings()
    return UpdateProductHandler(
        product_repo=product_repository(settings),
        blobs=blob_ownership_service(settings),
        max_shade_images=settings.max_shade_images,
        prune_removed_shade_images=settings.prune_removed_shade_images,
    )


def delete_product_handler(settings: Settings | None = None) -> DeleteProductHandler:
    settings = settings or get_settings()
    return DeleteProductHandler(
        product_repo=product_repository(settings),
        blobs=blob_ownership_service(settings),
    )
