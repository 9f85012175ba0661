"""CLI commands for the Product aggregate."""

from __future__ import annotations

import json
import mimetypes
from pathlib import Path

import click

from catalog.application.dto import ProductPayload
from catalog.application.list_products import ListProductsHandler
from catalog.application.show_product import ShowProductHandler
from catalog.domain.exceptions import DomainException
from catalog.domain.model.blob import Upload
from catalog.domain.model.product import Category, Product
from catalog.infrastructure.bootstrap import (
    create_product_handler,
    delete_product_handler,
    product_repository,
    update_product_handler,
)

_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)
# "-" holds a shade position open without attaching a file.
_SHADE_FILE = click.Path(exists=True, dir_okay=False, allow_dash=True, path_type=Path)


def _read_payload(path: Path) -> ProductPayload:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"{path} is not valid JSON: {exc}")
    try:
        return ProductPayload.from_dict(raw)
    except DomainException as exc:
        raise click.BadParameter(str(exc))


def _read_upload(path: Path | None) -> Upload | None:
    if path is None or str(path) == "-":
        return None
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return Upload(data=path.read_bytes(), filename=path.name, content_type=content_type)


def _display_product(product: Product) -> None:
    """Shared formatting for displaying a product."""
    category = product.category.value if product.category else "-"
    click.echo(f"Product {product.id}  (version {product.version})")
    click.echo(f"Name:     {product.name}")
    click.echo(f"Brand:    {product.brand or '-'}")
    click.echo(f"Category: {category}")
    click.echo(f"Price:    {product.price}{'  (on sale)' if product.sale else ''}")
    click.echo(f"Image:    {product.main_image or '-'}")
    click.echo(f"Updated:  {product.updated_at.strftime('%Y-%m-%d %H:%M UTC')}")

    if not product.shades:
        return
    click.echo()
    click.echo(f"  {'Shade':<20} {'Color':<9} {'Stock':>6} {'Price':>10}  Image")
    click.echo(f"  {'-'*72}")
    for shade in product.shades:
        price = str(shade.price) if shade.price else "-"
        click.echo(
            f"  {shade.name:<20} {shade.color_code:<9} {shade.stock.value:>6} "
            f"{price:>10}  {shade.reference_image or '-'}"
        )


@click.command("add")
@click.option("--data", "data_file", required=True, type=_FILE, help="Product JSON file.")
@click.option("--main-image", required=True, type=_FILE, help="Main product image.")
@click.option(
    "--shade-image",
    "shade_images",
    multiple=True,
    type=_SHADE_FILE,
    help="Shade image, in shade order. Repeat per shade; '-' skips one.",
)
def product_add(data_file: Path, main_image: Path, shade_images: tuple[Path, ...]) -> None:
    """Add a new product to the catalog."""
    payload = _read_payload(data_file)
    handler = create_product_handler()

    try:
        product = handler.handle(
            payload,
            main_image=_read_upload(main_image),
            shade_images=[_read_upload(p) for p in shade_images],
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product {product.id} '{product.name}' created")
    _display_product(product)


@click.command("update")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--data", "data_file", required=True, type=_FILE, help="Product JSON file.")
@click.option("--main-image", type=_FILE, help="Replacement main image.")
@click.option(
    "--shade-image",
    "shade_images",
    multiple=True,
    type=_SHADE_FILE,
    help="Replacement shade image, matched to shades by position; '-' skips one.",
)
@click.option(
    "--expected-version",
    type=int,
    help="Refuse the update unless the stored product is at this version.",
)
def product_update(
    product_id: str,
    data_file: Path,
    main_image: Path | None,
    shade_images: tuple[Path, ...],
    expected_version: int | None,
) -> None:
    """Update a product and optionally replace its images."""
    payload = _read_payload(data_file)
    handler = update_product_handler()

    try:
        result = handler.handle(
            product_id,
            payload,
            main_image=_read_upload(main_image),
            shade_images=[_read_upload(p) for p in shade_images],
            expected_version=expected_version,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product {product_id} updated")
    for failed in result.failed_deletions:
        click.echo(f"Warning: could not delete image {failed.blob_id}: {failed.error}", err=True)
    _display_product(result.product)


@click.command("delete")
@click.option("--id", "product_id", required=True, help="Product ID.")
def product_delete(product_id: str) -> None:
    """Delete a product together with all of its images."""
    handler = delete_product_handler()

    try:
        report = handler.handle(product_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    for failed in report.failed_deletions:
        click.echo(f"Warning: could not delete image {failed.blob_id}: {failed.error}", err=True)
    click.echo(report.message)


@click.command("show")
@click.option("--id", "product_id", required=True, help="Product ID.")
def product_show(product_id: str) -> None:
    """Show a single product."""
    handler = ShowProductHandler(product_repo=product_repository())

    try:
        product = handler.handle(product_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_product(product)


@click.command("list")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=10, show_default=True)
@click.option("--category", type=click.Choice([c.value for c in Category]))
@click.option("--brand", help="Exact brand name.")
@click.option("--search", help="Words to look for in name and description.")
def product_list(
    page: int,
    limit: int,
    category: str | None,
    brand: str | None,
    search: str | None,
) -> None:
    """List products, newest first."""
    handler = ListProductsHandler(product_repo=product_repository())

    try:
        result = handler.handle(
            page=page, limit=limit, category=category, brand=brand, search=search
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not result.products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<26} {'Name':<24} {'Brand':<14} {'Price':>10}")
    click.echo("-" * 77)
    for p in result.products:
        click.echo(f"{p.id:<26} {p.name:<24} {p.brand:<14} {str(p.price):>10}")
    click.echo(
        f"Page {result.current_page} of {result.total_pages} "
        f"({result.total_products} products)"
    )
