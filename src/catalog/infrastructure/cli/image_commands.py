"""CLI commands for stored product images."""

from __future__ import annotations

from pathlib import Path

import click

from catalog.application.show_image import ShowImageHandler
from catalog.domain.exceptions import DomainException
from catalog.infrastructure.bootstrap import blob_store


@click.command("export")
@click.option("--id", "image_id", required=True, help="Image ID.")
@click.option(
    "--out",
    required=True,
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Where to write the image.",
)
def image_export(image_id: str, out: Path) -> None:
    """Copy a stored image to a local file."""
    handler = ShowImageHandler(blob_store=blob_store())

    try:
        image = handler.handle(image_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    out.write_bytes(image.data)
    click.echo(f"Wrote {image.length} bytes ({image.content_type}) to {out}")
