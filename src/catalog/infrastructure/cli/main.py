import click

from catalog.infrastructure.cli.image_commands import image_export
from catalog.infrastructure.cli.product_commands import (
    product_add,
    product_delete,
    product_list,
    product_show,
    product_update,
)
from catalog.infrastructure.config import get_settings
from catalog.infrastructure.logging import configure_logging


@click.group()
@click.option("--log-level", help="Override CATALOG_LOG_LEVEL.")
def cli(log_level: str | None) -> None:
    """Cosmetics product catalog"""
    settings = get_settings()
    configure_logging(log_level or settings.log_level, json=settings.log_json)


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def image() -> None:
    """Manage product images."""


# Register subcommands
product.add_command(product_add)
product.add_command(product_delete)
product.add_command(product_list)
product.add_command(product_show)
product.add_command(product_update)
image.add_command(image_export)
