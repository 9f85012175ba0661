"""Catalog configuration using Pydantic settings.

Every field can be overridden with a ``CATALOG_``-prefixed environment
variable or from a local ``.env`` file.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CATALOG_", env_file=".env", extra="ignore"
    )

    # Storage
    data_dir: Path = Path("data")
    products_file: str = "products.json"
    bucket_name: str = "uploads"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Image handling
    max_shade_images: int = Field(default=10, ge=0)
    upload_workers: int = Field(default=4, ge=1)
    # Delete the images of shades dropped by an update instead of only
    # logging them as orphaned.
    prune_removed_shade_images: bool = False

    @property
    def products_path(self) -> Path:
        return self.data_dir / self.products_file


@lru_cache
def get_settings() -> Settings:
    return Settings()
