"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

import os
import re
import time
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from catalog.domain.exceptions import ValidationError

_OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")


def new_object_id() -> str:
    """Generate a 24-char hex identifier.

    The first 4 bytes are the creation second (big-endian) so ids sort
    roughly by creation time; the remaining 8 bytes are random.
    """
    timestamp = int(time.time()).to_bytes(4, "big")
    return (timestamp + os.urandom(8)).hex()


def is_valid_object_id(candidate: object) -> bool:
    """Structural check only — says nothing about whether the id exists."""
    return isinstance(candidate, str) and bool(_OBJECT_ID_RE.match(candidate))


@dataclass(frozen=True)
class Money:
    """Monetary amount with currency.

    Uses Decimal to avoid floating-point rounding errors. Zero is a
    valid price (free samples); negative amounts are not.
    """

    amount: Decimal
    currency: str = "USD"

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if not self.amount.is_finite():
            raise ValidationError(f"Money amount must be finite, got {self.amount}")
        if self.amount < Decimal("0"):
            raise ValidationError(
                f"Money amount cannot be negative, got {self.amount}"
            )

    def __str__(self) -> str:
        return f"${self.amount:.2f}"

    @staticmethod
    def of(amount: str | float | int | Decimal) -> Money:
        """Convenient factory that coerces to Decimal safely."""
        if isinstance(amount, bool):
            raise ValidationError(f"Invalid money amount: {amount!r}")
        try:
            return Money(Decimal(str(amount)))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc


@dataclass(frozen=True)
class Stock:
    """Units of a shade on hand. Zero means sold out."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Stock must be an integer, got {type(self.value).__name__}"
            )
        if self.value < 0:
            raise ValidationError("Stock cannot be negative")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class BlobId:
    """Identifier of a binary object held by the blob store."""

    value: str

    def __post_init__(self) -> None:
        if not is_valid_object_id(self.value):
            raise ValidationError(f"Invalid blob ID: {self.value!r}")
        # Normalise so ids compare equal regardless of hex case.
        object.__setattr__(self, "value", self.value.lower())

    def __str__(self) -> str:
        return self.value

    @staticmethod
    def generate() -> BlobId:
        return BlobId(new_object_id())


# --- Image references --------------------------------------------------------
#
# Older catalog rows store plain image URLs; newer ones store the id of a
# blob the catalog uploaded itself. Only the latter are owned by the
# product and ever deleted.


@dataclass(frozen=True)
class LegacyUrl:
    url: str

    def __str__(self) -> str:
        return self.url


@dataclass(frozen=True)
class StoredBlob:
    blob_id: BlobId

    def __str__(self) -> str:
        return str(self.blob_id)


ImageRef = LegacyUrl | StoredBlob


def parse_image_ref(raw: object) -> ImageRef | None:
    """Interpret a raw document value as an image reference.

    Valid object ids become StoredBlob, any other non-empty string is a
    LegacyUrl, and empty or missing values mean "no image".
    """
    if raw is None:
        return None
    if isinstance(raw, (LegacyUrl, StoredBlob)):
        return raw
    if isinstance(raw, BlobId):
        return StoredBlob(raw)
    if not isinstance(raw, str):
        raise ValidationError(f"Image reference must be a string, got {type(raw).__name__}")
    raw = raw.strip()
    if not raw:
        return None
    if is_valid_object_id(raw):
        return StoredBlob(BlobId(raw))
    return LegacyUrl(raw)
