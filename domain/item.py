"""
Domain: one-of-a-kind catalog items.

Rules implemented here:
- An Item is sellable exactly once; status moves AVAILABLE -> SOLD and never back.
- Every Item carries the ordered list of sizes it can be printed in, each mapped
  to the fulfillment provider's variant reference.
- Variants and descriptive fields are written once by the admin upload flow and
  are read-only afterwards.

This module contains only pure domain entities/value objects: no I/O, no database, no frameworks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from .time import require_utc_timestamp


class ItemStatus(str, Enum):
    AVAILABLE = "available"
    SOLD = "sold"


@dataclass(frozen=True, slots=True)
class Variant:
    """A purchasable size, mapped to the fulfillment provider's variant id."""

    size: str
    provider_variant_id: str

    def __post_init__(self) -> None:
        if not self.size:
            raise ValueError("Variant size must be non-empty")
        if not self.provider_variant_id:
            raise ValueError("Variant provider_variant_id must be non-empty")


@dataclass(frozen=True, slots=True)
class Item:
    """
    Immutable snapshot of a single-quantity catalog entry.

    Notes:
    - Selling returns a new instance; the snapshot a caller holds never changes.
    - sold_at may only be set on a SOLD item. Stores that lock the row before
      stamping the time may return SOLD with sold_at still empty.
    """

    item_id: str
    title: str
    description: str
    image_url: str
    provider_product_id: str
    variants: Tuple[Variant, ...]
    status: ItemStatus
    created_at: datetime
    sold_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.item_id:
            raise ValueError("item_id must be non-empty")
        require_utc_timestamp("created_at", self.created_at)
        if self.sold_at is not None:
            require_utc_timestamp("sold_at", self.sold_at)
            if self.status is not ItemStatus.SOLD:
                raise ValueError("sold_at can only be set on a sold item")

        sizes = [variant.size for variant in self.variants]
        if len(sizes) != len(set(sizes)):
            raise ValueError(f"Duplicate variant sizes for item {self.item_id}: {sizes}")

    @property
    def is_available(self) -> bool:
        return self.status is ItemStatus.AVAILABLE

    @property
    def sizes(self) -> Tuple[str, ...]:
        return tuple(variant.size for variant in self.variants)

    def find_variant(self, size: str) -> Optional[Variant]:
        """Return the variant for a size label, or None if the item is not offered in it."""

        for variant in self.variants:
            if variant.size == size:
                return variant
        return None

    def sold(self, sold_at: datetime) -> "Item":
        """
        Return a new Item marked as sold.

        Raises ValueError if the item was already sold.
        """

        require_utc_timestamp("sold_at", sold_at)
        if self.status is ItemStatus.SOLD:
            raise ValueError(f"Item {self.item_id} is already sold")
        return Item(
            item_id=self.item_id,
            title=self.title,
            description=self.description,
            image_url=self.image_url,
            provider_product_id=self.provider_product_id,
            variants=self.variants,
            status=ItemStatus.SOLD,
            created_at=self.created_at,
            sold_at=sold_at,
        )
