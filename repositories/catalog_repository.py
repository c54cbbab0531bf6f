"""
Catalog repository (persistence).

This module provides *only* persistence operations for the Item domain entity.
It enforces one persistence constraint itself: the AVAILABLE -> SOLD transition
is a conditional update that only touches rows still marked available.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, List, Mapping, Optional, Tuple

from supabase import Client  # type: ignore[import-not-found]

from domain.item import Item, ItemStatus, Variant
from repositories.timestamps import parse_optional_utc_datetime, parse_utc_datetime, to_iso_utc

# Supabase table name for catalog items.
# Keep this aligned with your database schema.
_PRODUCTS_TABLE: str = "products"


def _parse_variants(value: Any) -> Tuple[Variant, ...]:
    """
    Parse the stored variant list.

    The column holds [{"size": "M", "variantId": "4013"}, ...], either as a
    jsonb array or as a JSON-encoded string.
    """

    if value is None:
        return ()
    if isinstance(value, str):
        value = json.loads(value) if value.strip() else []
    return tuple(
        Variant(size=str(entry["size"]), provider_variant_id=str(entry["variantId"]))
        for entry in value
    )


def _row_to_item(row: Mapping[str, Any]) -> Item:
    """Convert a Supabase row into an Item."""

    return Item(
        item_id=str(row["id"]),
        title=str(row.get("title") or ""),
        description=str(row.get("description") or ""),
        image_url=str(row.get("mockup_image_url") or ""),
        provider_product_id=str(row.get("printful_product_id") or ""),
        variants=_parse_variants(row.get("printful_variant_ids")),
        status=ItemStatus(str(row["status"])),
        created_at=parse_utc_datetime(row["created_at_utc"]),
        sold_at=parse_optional_utc_datetime(row.get("sold_at_utc")),
    )


class SupabaseCatalogStore:
    """Catalog store backed by the Supabase `products` table."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def _select_by_status(self, status: ItemStatus) -> List[Item]:
        response = (
            self._client.table(_PRODUCTS_TABLE)
            .select("*")
            .eq("status", status.value)
            .order("created_at_utc", desc=True)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to list {status.value} items: {error}")

        rows = getattr(response, "data", None) or []
        return [_row_to_item(row) for row in rows]

    def get_available_items(self) -> List[Item]:
        """Fetch all AVAILABLE items, newest first."""

        return self._select_by_status(ItemStatus.AVAILABLE)

    def list_sold_items(self) -> List[Item]:
        """Fetch all SOLD items, newest first."""

        return self._select_by_status(ItemStatus.SOLD)

    def get_item_by_id(self, item_id: str) -> Optional[Item]:
        """
        Retrieve a single item by its ID.

        Returns:
            Item or None if not found
        """

        response = (
            self._client.table(_PRODUCTS_TABLE)
            .select("*")
            .eq("id", item_id)
            .limit(1)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to get item: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return _row_to_item(rows[0])

    def conditional_mark_sold(self, item_id: str, sold_at: datetime) -> bool:
        """
        Mark an item as sold if, and only if, it is still available.

        This is a single UPDATE ... WHERE id = ? AND status = 'available'; the
        database serializes concurrent callers, so exactly one of them sees an
        updated row. Returns True when this call performed the transition.
        """

        update_payload: dict[str, Any] = {
            "status": ItemStatus.SOLD.value,
            "sold_at_utc": to_iso_utc(sold_at, name="sold_at"),
        }

        response = (
            self._client.table(_PRODUCTS_TABLE)
            .update(update_payload)
            .eq("id", item_id)
            .eq("status", ItemStatus.AVAILABLE.value)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to mark item sold: {error}")

        updated_rows = getattr(response, "data", None) or []
        return len(updated_rows) > 0


__all__ = ["SupabaseCatalogStore"]
