"""
Reconciliation report for the "SOLD but no order" gap.

A failed fulfillment submission or order write leaves an item SOLD with no
order row, and replaying the webhook cannot repair it (the conditional update
refuses a second sale). This service only *finds* those items; resolving them
is a manual step against the Printful order list.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from repositories.base import CatalogStore, OrderStore


@dataclass(frozen=True, slots=True)
class UnreconciledItem:
    item_id: str
    title: str
    sold_at: Optional[datetime]


def find_unreconciled_items(catalog: CatalogStore, orders: OrderStore) -> List[UnreconciledItem]:
    """
    Return every SOLD item that has no order recorded against it.

    Args:
        catalog: Catalog store to read sold items from
        orders: Order store to look up orders by item

    Returns:
        List of UnreconciledItem, in the catalog's order (possibly empty)
    """

    unreconciled: List[UnreconciledItem] = []
    for item in catalog.list_sold_items():
        if orders.get_order_by_item_id(item.item_id) is None:
            unreconciled.append(
                UnreconciledItem(item_id=item.item_id, title=item.title, sold_at=item.sold_at)
            )
    return unreconciled


__all__ = ["UnreconciledItem", "find_unreconciled_items"]
