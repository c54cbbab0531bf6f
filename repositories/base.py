"""
Store interfaces used by the purchase pipeline.

The finalizer depends on these protocols only; Supabase-backed implementations
live in catalog_repository.py and order_repository.py, and tests substitute
in-memory fakes.

The one hard requirement on any CatalogStore implementation is that
conditional_mark_sold is a single atomic compare-and-set on the item's status,
visible to every concurrent caller (in SQL: UPDATE ... WHERE id = ? AND
status = 'available', then check the affected row count).
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol

from domain.item import Item
from domain.order import Order


class DuplicateOrderError(ValueError):
    """Raised when an order already exists for the payment session id."""


class CatalogStore(Protocol):
    def get_available_items(self) -> List[Item]:
        ...

    def get_item_by_id(self, item_id: str) -> Optional[Item]:
        ...

    def conditional_mark_sold(self, item_id: str, sold_at: datetime) -> bool:
        """Atomically move the item from AVAILABLE to SOLD; False if it was not AVAILABLE."""
        ...

    def list_sold_items(self) -> List[Item]:
        ...


class OrderStore(Protocol):
    def get_order_by_session_id(self, session_id: str) -> Optional[Order]:
        ...

    def get_order_by_item_id(self, item_id: str) -> Optional[Order]:
        ...

    def create_order(self, order: Order) -> Order:
        """Insert the order; raises DuplicateOrderError if the session id is taken."""
        ...

    def list_orders(self) -> List[Order]:
        ...


__all__ = [
    "CatalogStore",
    "DuplicateOrderError",
    "OrderStore",
]
