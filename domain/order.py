"""
Domain: purchase orders.

Rules implemented here:
- An Order is keyed by the payment session id; at most one Order exists per session.
- An Order references exactly one Item and is never re-pointed at another.
- A FULFILLED Order always carries the fulfillment provider's order id.

This module captures order records. The exactly-once sale itself is enforced by
the catalog store's conditional update, not here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from .time import require_utc_timestamp


class OrderStatus(str, Enum):
    RECORDED = "recorded"
    FULFILLED = "fulfilled"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ShippingAddress:
    """Structured shipping address as collected by the payment provider."""

    name: str
    line1: str
    city: str
    postal_code: str
    country: str
    line2: Optional[str] = None
    region: Optional[str] = None

    def __post_init__(self) -> None:
        for field_name in ("name", "line1", "city", "postal_code", "country"):
            if not getattr(self, field_name):
                raise ValueError(f"Shipping address {field_name} must be non-empty")


@dataclass(frozen=True, slots=True)
class Order:
    """
    Immutable record of a completed or attempted purchase.

    session_id is the upstream payment session id (natural idempotency key);
    payment_reference is the provider's payment id, when it sent one.
    """

    order_id: UUID
    session_id: str
    item_id: str
    customer_email: str
    shipping: ShippingAddress
    selected_size: str
    status: OrderStatus
    payment_reference: Optional[str] = None
    provider_order_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.session_id:
            raise ValueError("session_id must be non-empty")
        if not self.item_id:
            raise ValueError("item_id must be non-empty")
        if self.status is OrderStatus.FULFILLED and not self.provider_order_id:
            raise ValueError("A fulfilled order requires provider_order_id")
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)
