"""
Domain: inbound payment events.

A PaymentConfirmedEvent is built by the notification gateway only after the
provider's signature has been verified and the payload shape validated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .order import ShippingAddress


@dataclass(frozen=True, slots=True)
class PaymentConfirmedEvent:
    session_id: str
    item_id: str
    selected_size: str
    customer_email: str
    shipping: ShippingAddress
    payment_reference: Optional[str] = None

    def __post_init__(self) -> None:
        for field_name in ("session_id", "item_id", "selected_size", "customer_email"):
            if not getattr(self, field_name):
                raise ValueError(f"PaymentConfirmedEvent.{field_name} must be non-empty")
