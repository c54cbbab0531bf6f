"""
Checkout service for starting a Stripe payment on a single item.

The session metadata (productId, selectedSize) is echoed back verbatim in the
checkout.session.completed webhook, where the purchase finalizer uses it to
lock the item and pick the print variant.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import stripe

from repositories.base import CatalogStore

logger = logging.getLogger(__name__)

UNIT_AMOUNT_CENTS = 3500
CURRENCY = "usd"
SHIPPING_COUNTRIES: List[str] = ["US", "CA", "GB", "AU", "DE", "FR", "IT", "ES"]


class ItemNotFoundError(Exception):
    pass


class ItemSoldError(Exception):
    pass


class InvalidSizeError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class CheckoutSession:
    session_id: str
    url: Optional[str]


class CheckoutService:
    """Creates Stripe Checkout Sessions for available items."""

    def __init__(self, catalog: CatalogStore, stripe_api_key: str, base_url: str):
        if not stripe_api_key:
            raise RuntimeError(
                "Missing environment variable: STRIPE_SECRET_KEY. "
                "Set STRIPE_SECRET_KEY to your Stripe secret API key."
            )
        self.catalog = catalog
        self.stripe_api_key = stripe_api_key
        self.base_url = base_url.rstrip("/")

    def create_session(self, item_id: str, size: str) -> CheckoutSession:
        """
        Validate the item and size, then create a one-item payment session.

        This is a best-effort pre-check: the item can still be sold between now
        and payment. The webhook's conditional update is what decides the sale.

        Raises:
            ItemNotFoundError: no such item
            ItemSoldError: item is already sold
            InvalidSizeError: size not offered for this item
        """
        item = self.catalog.get_item_by_id(item_id)
        if item is None:
            raise ItemNotFoundError(f"Item {item_id} not found")
        if not item.is_available:
            raise ItemSoldError(f"Item {item_id} is no longer available")
        if item.find_variant(size) is None:
            raise InvalidSizeError(f"Size {size!r} is not offered for item {item_id}")

        session = stripe.checkout.Session.create(
            api_key=self.stripe_api_key,
            mode="payment",
            line_items=[
                {
                    "price_data": {
                        "currency": CURRENCY,
                        "product_data": {
                            "name": item.title,
                            "description": f"Size: {size}",
                        },
                        "unit_amount": UNIT_AMOUNT_CENTS,
                    },
                    "quantity": 1,
                }
            ],
            success_url=f"{self.base_url}/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self.base_url}/product/{item_id}",
            metadata={"productId": item.item_id, "selectedSize": size},
            shipping_address_collection={"allowed_countries": SHIPPING_COUNTRIES},
        )

        logger.info(f"Checkout session {session.id} created for item {item_id} (size {size})")
        return CheckoutSession(session_id=session.id, url=getattr(session, "url", None))


__all__ = [
    "CheckoutService",
    "CheckoutSession",
    "InvalidSizeError",
    "ItemNotFoundError",
    "ItemSoldError",
]
