"""
Order repository (persistence).

This module provides *only* persistence operations for the Order domain entity.
The `orders` table carries a unique constraint on stripe_session_id; a violation
is surfaced as DuplicateOrderError so callers can treat it as "already processed".
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, List, Mapping, Optional
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.order import Order, OrderStatus, ShippingAddress
from domain.time import utc_now
from repositories.base import DuplicateOrderError
from repositories.timestamps import parse_optional_utc_datetime, to_iso_utc

# Supabase table name for orders.
# Keep this aligned with your database schema.
_ORDERS_TABLE: str = "orders"

# Postgres unique_violation
_UNIQUE_VIOLATION: str = "23505"


def _row_to_order(row: Mapping[str, Any]) -> Order:
    """Convert a Supabase row into an Order."""

    return Order(
        order_id=UUID(str(row["id"])),
        session_id=str(row["stripe_session_id"]),
        payment_reference=row.get("stripe_payment_intent_id"),
        item_id=str(row["product_id"]),
        customer_email=str(row["customer_email"]),
        shipping=ShippingAddress(
            name=str(row["shipping_name"]),
            line1=str(row["shipping_line1"]),
            line2=row.get("shipping_line2"),
            city=str(row["shipping_city"]),
            region=row.get("shipping_state"),
            postal_code=str(row["shipping_postal_code"]),
            country=str(row["shipping_country"]),
        ),
        selected_size=str(row["selected_size"]),
        status=OrderStatus(str(row["status"])),
        provider_order_id=row.get("printful_order_id"),
        created_at=parse_optional_utc_datetime(row.get("created_at_utc")),
        updated_at=parse_optional_utc_datetime(row.get("updated_at_utc")),
    )


def _order_to_row(order: Order) -> dict[str, Any]:
    created_at = order.created_at or utc_now()
    updated_at = order.updated_at or created_at
    return {
        "id": str(order.order_id),
        "stripe_session_id": order.session_id,
        "stripe_payment_intent_id": order.payment_reference,
        "product_id": order.item_id,
        "customer_email": order.customer_email,
        "shipping_name": order.shipping.name,
        "shipping_line1": order.shipping.line1,
        "shipping_line2": order.shipping.line2,
        "shipping_city": order.shipping.city,
        "shipping_state": order.shipping.region,
        "shipping_postal_code": order.shipping.postal_code,
        "shipping_country": order.shipping.country,
        "selected_size": order.selected_size,
        "status": order.status.value,
        "printful_order_id": order.provider_order_id,
        "created_at_utc": to_iso_utc(created_at, name="created_at"),
        "updated_at_utc": to_iso_utc(updated_at, name="updated_at"),
    }


class SupabaseOrderStore:
    """Order store backed by the Supabase `orders` table."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def _get_one(self, column: str, value: str) -> Optional[Order]:
        response = (
            self._client.table(_ORDERS_TABLE)
            .select("*")
            .eq(column, value)
            .limit(1)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to get order: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return _row_to_order(rows[0])

    def get_order_by_session_id(self, session_id: str) -> Optional[Order]:
        """Retrieve the order recorded for a payment session, or None."""

        return self._get_one("stripe_session_id", session_id)

    def get_order_by_item_id(self, item_id: str) -> Optional[Order]:
        """Retrieve the order recorded for an item, or None."""

        return self._get_one("product_id", item_id)

    def create_order(self, order: Order) -> Order:
        """
        Insert a new order.

        Raises:
            DuplicateOrderError: an order already exists for order.session_id
            RuntimeError: any other persistence failure
        """

        payload = _order_to_row(order)

        try:
            response = self._client.table(_ORDERS_TABLE).insert(payload).execute()
        except APIError as e:
            if str(getattr(e, "code", "")) == _UNIQUE_VIOLATION:
                raise DuplicateOrderError(
                    f"Order already exists for session {order.session_id}"
                ) from None
            raise RuntimeError(f"Failed to create order: {e}") from e

        error = getattr(response, "error", None)
        if error:
            if str(getattr(error, "code", None)) == _UNIQUE_VIOLATION:
                raise DuplicateOrderError(
                    f"Order already exists for session {order.session_id}"
                ) from None
            raise RuntimeError(f"Failed to create order: {error}")

        return replace(
            order,
            created_at=parse_optional_utc_datetime(payload["created_at_utc"]),
            updated_at=parse_optional_utc_datetime(payload["updated_at_utc"]),
        )

    def list_orders(self) -> List[Order]:
        """Retrieve all orders, newest first."""

        response = (
            self._client.table(_ORDERS_TABLE)
            .select("*")
            .order("created_at_utc", desc=True)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to list orders: {error}")

        rows = getattr(response, "data", None) or []
        return [_row_to_order(row) for row in rows]


__all__ = ["SupabaseOrderStore"]
