"""
Tests for the Supabase repositories.

The Supabase client is replaced by a MagicMock query builder, so these run
without a database. They pin down:
- conditional_mark_sold filters on status = 'available' and reports whether a row changed
- row <-> domain conversion for products and orders
- unique violations on orders surface as DuplicateOrderError
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, List, Optional
from unittest.mock import MagicMock, call
from uuid import UUID

import pytest
from postgrest.exceptions import APIError

from domain.item import ItemStatus
from domain.order import Order, OrderStatus
from repositories.base import DuplicateOrderError
from repositories.catalog_repository import SupabaseCatalogStore
from repositories.order_repository import SupabaseOrderStore
from repositories.timestamps import parse_utc_datetime

from fakes import NOW, make_shipping


def fake_client(data: Optional[List[Any]] = None, error: Any = None, raises: Optional[Exception] = None):
    """Client whose query builder methods chain and whose execute() returns a canned response."""

    builder = MagicMock()
    for method in ("select", "eq", "order", "limit", "update", "insert"):
        getattr(builder, method).return_value = builder
    if raises is not None:
        builder.execute.side_effect = raises
    else:
        builder.execute.return_value = SimpleNamespace(data=data or [], error=error)

    client = MagicMock()
    client.table.return_value = builder
    return client, builder


PRODUCT_ROW = {
    "id": "X",
    "title": "Design X",
    "description": "One of a kind",
    "mockup_image_url": "https://images.example.com/X.png",
    "printful_product_id": 987,
    "printful_variant_ids": [{"size": "S", "variantId": 4011}, {"size": "M", "variantId": 4012}],
    "status": "available",
    "created_at_utc": "2025-01-01T00:00:00Z",
    "sold_at_utc": None,
}

ORDER_ROW = {
    "id": "00000000-0000-0000-0000-000000000001",
    "stripe_session_id": "cs_test_1",
    "stripe_payment_intent_id": "pi_123",
    "product_id": "X",
    "customer_email": "ada@example.com",
    "shipping_name": "Ada Buyer",
    "shipping_line1": "1 Main St",
    "shipping_line2": None,
    "shipping_city": "Springfield",
    "shipping_state": "IL",
    "shipping_postal_code": "62701",
    "shipping_country": "US",
    "selected_size": "M",
    "status": "fulfilled",
    "printful_order_id": "pf_order_1",
    "created_at_utc": "2025-01-02T12:00:00+00:00",
    "updated_at_utc": "2025-01-02T12:00:00+00:00",
}


# ============================================================================
# Catalog
# ============================================================================

def test_conditional_mark_sold_updates_only_available_rows() -> None:
    client, builder = fake_client(data=[{**PRODUCT_ROW, "status": "sold"}])

    assert SupabaseCatalogStore(client).conditional_mark_sold("X", NOW) is True

    client.table.assert_called_with("products")
    builder.update.assert_called_once_with({"status": "sold", "sold_at_utc": NOW.isoformat()})
    assert builder.eq.call_args_list == [call("id", "X"), call("status", "available")]


def test_conditional_mark_sold_reports_lost_race() -> None:
    client, _ = fake_client(data=[])

    assert SupabaseCatalogStore(client).conditional_mark_sold("X", NOW) is False


def test_conditional_mark_sold_surfaces_store_errors() -> None:
    client, _ = fake_client(error="connection reset")

    with pytest.raises(RuntimeError, match="Failed to mark item sold"):
        SupabaseCatalogStore(client).conditional_mark_sold("X", NOW)


def test_conditional_mark_sold_requires_utc() -> None:
    client, builder = fake_client(data=[])

    with pytest.raises(ValueError):
        SupabaseCatalogStore(client).conditional_mark_sold("X", datetime(2025, 1, 2, 12, 0, 0))
    builder.execute.assert_not_called()


def test_get_item_by_id_parses_row() -> None:
    client, _ = fake_client(data=[PRODUCT_ROW])

    item = SupabaseCatalogStore(client).get_item_by_id("X")

    assert item is not None
    assert item.status is ItemStatus.AVAILABLE
    assert item.provider_product_id == "987"
    assert item.sizes == ("S", "M")
    assert item.find_variant("M").provider_variant_id == "4012"
    assert item.created_at == datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


def test_variant_list_stored_as_json_string() -> None:
    row = {**PRODUCT_ROW, "printful_variant_ids": json.dumps([{"size": "L", "variantId": "4013"}])}
    client, _ = fake_client(data=[row])

    item = SupabaseCatalogStore(client).get_item_by_id("X")

    assert item.sizes == ("L",)


def test_get_item_by_id_returns_none_when_missing() -> None:
    client, _ = fake_client(data=[])

    assert SupabaseCatalogStore(client).get_item_by_id("missing") is None


def test_available_items_filtered_and_ordered() -> None:
    client, builder = fake_client(data=[PRODUCT_ROW])

    items = SupabaseCatalogStore(client).get_available_items()

    assert [item.item_id for item in items] == ["X"]
    builder.eq.assert_called_once_with("status", "available")
    builder.order.assert_called_once_with("created_at_utc", desc=True)


def test_sold_items_parse_sold_at() -> None:
    row = {**PRODUCT_ROW, "status": "sold", "sold_at_utc": "2025-01-02T12:00:00Z"}
    client, builder = fake_client(data=[row])

    items = SupabaseCatalogStore(client).list_sold_items()

    assert items[0].sold_at == NOW
    builder.eq.assert_called_once_with("status", "sold")


# ============================================================================
# Orders
# ============================================================================

def _order() -> Order:
    return Order(
        order_id=UUID("00000000-0000-0000-0000-000000000001"),
        session_id="cs_test_1",
        item_id="X",
        customer_email="ada@example.com",
        shipping=make_shipping(),
        selected_size="M",
        status=OrderStatus.FULFILLED,
        payment_reference="pi_123",
        provider_order_id="pf_order_1",
        created_at=NOW,
    )


def test_create_order_writes_row() -> None:
    client, builder = fake_client(data=[ORDER_ROW])

    created = SupabaseOrderStore(client).create_order(_order())

    client.table.assert_called_with("orders")
    row = builder.insert.call_args.args[0]
    assert row["stripe_session_id"] == "cs_test_1"
    assert row["product_id"] == "X"
    assert row["shipping_line2"] == "Apt 2"
    assert row["shipping_state"] == "IL"
    assert row["status"] == "fulfilled"
    assert row["printful_order_id"] == "pf_order_1"
    assert row["created_at_utc"] == NOW.isoformat()
    assert created.created_at == NOW
    assert created.updated_at == NOW


def test_create_order_unique_violation_is_duplicate() -> None:
    error = APIError({"code": "23505", "message": "duplicate key value", "details": None, "hint": None})
    client, _ = fake_client(raises=error)

    with pytest.raises(DuplicateOrderError):
        SupabaseOrderStore(client).create_order(_order())


def test_create_order_other_api_error_is_runtime_error() -> None:
    error = APIError({"code": "57014", "message": "statement timeout", "details": None, "hint": None})
    client, _ = fake_client(raises=error)

    with pytest.raises(RuntimeError) as excinfo:
        SupabaseOrderStore(client).create_order(_order())
    assert not isinstance(excinfo.value, DuplicateOrderError)


def test_get_order_by_session_id_parses_row() -> None:
    client, builder = fake_client(data=[ORDER_ROW])

    order = SupabaseOrderStore(client).get_order_by_session_id("cs_test_1")

    builder.eq.assert_called_once_with("stripe_session_id", "cs_test_1")
    assert order is not None
    assert order.order_id == UUID(ORDER_ROW["id"])
    assert order.status is OrderStatus.FULFILLED
    assert order.shipping.line2 is None
    assert order.shipping.region == "IL"
    assert order.payment_reference == "pi_123"


def test_get_order_by_item_id_returns_none_when_missing() -> None:
    client, builder = fake_client(data=[])

    assert SupabaseOrderStore(client).get_order_by_item_id("X") is None
    builder.eq.assert_called_once_with("product_id", "X")


def test_list_orders_surfaces_store_errors() -> None:
    client, _ = fake_client(error="permission denied")

    with pytest.raises(RuntimeError, match="Failed to list orders"):
        SupabaseOrderStore(client).list_orders()


# ============================================================================
# Timestamps
# ============================================================================

@pytest.mark.parametrize(
    "value",
    ["2025-01-02T12:00:00Z", "2025-01-02T12:00:00+00:00", "2025-01-02T14:00:00+02:00", NOW, 1735819200],
)
def test_parse_utc_datetime_normalizes(value: Any) -> None:
    assert parse_utc_datetime(value) == NOW
