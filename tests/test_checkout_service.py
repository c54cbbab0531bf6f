"""
Tests for `services/checkout_service.py`.

stripe.checkout.Session.create is monkeypatched; no call reaches Stripe.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List

import pytest
import stripe

from domain.item import ItemStatus
from services.checkout_service import (
    CheckoutService,
    InvalidSizeError,
    ItemNotFoundError,
    ItemSoldError,
    SHIPPING_COUNTRIES,
    UNIT_AMOUNT_CENTS,
)

from fakes import InMemoryCatalogStore, make_item


@pytest.fixture
def stripe_calls(monkeypatch) -> List[Dict[str, Any]]:
    calls: List[Dict[str, Any]] = []

    def fake_create(**kwargs: Any) -> SimpleNamespace:
        calls.append(kwargs)
        return SimpleNamespace(id="cs_test_1", url="https://checkout.stripe.com/c/pay/cs_test_1")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    return calls


def _service(catalog: InMemoryCatalogStore) -> CheckoutService:
    return CheckoutService(catalog, "sk_test_123", "https://shop.example.com/")


def test_create_session_for_available_item(catalog, stripe_calls) -> None:
    session = _service(catalog).create_session("X", "M")

    assert session.session_id == "cs_test_1"
    assert session.url == "https://checkout.stripe.com/c/pay/cs_test_1"

    (kwargs,) = stripe_calls
    assert kwargs["api_key"] == "sk_test_123"
    assert kwargs["mode"] == "payment"
    assert kwargs["metadata"] == {"productId": "X", "selectedSize": "M"}
    assert kwargs["line_items"][0]["price_data"]["unit_amount"] == UNIT_AMOUNT_CENTS
    assert kwargs["line_items"][0]["quantity"] == 1
    assert kwargs["shipping_address_collection"] == {"allowed_countries": SHIPPING_COUNTRIES}
    assert kwargs["success_url"] == "https://shop.example.com/success?session_id={CHECKOUT_SESSION_ID}"
    assert kwargs["cancel_url"] == "https://shop.example.com/product/X"


def test_unknown_item_is_rejected(catalog, stripe_calls) -> None:
    with pytest.raises(ItemNotFoundError):
        _service(catalog).create_session("missing", "M")
    assert stripe_calls == []


def test_sold_item_is_rejected(stripe_calls) -> None:
    catalog = InMemoryCatalogStore([make_item("X", status=ItemStatus.SOLD)])

    with pytest.raises(ItemSoldError):
        _service(catalog).create_session("X", "M")
    assert stripe_calls == []


def test_unknown_size_is_rejected(catalog, stripe_calls) -> None:
    with pytest.raises(InvalidSizeError):
        _service(catalog).create_session("X", "XXL")
    assert stripe_calls == []


def test_missing_stripe_key_is_rejected(catalog) -> None:
    with pytest.raises(RuntimeError, match="STRIPE_SECRET_KEY"):
        CheckoutService(catalog, "", "https://shop.example.com")
