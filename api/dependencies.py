"""
FastAPI dependency providers.

Every collaborator of the purchase pipeline is built here and injected into the
routers, so tests can swap any of them through app.dependency_overrides.
"""

from __future__ import annotations

import hmac
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query
from supabase import Client  # type: ignore[import-not-found]

from api.settings import Settings, get_settings
from repositories.base import CatalogStore, OrderStore
from repositories.catalog_repository import SupabaseCatalogStore
from repositories.client import create_supabase_client
from repositories.order_repository import SupabaseOrderStore
from services.checkout_service import CheckoutService
from services.notification_gateway import FinalizerProvider, NotificationGateway
from services.printful_client import FulfillmentClient, PrintfulClient
from services.purchase_finalizer import PurchaseFinalizer


@lru_cache(maxsize=1)
def _supabase_client(url: Optional[str], key: Optional[str]) -> Client:
    return create_supabase_client(url, key)


@lru_cache(maxsize=1)
def _printful_client(api_key: Optional[str], base_url: str, timeout: float) -> PrintfulClient:
    return PrintfulClient(api_key or "", base_url=base_url, timeout=timeout)


def get_catalog_store(settings: Settings = Depends(get_settings)) -> CatalogStore:
    return SupabaseCatalogStore(_supabase_client(settings.supabase_url, settings.supabase_key))


def get_order_store(settings: Settings = Depends(get_settings)) -> OrderStore:
    return SupabaseOrderStore(_supabase_client(settings.supabase_url, settings.supabase_key))


def get_fulfillment_client(settings: Settings = Depends(get_settings)) -> FulfillmentClient:
    return _printful_client(
        settings.printful_api_key,
        settings.printful_api_base,
        settings.printful_timeout_seconds,
    )


def get_finalizer_provider(settings: Settings = Depends(get_settings)) -> FinalizerProvider:
    """
    Provider for the purchase finalizer.

    The stores and the Printful client are built when the gateway first calls
    it, after the delivery's signature has been verified.
    """

    def build() -> PurchaseFinalizer:
        return PurchaseFinalizer(
            catalog=get_catalog_store(settings),
            orders=get_order_store(settings),
            fulfillment=get_fulfillment_client(settings),
        )

    return build


def get_notification_gateway(
    settings: Settings = Depends(get_settings),
    finalizer: FinalizerProvider = Depends(get_finalizer_provider),
) -> NotificationGateway:
    return NotificationGateway(settings.stripe_webhook_secret or "", finalizer)


def get_checkout_service(
    settings: Settings = Depends(get_settings),
    catalog: CatalogStore = Depends(get_catalog_store),
) -> CheckoutService:
    return CheckoutService(catalog, settings.stripe_secret_key or "", settings.public_base_url)


def require_admin_key(
    x_admin_key: Optional[str] = Header(None, alias="x-admin-key"),
    key: Optional[str] = Query(None, description="Admin API key (alternative to the x-admin-key header)"),
    settings: Settings = Depends(get_settings),
) -> None:
    """Static credential check for the admin endpoints."""
    provided = x_admin_key or key
    expected = settings.admin_api_key
    if not expected or not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")
