"""
Admin API Endpoints.

Operator views protected by the static ADMIN_API_KEY credential
(`x-admin-key` header or `key` query parameter).
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_catalog_store, get_order_store, require_admin_key
from api.models import (
    OrderListResponse,
    OrderResponse,
    ProductListResponse,
    ProductResponse,
    ReconciliationResponse,
    UnreconciledItemResponse,
)
from repositories.base import CatalogStore, OrderStore
from services.reconciliation_service import find_unreconciled_items

router = APIRouter(dependencies=[Depends(require_admin_key)])


@router.get(
    "/admin/orders",
    response_model=OrderListResponse,
    summary="List Orders",
)
def list_orders(orders: OrderStore = Depends(get_order_store)):
    try:
        records = orders.list_orders()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch orders: {str(e)}")

    return OrderListResponse(orders=[OrderResponse.from_order(order) for order in records])


@router.get(
    "/admin/products",
    response_model=ProductListResponse,
    summary="List Available Products (Admin)",
)
def list_products(catalog: CatalogStore = Depends(get_catalog_store)):
    try:
        items = catalog.get_available_items()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch products: {str(e)}")

    return ProductListResponse(products=[ProductResponse.from_item(item) for item in items])


@router.get(
    "/admin/reconciliation",
    response_model=ReconciliationResponse,
    summary="Sold Items Without Orders",
    description="List items that were sold but have no order on record."
)
def list_unreconciled(
    catalog: CatalogStore = Depends(get_catalog_store),
    orders: OrderStore = Depends(get_order_store),
):
    """
    Items in this list were locked by a purchase whose fulfillment submission or
    order write failed. Check each against the Printful order list before doing
    anything: the print may already be in production.
    """
    try:
        unreconciled = find_unreconciled_items(catalog, orders)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to build reconciliation report: {str(e)}")

    return ReconciliationResponse(
        items=[UnreconciledItemResponse.from_unreconciled(item) for item in unreconciled],
        total_count=len(unreconciled),
    )
