"""
Products API Endpoints.

Read-only catalog endpoints for the storefront.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_catalog_store
from api.models import ProductDetailResponse, ProductListResponse, ProductResponse
from repositories.base import CatalogStore

router = APIRouter()


@router.get(
    "/products",
    response_model=ProductListResponse,
    summary="List Available Products",
    description="List every one-of-a-kind item that is still for sale, newest first."
)
def list_available_products(catalog: CatalogStore = Depends(get_catalog_store)):
    """
    List available products.

    Sold items never appear here; once the webhook marks an item sold it drops
    out of this list for every storefront instance.
    """
    try:
        items = catalog.get_available_items()
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch products: {str(e)}"
        )

    return ProductListResponse(products=[ProductResponse.from_item(item) for item in items])


@router.get(
    "/products/{item_id}",
    response_model=ProductDetailResponse,
    summary="Get Product",
    description="Fetch a single item, available or sold."
)
def get_product(item_id: str, catalog: CatalogStore = Depends(get_catalog_store)):
    try:
        item = catalog.get_item_by_id(item_id)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch product: {str(e)}"
        )

    if item is None:
        raise HTTPException(status_code=404, detail="Product not found")

    return ProductDetailResponse(product=ProductResponse.from_item(item))
