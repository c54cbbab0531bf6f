"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.item import Item
from domain.order import Order
from services.reconciliation_service import UnreconciledItem


# ============================================================================
# Catalog Models
# ============================================================================

class VariantResponse(BaseModel):
    """Purchasable size of an item."""
    size: str
    variant_id: str


class ProductResponse(BaseModel):
    """Single catalog item in API response."""
    id: str
    title: str
    description: str
    mockup_image_url: str
    printful_product_id: str
    variants: List[VariantResponse]
    status: str  # "available" or "sold"
    created_at: datetime
    sold_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": "prod_1735689600000_k3j9x2a1b",
                "title": "Midnight Koi",
                "description": "Hand-drawn koi, printed once.",
                "mockup_image_url": "https://pub-example.r2.dev/products/prod_1/1735689600000.png",
                "printful_product_id": "348812345",
                "variants": [
                    {"size": "S", "variant_id": "4512001"},
                    {"size": "M", "variant_id": "4512002"},
                ],
                "status": "available",
                "created_at": "2025-01-01T12:00:00Z",
                "sold_at": None,
            }
        }

    @classmethod
    def from_item(cls, item: Item) -> "ProductResponse":
        return cls(
            id=item.item_id,
            title=item.title,
            description=item.description,
            mockup_image_url=item.image_url,
            printful_product_id=item.provider_product_id,
            variants=[
                VariantResponse(size=v.size, variant_id=v.provider_variant_id)
                for v in item.variants
            ],
            status=item.status.value,
            created_at=item.created_at,
            sold_at=item.sold_at,
        )


class ProductListResponse(BaseModel):
    """Response for catalog listing."""
    products: List[ProductResponse]


class ProductDetailResponse(BaseModel):
    product: ProductResponse


# ============================================================================
# Checkout Models
# ============================================================================

class CheckoutRequest(BaseModel):
    """Request to start a checkout for one item in one size."""
    productId: str = Field(..., min_length=1, description="Catalog item ID")
    selectedSize: str = Field(..., min_length=1, description="Size label, e.g. 'M'")

    class Config:
        json_schema_extra = {
            "example": {
                "productId": "prod_1735689600000_k3j9x2a1b",
                "selectedSize": "M",
            }
        }


class CheckoutResponse(BaseModel):
    sessionId: str
    url: Optional[str] = None


# ============================================================================
# Admin Models
# ============================================================================

class ShippingResponse(BaseModel):
    name: str
    line1: str
    line2: Optional[str] = None
    city: str
    state: Optional[str] = None
    postal_code: str
    country: str


class OrderResponse(BaseModel):
    """Single order in API response."""
    id: UUID
    stripe_session_id: str
    stripe_payment_intent_id: Optional[str] = None
    product_id: str
    customer_email: str
    shipping: ShippingResponse
    selected_size: str
    status: str  # "recorded", "fulfilled" or "failed"
    printful_order_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.order_id,
            stripe_session_id=order.session_id,
            stripe_payment_intent_id=order.payment_reference,
            product_id=order.item_id,
            customer_email=order.customer_email,
            shipping=ShippingResponse(
                name=order.shipping.name,
                line1=order.shipping.line1,
                line2=order.shipping.line2,
                city=order.shipping.city,
                state=order.shipping.region,
                postal_code=order.shipping.postal_code,
                country=order.shipping.country,
            ),
            selected_size=order.selected_size,
            status=order.status.value,
            printful_order_id=order.provider_order_id,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderListResponse(BaseModel):
    orders: List[OrderResponse]


class UnreconciledItemResponse(BaseModel):
    """Item that was sold but has no order on record."""
    product_id: str
    title: str
    sold_at: Optional[datetime] = None

    @classmethod
    def from_unreconciled(cls, item: UnreconciledItem) -> "UnreconciledItemResponse":
        return cls(product_id=item.item_id, title=item.title, sold_at=item.sold_at)


class ReconciliationResponse(BaseModel):
    items: List[UnreconciledItemResponse]
    total_count: int

    class Config:
        json_schema_extra = {
            "example": {
                "items": [
                    {
                        "product_id": "prod_1735689600000_k3j9x2a1b",
                        "title": "Midnight Koi",
                        "sold_at": "2025-01-02T09:30:00Z",
                    }
                ],
                "total_count": 1,
            }
        }


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
