"""
Checkout API Endpoints.

Starts a Stripe Checkout Session for one item in one size.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_checkout_service
from api.models import CheckoutRequest, CheckoutResponse
from services.checkout_service import (
    CheckoutService,
    InvalidSizeError,
    ItemNotFoundError,
    ItemSoldError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    summary="Create Checkout Session",
    description="Create a Stripe Checkout Session for an available item."
)
def create_checkout(
    request: CheckoutRequest,
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Create a checkout session.

    **Errors:**
    - `404`: product not found
    - `410`: product already sold
    - `400`: size not offered for this product
    """
    try:
        session = service.create_session(request.productId, request.selectedSize)
    except ItemNotFoundError:
        raise HTTPException(status_code=404, detail="Product not found")
    except ItemSoldError:
        raise HTTPException(status_code=410, detail="Product is no longer available")
    except InvalidSizeError:
        raise HTTPException(status_code=400, detail="Invalid size")
    except Exception:
        logger.exception(f"Checkout failed for product {request.productId}")
        raise HTTPException(status_code=500, detail="Failed to create checkout session")

    return CheckoutResponse(sessionId=session.session_id, url=session.url)
