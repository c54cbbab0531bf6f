"""
Webhook API Endpoints.

Entry point for Stripe event deliveries. All authentication, validation and
outcome mapping lives in NotificationGateway; this router only moves bytes.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from api.dependencies import get_notification_gateway
from services.notification_gateway import NotificationGateway

router = APIRouter()


@router.post(
    "/webhooks/stripe",
    summary="Stripe Webhook",
    description="Receive signed Stripe events. checkout.session.completed finalizes the purchase."
)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
    gateway: NotificationGateway = Depends(get_notification_gateway),
):
    """
    Process a Stripe event delivery.

    **Responses:**
    - `200`: processed, already processed, or event type ignored
    - `400`: missing or invalid signature, malformed payload
    - `409`: item already sold to another buyer (terminal)
    - `422`: size not offered for the item (terminal, needs investigation)
    - `500` / `502`: order write or fulfillment failure; Stripe will redeliver
    """
    # The signature covers the exact bytes, so read the raw body.
    payload = await request.body()
    # finalize() is blocking I/O; keep it off the event loop.
    response = await run_in_threadpool(gateway.handle, payload, stripe_signature)
    return JSONResponse(status_code=response.status_code, content=response.body)
