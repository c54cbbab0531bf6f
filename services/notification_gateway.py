"""
Notification gateway for Stripe webhooks.

Security:
- Signature: every delivery is verified against STRIPE_WEBHOOK_SECRET using
  Stripe's signing scheme before the body is even parsed as an event
- Shape: checkout sessions are validated with pydantic before any business logic runs
- Only checkout.session.completed reaches the purchase finalizer; other event
  types are acknowledged and ignored

Response mapping (Stripe redelivers anything that is not 2xx):
- 200: processed, duplicate delivery, or ignored event type
- 400: missing/invalid signature, malformed payload
- 409 / 422: terminal business failures (item unavailable / unknown variant)
- 5xx: fulfillment or persistence failure, so Stripe redelivers the event
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union

import stripe
from pydantic import BaseModel, Field, ValidationError

from domain.events import PaymentConfirmedEvent
from domain.order import ShippingAddress
from services.purchase_finalizer import FinalizeError, FinalizeResult, PurchaseFinalizer

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"

FinalizerProvider = Callable[[], PurchaseFinalizer]

_ERROR_STATUS: Dict[FinalizeError, int] = {
    FinalizeError.ITEM_UNAVAILABLE: 409,
    FinalizeError.INVALID_VARIANT: 422,
    FinalizeError.FULFILLMENT_SUBMISSION_FAILED: 502,
    FinalizeError.PERSISTENCE_FAILED: 500,
}


class InvalidSignature(Exception):
    """Raised when a webhook delivery cannot be proven to come from Stripe."""
    pass


class InvalidPayload(Exception):
    """Raised when a signed delivery does not have the expected shape."""
    pass


# ============================================================================
# Payload shapes
# ============================================================================

class StripeAddress(BaseModel):
    line1: str = Field(..., min_length=1)
    line2: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: Optional[str] = None
    postal_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=2)


class StripeShippingDetails(BaseModel):
    name: str = Field(..., min_length=1)
    address: StripeAddress


class StripeCustomerDetails(BaseModel):
    email: str = Field(..., min_length=3)


class StripeCollectedInformation(BaseModel):
    shipping_details: Optional[StripeShippingDetails] = None


class CheckoutMetadata(BaseModel):
    """Metadata written by the checkout service when the session was created."""
    productId: str = Field(..., min_length=1)
    selectedSize: str = Field(..., min_length=1)


class CheckoutSessionPayload(BaseModel):
    id: str = Field(..., min_length=1)
    metadata: CheckoutMetadata
    customer_details: StripeCustomerDetails
    # Older API versions put shipping here; newer ones under collected_information.
    shipping_details: Optional[StripeShippingDetails] = None
    collected_information: Optional[StripeCollectedInformation] = None
    payment_intent: Optional[Union[str, Dict[str, Any]]] = None

    def resolved_shipping(self) -> Optional[StripeShippingDetails]:
        if self.shipping_details is not None:
            return self.shipping_details
        if self.collected_information is not None:
            return self.collected_information.shipping_details
        return None

    def payment_intent_id(self) -> Optional[str]:
        if isinstance(self.payment_intent, dict):
            intent_id = self.payment_intent.get("id")
            return str(intent_id) if intent_id else None
        return self.payment_intent


class StripeEventData(BaseModel):
    object: Dict[str, Any]


class StripeEventEnvelope(BaseModel):
    id: Optional[str] = None
    type: str = Field(..., min_length=1)
    data: StripeEventData


# ============================================================================
# Gateway
# ============================================================================

@dataclass(frozen=True)
class GatewayResponse:
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)


def to_payment_confirmed_event(session_object: Dict[str, Any]) -> PaymentConfirmedEvent:
    """
    Build a PaymentConfirmedEvent from a checkout session object.

    Raises:
        InvalidPayload: required fields are missing or malformed
    """
    try:
        session = CheckoutSessionPayload.model_validate(session_object)
    except ValidationError as e:
        raise InvalidPayload(f"Malformed checkout session: {e.error_count()} validation error(s)") from e

    shipping = session.resolved_shipping()
    if shipping is None:
        raise InvalidPayload(f"Checkout session {session.id} has no shipping details")

    try:
        return PaymentConfirmedEvent(
            session_id=session.id,
            item_id=session.metadata.productId,
            selected_size=session.metadata.selectedSize,
            customer_email=session.customer_details.email,
            shipping=ShippingAddress(
                name=shipping.name,
                line1=shipping.address.line1,
                line2=shipping.address.line2 or None,
                city=shipping.address.city,
                region=shipping.address.state or None,
                postal_code=shipping.address.postal_code,
                country=shipping.address.country,
            ),
            payment_reference=session.payment_intent_id(),
        )
    except ValueError as e:
        raise InvalidPayload(str(e)) from e


class NotificationGateway:
    """
    Authenticates Stripe deliveries and hands payment confirmations to the finalizer.

    finalizer may be a zero-argument provider. It is only called for a verified
    checkout.session.completed event, so store and fulfillment credentials are
    not needed to reject forged deliveries or acknowledge other event types.
    """

    def __init__(
        self,
        webhook_secret: str,
        finalizer: Union[PurchaseFinalizer, FinalizerProvider],
        tolerance: int = stripe.Webhook.DEFAULT_TOLERANCE,
    ):
        if not webhook_secret:
            raise RuntimeError(
                "Missing environment variable: STRIPE_WEBHOOK_SECRET. "
                "Set STRIPE_WEBHOOK_SECRET to the signing secret of your Stripe webhook endpoint."
            )
        self.webhook_secret = webhook_secret
        self._finalizer = finalizer
        self.tolerance = tolerance

    @property
    def finalizer(self) -> PurchaseFinalizer:
        """The finalizer, built on first use when a provider was given."""
        if not isinstance(self._finalizer, PurchaseFinalizer):
            self._finalizer = self._finalizer()
        return self._finalizer

    def verify(self, payload: bytes, signature: Optional[str]) -> StripeEventEnvelope:
        """
        Verify the Stripe-Signature header and parse the event envelope.

        Raises:
            InvalidSignature: header missing, malformed, stale or not matching
            InvalidPayload: body is not a JSON event envelope
        """
        if not signature:
            raise InvalidSignature("Missing signature")

        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidPayload("Event payload is not valid UTF-8") from e

        try:
            stripe.WebhookSignature.verify_header(
                text, signature, self.webhook_secret, tolerance=self.tolerance
            )
        except stripe.SignatureVerificationError as e:
            raise InvalidSignature(str(e)) from e

        try:
            return StripeEventEnvelope.model_validate(json.loads(text))
        except (ValueError, ValidationError) as e:
            raise InvalidPayload(f"Invalid event payload: {e}") from e

    def handle(self, payload: bytes, signature: Optional[str]) -> GatewayResponse:
        try:
            event = self.verify(payload, signature)
        except InvalidSignature as e:
            logger.warning(f"Stripe webhook signature verification failed: {e}")
            return GatewayResponse(400, {"error": "Invalid signature"})
        except InvalidPayload as e:
            logger.warning(f"Stripe webhook invalid payload: {e}")
            return GatewayResponse(400, {"error": "Invalid payload"})

        logger.info(f"Stripe webhook received: {event.type} (event_id={event.id})")

        if event.type == CHECKOUT_COMPLETED:
            return self._handle_checkout_completed(event)
        if event.type == PAYMENT_SUCCEEDED:
            logger.info(f"Payment succeeded: {event.data.object.get('id')}")
        elif event.type == PAYMENT_FAILED:
            logger.warning(f"Payment failed: {event.data.object.get('id')}")
        else:
            logger.info(f"Unhandled webhook event type: {event.type}")

        return GatewayResponse(200, {"received": True, "status": "ignored"})

    def _handle_checkout_completed(self, event: StripeEventEnvelope) -> GatewayResponse:
        try:
            confirmed = to_payment_confirmed_event(event.data.object)
        except InvalidPayload as e:
            logger.error(f"Stripe event {event.id} rejected: {e}")
            return GatewayResponse(400, {"error": "Invalid payload", "detail": str(e)})

        try:
            result = self.finalizer.finalize(confirmed)
        except Exception:
            logger.exception(f"Unexpected error finalizing session {confirmed.session_id}")
            return GatewayResponse(500, {"error": "Webhook processing failed"})

        return self._to_response(result)

    @staticmethod
    def _to_response(result: FinalizeResult) -> GatewayResponse:
        if result.success:
            body: Dict[str, Any] = {
                "received": True,
                "status": "duplicate" if result.duplicate else "fulfilled",
            }
            if result.order is not None:
                body["order_id"] = str(result.order.order_id)
            return GatewayResponse(200, body)

        if result.error is None:
            logger.error(f"Finalizer returned a failure without an error kind: {result.message}")
            return GatewayResponse(500, {"error": "Webhook processing failed"})

        return GatewayResponse(
            _ERROR_STATUS[result.error],
            {"error": result.error.value, "detail": result.message},
        )


__all__ = [
    "FinalizerProvider",
    "GatewayResponse",
    "InvalidPayload",
    "InvalidSignature",
    "NotificationGateway",
    "to_payment_confirmed_event",
]
