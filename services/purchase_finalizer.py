"""
Purchase finalizer for one-of-a-kind items.

Handles:
- Idempotent processing of payment-confirmation events (keyed by session id)
- Exactly-once sale of an item via the catalog store's conditional update
- Single, non-retried submission of the production order to the fulfillment provider
- Recording the resulting order, and flagging the cases that need manual reconciliation

The only mutual exclusion is CatalogStore.conditional_mark_sold. No in-process
lock is taken, so any number of workers or processes may call finalize() at once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional
from uuid import uuid4

from domain.events import PaymentConfirmedEvent
from domain.order import Order, OrderStatus
from domain.time import utc_now
from repositories.base import CatalogStore, DuplicateOrderError, OrderStore
from services.printful_client import (
    FulfillmentClient,
    FulfillmentError,
    FulfillmentItem,
    FulfillmentRecipient,
)

logger = logging.getLogger(__name__)


class FinalizeError(str, Enum):
    ITEM_UNAVAILABLE = "ItemUnavailable"
    INVALID_VARIANT = "InvalidVariant"
    FULFILLMENT_SUBMISSION_FAILED = "FulfillmentSubmissionFailed"
    PERSISTENCE_FAILED = "PersistenceFailed"

    @property
    def retryable(self) -> bool:
        """Whether the provider should redeliver the event (5xx-class outcome)."""
        return self in (FinalizeError.FULFILLMENT_SUBMISSION_FAILED, FinalizeError.PERSISTENCE_FAILED)


@dataclass(frozen=True, slots=True)
class FinalizeResult:
    """
    Result of a finalize() call.

    success: True if the item is sold to this session and an order exists
    order: The order for this session (None on failure, or when a duplicate
           was detected through a uniqueness conflict without re-reading it)
    duplicate: True if the event had already been processed (no side effects ran)
    error: Failure kind (None if success=True)
    message: Human-readable detail for logs and responses
    """
    success: bool
    order: Optional[Order] = None
    duplicate: bool = False
    error: Optional[FinalizeError] = None
    message: Optional[str] = None

    @property
    def retryable(self) -> bool:
        return self.error is not None and self.error.retryable


@dataclass(frozen=True, slots=True)
class ReconciliationCase:
    """An item that is SOLD without a matching, persisted fulfillment order."""
    item_id: str
    session_id: str
    reason: FinalizeError
    provider_order_id: Optional[str] = None
    detail: Optional[str] = None


ReconciliationHook = Callable[[ReconciliationCase], None]


def _log_reconciliation_case(case: ReconciliationCase) -> None:
    logger.critical(
        f"Reconciliation required for item {case.item_id} (session {case.session_id}): "
        f"{case.reason.value}; provider_order_id={case.provider_order_id}; {case.detail}",
        extra={
            "reconciliation_required": True,
            "item_id": case.item_id,
            "session_id": case.session_id,
            "reason": case.reason.value,
            "provider_order_id": case.provider_order_id,
        },
    )


def _failure(error: FinalizeError, message: str) -> FinalizeResult:
    return FinalizeResult(success=False, error=error, message=message)


class PurchaseFinalizer:
    """
    Turns a verified payment confirmation into exactly one fulfilled order.

    Collaborators are injected so every one of them can be replaced with a fake.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        orders: OrderStore,
        fulfillment: FulfillmentClient,
        clock: Callable[[], datetime] = utc_now,
        on_reconciliation_required: Optional[ReconciliationHook] = None,
    ):
        self.catalog = catalog
        self.orders = orders
        self.fulfillment = fulfillment
        self.clock = clock
        self.on_reconciliation_required = on_reconciliation_required or _log_reconciliation_case

    def _flag_reconciliation(self, case: ReconciliationCase) -> None:
        try:
            self.on_reconciliation_required(case)
        except Exception:
            # The hook must not change the outcome already decided for the event.
            logger.exception(f"Reconciliation hook failed for item {case.item_id}")

    def finalize(self, event: PaymentConfirmedEvent) -> FinalizeResult:
        """
        Finalize a purchase.

        Process:
        1. Return early if an order already exists for the session (duplicate delivery)
        2. Read the item snapshot, then atomically flip it AVAILABLE -> SOLD.
           Losing that race means another session bought it: ItemUnavailable
        3. Resolve the selected size against the snapshot's variants. The lock is
           already held here, so an unknown size leaves the item SOLD: InvalidVariant
        4. Submit the production order once; never retried on this path
        5. Record the order as FULFILLED. A uniqueness conflict on the session id
           means a concurrent delivery already recorded it and counts as success

        Failures after step 2 leave a SOLD item without an order; they are
        reported through the reconciliation hook and returned to the caller.
        """
        session_id = event.session_id
        item_id = event.item_id

        # 1. Idempotency fast path
        existing = self.orders.get_order_by_session_id(session_id)
        if existing is not None:
            logger.info(f"Order already exists for session {session_id}; skipping")
            return FinalizeResult(success=True, order=existing, duplicate=True)

        # 2. Snapshot + exclusive lock
        item = self.catalog.get_item_by_id(item_id)
        if item is None:
            logger.warning(f"Payment for unknown item {item_id} (session {session_id})")
            return _failure(FinalizeError.ITEM_UNAVAILABLE, f"Item {item_id} not found")

        locked = self.catalog.conditional_mark_sold(item_id, self.clock())
        if not locked:
            # A concurrent delivery of this same session may have won the lock.
            existing = self.orders.get_order_by_session_id(session_id)
            if existing is not None:
                logger.info(f"Order for session {session_id} recorded concurrently; skipping")
                return FinalizeResult(success=True, order=existing, duplicate=True)

            logger.info(f"Item {item_id} is no longer available (session {session_id})")
            return _failure(FinalizeError.ITEM_UNAVAILABLE, f"Item {item_id} is no longer available")

        # 3. Variant resolution on the pre-lock snapshot (variants are write-once)
        variant = item.find_variant(event.selected_size)
        if variant is None:
            message = (
                f"Variant for size {event.selected_size!r} not found on item {item_id} "
                f"(offered: {', '.join(item.sizes) or 'none'})"
            )
            logger.error(message)
            self._flag_reconciliation(
                ReconciliationCase(
                    item_id=item_id,
                    session_id=session_id,
                    reason=FinalizeError.INVALID_VARIANT,
                    detail=message,
                )
            )
            return _failure(FinalizeError.INVALID_VARIANT, message)

        # 4. Fulfillment submission (exactly one attempt)
        try:
            provider_order_id = self.fulfillment.submit_order(
                FulfillmentRecipient.from_shipping(event.shipping),
                [FulfillmentItem(variant_id=variant.provider_variant_id, quantity=1)],
            )
        except FulfillmentError as e:
            message = f"Fulfillment submission failed for item {item_id}: {e}"
            logger.error(message)
            self._flag_reconciliation(
                ReconciliationCase(
                    item_id=item_id,
                    session_id=session_id,
                    reason=FinalizeError.FULFILLMENT_SUBMISSION_FAILED,
                    detail=str(e),
                )
            )
            return _failure(FinalizeError.FULFILLMENT_SUBMISSION_FAILED, message)
        except Exception as e:
            message = f"Fulfillment submission raised unexpectedly for item {item_id}: {e!r}"
            logger.exception(message)
            self._flag_reconciliation(
                ReconciliationCase(
                    item_id=item_id,
                    session_id=session_id,
                    reason=FinalizeError.FULFILLMENT_SUBMISSION_FAILED,
                    detail=repr(e),
                )
            )
            return _failure(FinalizeError.FULFILLMENT_SUBMISSION_FAILED, message)

        # 5. Persistence
        now = self.clock()
        order = Order(
            order_id=uuid4(),
            session_id=session_id,
            payment_reference=event.payment_reference,
            item_id=item_id,
            customer_email=event.customer_email,
            shipping=event.shipping,
            selected_size=variant.size,
            status=OrderStatus.FULFILLED,
            provider_order_id=provider_order_id,
            created_at=now,
            updated_at=now,
        )

        try:
            recorded = self.orders.create_order(order)
        except DuplicateOrderError:
            logger.info(f"Order for session {session_id} already recorded; treating as processed")
            return FinalizeResult(
                success=True,
                order=self.orders.get_order_by_session_id(session_id),
                duplicate=True,
            )
        except Exception as e:
            message = (
                f"Order write failed after fulfillment {provider_order_id} was placed "
                f"for item {item_id}: {e}"
            )
            logger.error(message)
            self._flag_reconciliation(
                ReconciliationCase(
                    item_id=item_id,
                    session_id=session_id,
                    reason=FinalizeError.PERSISTENCE_FAILED,
                    provider_order_id=provider_order_id,
                    detail=str(e),
                )
            )
            return _failure(FinalizeError.PERSISTENCE_FAILED, message)

        logger.info(
            f"Order {recorded.order_id} created for item {item_id} "
            f"(session {session_id}, fulfillment {provider_order_id})"
        )
        return FinalizeResult(success=True, order=recorded)


__all__ = [
    "FinalizeError",
    "FinalizeResult",
    "PurchaseFinalizer",
    "ReconciliationCase",
    "ReconciliationHook",
]
