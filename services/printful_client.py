"""
Printful API client for print-on-demand fulfillment.

Submits a production order for a sold item. The call is treated as opaque and
possibly slow: it is bounded only by the HTTP timeout and is never retried here,
because a retry after an ambiguous failure could print the same item twice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Sequence

import httpx

from domain.order import ShippingAddress

logger = logging.getLogger(__name__)

PRINTFUL_API_BASE = "https://api.printful.com"
ORDERS_PATH = "/orders"
DEFAULT_TIMEOUT_SECONDS = 30.0


class FulfillmentError(Exception):
    """Fulfillment provider call failed, timed out, or returned an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


@dataclass(frozen=True)
class FulfillmentRecipient:
    """Recipient block of a Printful order."""
    name: str
    address1: str
    city: str
    country_code: str
    zip: str
    address2: Optional[str] = None
    state_code: Optional[str] = None

    @classmethod
    def from_shipping(cls, shipping: ShippingAddress) -> "FulfillmentRecipient":
        return cls(
            name=shipping.name,
            address1=shipping.line1,
            address2=shipping.line2 or None,
            city=shipping.city,
            state_code=shipping.region or None,
            country_code=shipping.country,
            zip=shipping.postal_code,
        )

    def to_printful_format(self) -> Dict[str, Any]:
        recipient: Dict[str, Any] = {
            "name": self.name,
            "address1": self.address1,
            "city": self.city,
            "country_code": self.country_code,
            "zip": self.zip,
        }
        if self.address2:
            recipient["address2"] = self.address2
        if self.state_code:
            recipient["state_code"] = self.state_code
        return recipient


@dataclass(frozen=True)
class FulfillmentItem:
    """Line item of a Printful order."""
    variant_id: str
    quantity: int = 1

    def to_printful_format(self) -> Dict[str, Any]:
        return {"sync_variant_id": self.variant_id, "quantity": self.quantity}


class FulfillmentClient(Protocol):
    def submit_order(self, recipient: FulfillmentRecipient, items: Sequence[FulfillmentItem]) -> str:
        """Submit a production order and return the provider's order id."""
        ...


class PrintfulClient:
    """
    Synchronous Printful client.

    The http_client argument lets callers share a pooled client or inject a
    transport in tests; when omitted the client owns its own httpx.Client.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = PRINTFUL_API_BASE,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None,
    ):
        if not api_key:
            raise RuntimeError(
                "Missing environment variable: PRINTFUL_API_KEY. "
                "Set PRINTFUL_API_KEY to your Printful API token."
            )
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.Client(timeout=timeout)
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def close(self) -> None:
        if self._owns_client:
            self._http_client.close()

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self._http_client.request(method, url, json=payload, headers=self._headers)
        except httpx.TimeoutException as e:
            logger.error(f"Printful {method} {path} timed out: {e}")
            raise FulfillmentError(f"Printful request timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"Printful {method} {path} failed: {e}")
            raise FulfillmentError(f"Printful request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Printful API error: {response.status_code} - {response.text[:500]}")
            raise FulfillmentError(
                f"Printful API error: {response.status_code}",
                status_code=response.status_code,
                details=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise FulfillmentError("Printful returned a non-JSON response", status_code=response.status_code) from e

        if isinstance(data, dict) and "result" in data:
            return data["result"]
        return data

    def submit_order(self, recipient: FulfillmentRecipient, items: Sequence[FulfillmentItem]) -> str:
        """
        Create a Printful order (draft until confirmed in the Printful dashboard).

        Returns:
            The Printful order id, as a string

        Raises:
            FulfillmentError: on transport failure, timeout, non-2xx status or a
            response without an order id
        """
        if not items:
            raise ValueError("A fulfillment order needs at least one item")

        payload = {
            "recipient": recipient.to_printful_format(),
            "items": [item.to_printful_format() for item in items],
        }
        result = self._request("POST", ORDERS_PATH, payload)

        order_id = result.get("id") if isinstance(result, dict) else None
        if order_id is None:
            raise FulfillmentError("Printful response did not include an order id")

        logger.info(f"Printful order {order_id} created for {len(items)} item(s)")
        return str(order_id)


__all__ = [
    "FulfillmentClient",
    "FulfillmentError",
    "FulfillmentItem",
    "FulfillmentRecipient",
    "PrintfulClient",
]
