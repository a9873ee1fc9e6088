"""
Payment gateway boundary (Razorpay-style REST API) over httpx.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, cast

import httpx

from storefront._errors import Errors, Reason, ShopError

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def retriable(self) -> bool:
        return self.status_code is None or self.status_code >= 500


@dataclass(frozen=True, slots=True)
class PaymentIntent:
    intent_id: str
    amount_minor: int
    currency: str
    receipt: str


@dataclass(frozen=True, slots=True)
class PaymentInfo:
    payment_id: str
    status: str

    @property
    def captured(self) -> bool:
        return self.status == "captured"


class PaymentGateway(Protocol):
    async def create_intent(
        self, amount_minor: int, currency: str, receipt: str, metadata: dict[str, str]
    ) -> PaymentIntent: ...

    async def fetch_payment(self, payment_id: str) -> PaymentInfo: ...


def gateway_error(e: Exception) -> ShopError:
    """Map anything raised by a gateway call to an EXTERNAL_SERVICE error."""
    if isinstance(e, GatewayError):
        return Errors.external(Reason.GATEWAY_ERROR, e.message, retriable=e.retriable)
    return Errors.external(Reason.GATEWAY_ERROR, f"Payment gateway call failed: {e}")


class HttpPaymentGateway:
    """
    Gateway client; authenticates with the key id/secret pair.

        async with httpx.AsyncClient(
            base_url=settings.gateway_base_url,
            auth=(settings.gateway_key_id, settings.gateway_key_secret),
            timeout=settings.gateway_timeout,
        ) as client:
            gateway = HttpPaymentGateway(client)
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def create_intent(
        self, amount_minor: int, currency: str, receipt: str, metadata: dict[str, str]
    ) -> PaymentIntent:
        data = await self._call(
            "POST",
            "/orders",
            json={"amount": amount_minor, "currency": currency, "receipt": receipt, "notes": metadata},
        )
        intent_id = data.get("id")
        if not intent_id:
            raise GatewayError(f"Gateway returned no order id for receipt {receipt}")
        logger.info("Created payment intent %s for %s %s", intent_id, amount_minor, currency)
        return PaymentIntent(
            intent_id=str(intent_id), amount_minor=amount_minor, currency=currency, receipt=receipt
        )

    async def fetch_payment(self, payment_id: str) -> PaymentInfo:
        data = await self._call("GET", f"/payments/{payment_id}")
        return PaymentInfo(payment_id=payment_id, status=str(data.get("status", "unknown")))

    async def _call(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise GatewayError(f"{method} {path} failed: {e}") from e
        if response.is_error:
            raise GatewayError(
                f"{method} {path} failed with {response.status_code}", response.status_code
            )
        try:
            body = response.json()
        except ValueError as e:
            raise GatewayError(f"{method} {path} returned a non-JSON body") from e
        if not isinstance(body, dict):
            raise GatewayError(f"{method} {path} returned {type(body).__name__}, expected an object")
        return cast(dict[str, Any], body)


__all__ = (
    "GatewayError",
    "PaymentIntent",
    "PaymentInfo",
    "PaymentGateway",
    "gateway_error",
    "HttpPaymentGateway",
)
