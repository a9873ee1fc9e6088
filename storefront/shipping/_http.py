"""
HTTP shipment dispatcher (Shiprocket-style REST API) over httpx.

    async with httpx.AsyncClient(base_url=settings.shipper_base_url) as client:
        dispatcher = HttpShipmentDispatcher(
            client,
            email=settings.shipper_email,
            password=settings.shipper_password,
            pickup_location=settings.pickup_location,
        )
        shipment = await dispatcher.create_shipment(order.shipment_request())
"""

from __future__ import annotations

import logging
from typing import Any, cast

import httpx

from storefront.shipping._token import TokenCache
from storefront.shipping._types import (
    PARCEL_BREADTH_CM,
    PARCEL_HEIGHT_CM,
    PARCEL_LENGTH_CM,
    PARCEL_WEIGHT_KG,
    Label,
    Shipment,
    ShipmentError,
    ShipmentRequest,
    Tracking,
)

logger = logging.getLogger(__name__)


def _body(response: httpx.Response, what: str) -> dict[str, Any]:
    """JSON object of a successful response; an empty body reads as ``{}``."""
    if not response.content:
        return {}
    try:
        body = response.json()
    except ValueError as e:
        raise ShipmentError(f"{what} returned a non-JSON body", response.status_code) from e
    if not isinstance(body, dict):
        raise ShipmentError(
            f"{what} returned {type(body).__name__}, expected an object", response.status_code
        )
    return cast(dict[str, Any], body)


def shipment_payload(request: ShipmentRequest, pickup_location: str) -> dict[str, Any]:
    address = request.address
    return {
        "order_id": request.order_id,
        "order_date": request.order_date.strftime("%Y-%m-%d %H:%M"),
        "pickup_location": pickup_location,
        "billing_customer_name": address.name,
        "billing_last_name": "",
        "billing_address": address.line1,
        "billing_address_2": address.line2,
        "billing_city": address.city,
        "billing_pincode": address.postal_code,
        "billing_state": address.state,
        "billing_country": address.country,
        "billing_email": address.email,
        "billing_phone": address.phone,
        "shipping_is_billing": True,
        "order_items": [
            {
                "name": item.name,
                "sku": item.sku,
                "units": item.units,
                "selling_price": str(item.selling_price),
            }
            for item in request.items
        ],
        "payment_method": request.payment_method,
        "sub_total": str(request.sub_total),
        "length": PARCEL_LENGTH_CM,
        "breadth": PARCEL_BREADTH_CM,
        "height": PARCEL_HEIGHT_CM,
        "weight": str(PARCEL_WEIGHT_KG),
    }


class HttpShipmentDispatcher:
    """
    Dispatcher client with bearer-token authentication.

    A 401 invalidates the cached token, logs in again and retries the request
    exactly once; a second 401 is a ``ShipmentError``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        email: str,
        password: str,
        pickup_location: str = "Home",
        token_ttl: float = 9 * 24 * 3600.0,
    ) -> None:
        self._client = client
        self._email = email
        self._password = password
        self._pickup_location = pickup_location
        self._tokens = TokenCache(self._login, ttl=token_ttl)

    @property
    def tokens(self) -> TokenCache:
        return self._tokens

    # ───────────────────────────────────────────────────────────────────────
    # Operations
    # ───────────────────────────────────────────────────────────────────────

    async def create_shipment(self, request: ShipmentRequest) -> Shipment:
        data = await self._request(
            "POST",
            "/orders/create/adhoc",
            json=shipment_payload(request, self._pickup_location),
        )
        shipment_id = data.get("shipment_id")
        shipper_order_id = data.get("order_id")
        if shipment_id is None or shipper_order_id is None:
            raise ShipmentError(f"Dispatcher returned no shipment for order {request.order_id}")
        logger.info("Created shipment %s for order %s", shipment_id, request.order_id)
        return Shipment(shipment_id=str(shipment_id), shipper_order_id=str(shipper_order_id))

    async def generate_label(self, shipment_id: str) -> Label:
        data = await self._request(
            "POST", "/courier/generate/label", json={"shipment_id": [shipment_id]}
        )
        label_url = data.get("label_url")
        if not label_url:
            raise ShipmentError(f"No label generated for shipment {shipment_id}")
        return Label(label_url=str(label_url))

    async def track(self, shipment_id: str) -> Tracking:
        data = await self._request("GET", f"/courier/track/shipment/{shipment_id}")
        tracking = data.get("tracking_data") or {}
        status = tracking.get("shipment_status") or data.get("current_status") or "unknown"
        return Tracking(shipment_id=shipment_id, status=str(status), raw=data)

    async def cancel(self, shipper_order_id: str) -> None:
        await self._request("POST", "/orders/cancel", json={"ids": [shipper_order_id]})
        logger.info("Cancelled dispatcher order %s", shipper_order_id)

    # ───────────────────────────────────────────────────────────────────────
    # Transport
    # ───────────────────────────────────────────────────────────────────────

    async def _login(self) -> str:
        try:
            response = await self._client.post(
                "/auth/login", json={"email": self._email, "password": self._password}
            )
        except httpx.HTTPError as e:
            raise ShipmentError(f"Dispatcher login failed: {e}") from e
        if response.is_error:
            raise ShipmentError("Dispatcher login rejected", response.status_code)
        token = _body(response, "POST /auth/login").get("token")
        if not token:
            raise ShipmentError("Dispatcher login returned no token")
        return str(token)

    async def _send(self, method: str, path: str, token: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(
                method, path, headers={"Authorization": f"Bearer {token}"}, **kwargs
            )
        except httpx.HTTPError as e:
            raise ShipmentError(f"{method} {path} failed: {e}") from e

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        token = await self._tokens.get()
        response = await self._send(method, path, token, **kwargs)

        if response.status_code == httpx.codes.UNAUTHORIZED:
            logger.info("Dispatcher token rejected on %s %s, re-authenticating", method, path)
            self._tokens.invalidate(token)
            token = await self._tokens.get()
            response = await self._send(method, path, token, **kwargs)
            if response.status_code == httpx.codes.UNAUTHORIZED:
                raise ShipmentError(
                    f"{method} {path} unauthorized after re-authentication",
                    response.status_code,
                )

        if response.is_error:
            raise ShipmentError(
                f"{method} {path} failed with {response.status_code}", response.status_code
            )
        return _body(response, f"{method} {path}")


__all__ = ("HttpShipmentDispatcher", "shipment_payload")
