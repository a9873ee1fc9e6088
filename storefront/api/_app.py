"""
FastAPI application.

    $ storefront                        # settings from STOREFRONT_* env vars

The routes are compiled from op endpoints at import time; services (database,
HTTP clients, notification worker) are created in the lifespan and injected
into the runner.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager

import fastapi
import httpx
from kungfu import Error, Ok, Result

from storefront._errors import ErrorKind, Reason, ShopError
from storefront._logging import configure_logging
from storefront.api import _models as M
from storefront.api._container import build_services, inject_services
from storefront.api._handlers import storefront_ops
from storefront.config import Settings
from storefront.db import create_database
from storefront.notify import LogSender, NotificationSender
from storefront.ops import Runner
from storefront.payments import HttpPaymentGateway, PaymentGateway
from storefront.shipping import HttpShipmentDispatcher, ShipmentDispatcher
from storefront.wire import (
    Endpoint,
    HTTPRouteTrigger,
    RequestResponseCodec,
    application,
    endpoint,
    from_application,
)

logger = logging.getLogger(__name__)

_STATUS = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.EXTERNAL_SERVICE: 502,
    ErrorKind.INTERNAL: 500,
}


def http_status(result: Result[object, ShopError]) -> int:
    match result:
        case Ok(_):
            return 200
        case Error(e):
            if e.reason is Reason.GATEWAY_TIMEOUT:
                return 504
            return _STATUS[e.kind]


def _codec(request: type, response: type) -> RequestResponseCodec:
    return RequestResponseCodec(request, response, status=http_status)  # type: ignore[arg-type]


def routes(runner: Runner) -> Endpoint:
    return (
        endpoint(runner)
        # cart
        .expose(HTTPRouteTrigger("GET", "/carts/{owner_id}"), _codec(M.OwnerIn, M.CartResponse))
        .expose(HTTPRouteTrigger("DELETE", "/carts/{owner_id}"), _codec(M.ClearCartIn, M.CartResponse))
        .expose(
            HTTPRouteTrigger("POST", "/carts/{owner_id}/items"),
            _codec(M.AddItemIn, M.CartResponse),
        )
        .expose(
            HTTPRouteTrigger("PUT", "/carts/{owner_id}/items/{product_id}"),
            _codec(M.SetItemIn, M.CartResponse),
        )
        .expose(
            HTTPRouteTrigger("PATCH", "/carts/{owner_id}/items/{product_id}"),
            _codec(M.UpdateQuantityIn, M.CartResponse),
        )
        .expose(
            HTTPRouteTrigger("DELETE", "/carts/{owner_id}/items/{product_id}"),
            _codec(M.RemoveItemIn, M.CartResponse),
        )
        .expose(
            HTTPRouteTrigger("POST", "/carts/{owner_id}/discount"),
            _codec(M.DiscountCodeIn, M.CartResponse),
        )
        .expose(
            HTTPRouteTrigger("DELETE", "/carts/{owner_id}/discount/{code}"),
            _codec(M.RemoveDiscountIn, M.CartResponse),
        )
        # checkout & payment
        .expose(HTTPRouteTrigger("POST", "/checkout"), _codec(M.CheckoutIn, M.CheckoutResponse))
        .expose(
            HTTPRouteTrigger("POST", "/payments/confirm"),
            _codec(M.ConfirmIn, M.ConfirmationResponse),
        )
        # administration
        .expose(HTTPRouteTrigger("GET", "/orders"), _codec(M.ListOrdersIn, M.OrderListResponse))
        .expose(HTTPRouteTrigger("GET", "/orders/{order_id}"), _codec(M.OrderIdIn, M.OrderResponse))
        .expose(
            HTTPRouteTrigger("PATCH", "/orders/{order_id}/status"),
            _codec(M.StatusIn, M.StatusResponse),
        )
        .expose(
            HTTPRouteTrigger("DELETE", "/orders/{order_id}"),
            _codec(M.DeleteOrderIn, M.OrderResponse),
        )
        .expose(
            HTTPRouteTrigger("POST", "/orders/{order_id}/shipment"),
            _codec(M.RetryShipmentIn, M.ConfirmationResponse),
        )
        .expose(HTTPRouteTrigger("POST", "/discounts"), _codec(M.DiscountIn, M.DiscountResponse))
        .expose(
            HTTPRouteTrigger("GET", "/discounts"),
            _codec(M.ListDiscountsIn, M.DiscountListResponse),
        )
        .expose(HTTPRouteTrigger("GET", "/alerts"), _codec(M.ListAlertsIn, M.AlertListResponse))
    )


def create_app(
    settings: Settings | None = None,
    *,
    gateway: PaymentGateway | None = None,
    dispatcher: ShipmentDispatcher | None = None,
    sender: NotificationSender | None = None,
) -> fastapi.FastAPI:
    """
    Build the app. Collaborators left as ``None`` are created from settings:
    httpx clients for the gateway and the dispatcher, a logging mail sender.
    """
    settings = settings or Settings.from_env()
    runner = storefront_ops().compile()

    @asynccontextmanager
    async def lifespan(app: fastapi.FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        async with AsyncExitStack() as stack:
            sessions, engine = await create_database(settings.database_url)
            stack.push_async_callback(engine.dispose)

            gw = gateway
            if gw is None:
                client = await stack.enter_async_context(
                    httpx.AsyncClient(
                        base_url=settings.gateway_base_url,
                        auth=(settings.gateway_key_id, settings.gateway_key_secret),
                        timeout=settings.gateway_timeout,
                    )
                )
                gw = HttpPaymentGateway(client)

            dp = dispatcher
            if dp is None:
                client = await stack.enter_async_context(
                    httpx.AsyncClient(
                        base_url=settings.shipper_base_url, timeout=settings.shipper_timeout
                    )
                )
                dp = HttpShipmentDispatcher(
                    client,
                    email=settings.shipper_email,
                    password=settings.shipper_password,
                    pickup_location=settings.pickup_location,
                    token_ttl=settings.shipper_token_ttl,
                )

            services = build_services(
                settings, sessions, gw, dp, sender or LogSender(settings.sender_address)
            )
            inject_services(runner, services)
            await services.queue.start()
            stack.push_async_callback(services.queue.stop)
            app.state.services = services
            logger.info("storefront started (%s)", settings.database_url)
            yield
            logger.info("storefront stopping")

    return from_application(
        application().mount(routes(runner)), title="storefront", lifespan=lifespan
    )


def main() -> None:
    import uvicorn

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=8000)


__all__ = ("http_status", "routes", "create_app", "main")
