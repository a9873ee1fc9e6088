"""
Payment confirmation — finalize a Pending order once the gateway reports payment.

    verify signature ─▶ [capture check] ─▶ ┌ locate Pending order    ┐
                                           │ consume discount use    │ one transaction
                                           └ mark Paid / Processing  ┘
                        ─▶ release cart discount ─▶ confirmation mail ─▶ ship

Everything after the commit is best effort. A shipment failure leaves the
order Paid/Processing and raises an admin alert; ``retry_shipment`` picks it
up later.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from kungfu import Error, Ok, Result

from storefront._errors import ErrorKind, Errors, Reason, ShopError
from storefront._types import Clock, utcnow
from storefront.cart import CartService
from storefront.db import SessionFactory, in_transaction
from storefront.discounts import DiscountRuleStore
from storefront.notify import AdminAlerts, NotificationQueue, order_confirmation, order_shipped
from storefront.orders import Order, OrderRepository, PaymentStatus
from storefront.payments._gateway import GatewayError, PaymentGateway, gateway_error
from storefront.payments._signature import verify_signature
from storefront.shipping import ShipmentDispatcher, ShipmentError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConfirmPayment:
    gateway_order_id: str
    gateway_payment_id: str
    signature: str


@dataclass(frozen=True, slots=True)
class Confirmation:
    order: Order
    shipped: bool
    message: str


class PaymentConfirmationHandler:
    def __init__(
        self,
        sessions: SessionFactory,
        gateway: PaymentGateway,
        dispatcher: ShipmentDispatcher,
        carts: CartService,
        discounts: DiscountRuleStore,
        queue: NotificationQueue,
        alerts: AdminAlerts,
        *,
        secret: str,
        verify_capture: bool = False,
        gateway_timeout: float = 10.0,
        dispatcher_timeout: float = 15.0,
        clock: Clock = utcnow,
    ) -> None:
        self._sessions = sessions
        self._gateway = gateway
        self._dispatcher = dispatcher
        self._carts = carts
        self._discounts = discounts
        self._queue = queue
        self._alerts = alerts
        self._secret = secret
        self._verify_capture = verify_capture
        self._gateway_timeout = gateway_timeout
        self._dispatcher_timeout = dispatcher_timeout
        self._orders = OrderRepository(clock)

    async def confirm(self, cmd: ConfirmPayment) -> Result[Confirmation, ShopError]:
        if not verify_signature(
            self._secret, cmd.gateway_order_id, cmd.gateway_payment_id, cmd.signature
        ):
            logger.warning("Rejected payment %s: bad signature", cmd.gateway_payment_id)
            return Error(
                Errors.validation(Reason.INVALID_SIGNATURE, "Payment signature does not match")
            )

        if self._verify_capture:
            match await self._check_captured(cmd.gateway_payment_id):
                case Error(e):
                    return Error(e)
                case Ok(_):
                    pass

        located: Order | None = None

        async def work(session: AsyncSession) -> Result[Order, ShopError]:
            nonlocal located
            order = await self._orders.by_gateway_order(session, cmd.gateway_order_id)
            if order is None:
                return Error(
                    ShopError(
                        ErrorKind.NOT_FOUND,
                        Reason.INVALID_ORDER,
                        f"No order for gateway order {cmd.gateway_order_id}",
                    )
                )
            if order.payment_status is not PaymentStatus.PENDING:
                return Error(_not_pending(order))
            located = order

            if order.discount is not None:
                match await self._discounts.increment_usage(session, order.discount.rule_id):
                    case Error(e):
                        return Error(e)
                    case Ok(_):
                        pass

            paid = await self._orders.mark_paid(
                session, order.id, cmd.gateway_payment_id, order.total_amount
            )
            if paid is None:
                return Error(_not_pending(order))
            return Ok(paid)

        match await in_transaction(self._sessions, work, what="confirm payment"):
            case Error(e):
                if located is not None and e.reason is Reason.USAGE_LIMIT_REACHED:
                    # Captured at the gateway but the order cannot be finalized.
                    await self._alerts.raise_alert(
                        located,
                        "discount",
                        f"Payment {cmd.gateway_payment_id} received but discount "
                        f"{located.discount.code if located.discount else '?'} is exhausted: {e.message}",
                    )
                return Error(e)
            case Ok(order):
                pass

        logger.info(
            "Order %s paid (%s %s, payment %s)",
            order.id,
            order.amount_paid,
            order.currency,
            cmd.gateway_payment_id,
        )
        await self._release_cart_discount(order)
        self._queue.enqueue(order_confirmation(order))
        return await self._ship(order)

    async def retry_shipment(self, order_id: str) -> Result[Confirmation, ShopError]:
        """Ship a Paid/Processing order whose earlier shipment attempt failed."""

        async def work(session: AsyncSession) -> Result[Order, ShopError]:
            order = await self._orders.get(session, order_id)
            if order is None:
                return Error(Errors.not_found("Order", order_id))
            if not order.awaiting_shipment:
                return Error(
                    Errors.conflict(
                        Reason.SHIPMENT_NOT_PENDING,
                        f"Order {order_id} is {order.payment_status.value}/"
                        f"{order.order_status.value}, nothing to ship",
                    )
                )
            return Ok(order)

        match await in_transaction(self._sessions, work, what="load order for shipment"):
            case Error(e):
                return Error(e)
            case Ok(order):
                return await self._ship(order)

    # ───────────────────────────────────────────────────────────────────────
    # Post-commit steps
    # ───────────────────────────────────────────────────────────────────────

    async def _check_captured(self, payment_id: str) -> Result[None, ShopError]:
        try:
            async with asyncio.timeout(self._gateway_timeout):
                info = await self._gateway.fetch_payment(payment_id)
        except TimeoutError:
            return Error(Errors.timeout("Payment gateway"))
        except GatewayError as e:
            return Error(gateway_error(e))
        if not info.captured:
            return Error(
                Errors.conflict(
                    Reason.PAYMENT_NOT_CAPTURED,
                    f"Payment {payment_id} is {info.status}, not captured",
                )
            )
        return Ok(None)

    async def _release_cart_discount(self, order: Order) -> None:
        match await self._carts.release_discount(order.owner_id):
            case Error(e):
                logger.warning("Could not release cart discount of %s: %s", order.owner_id, e)
            case Ok(_):
                pass

    async def _ship(self, order: Order) -> Result[Confirmation, ShopError]:
        """
        Create the shipment, record it, then label it.

        The shipment ids are stored before the label is requested, so an order
        whose label failed is retried with ``generate_label`` only and never
        gets a second shipment.
        """
        shipment_id = order.shipment_id
        if shipment_id is None:
            try:
                async with asyncio.timeout(self._dispatcher_timeout):
                    shipment = await self._dispatcher.create_shipment(order.shipment_request())
            except (ShipmentError, TimeoutError) as e:
                return await self._hold(
                    order,
                    f"Shipment creation failed: {_describe(e)}",
                    "Payment received, shipment will follow",
                )

            async def save_shipment(session: AsyncSession) -> Order | None:
                return await self._orders.record_shipment(
                    session, order.id, shipment.shipment_id, shipment.shipper_order_id
                )

            match await self._store(order.id, save_shipment, what="record shipment"):
                case Error(e):
                    return await self._hold(
                        order,
                        f"Shipment {shipment.shipment_id} created but not recorded: {e.message}",
                        "Payment received, shipment needs attention",
                    )
                case Ok(order):
                    shipment_id = shipment.shipment_id

        try:
            async with asyncio.timeout(self._dispatcher_timeout):
                label = await self._dispatcher.generate_label(shipment_id)
        except (ShipmentError, TimeoutError) as e:
            return await self._hold(
                order,
                f"Label for shipment {shipment_id} failed: {_describe(e)}",
                "Payment received, shipment label pending",
            )

        async def save_label(session: AsyncSession) -> Order | None:
            return await self._orders.record_label(session, order.id, label.label_url)

        match await self._store(order.id, save_label, what="record label"):
            case Error(e):
                return await self._hold(
                    order,
                    f"Label for shipment {shipment_id} generated but not recorded: {e.message}",
                    "Payment received, shipment needs attention",
                )
            case Ok(shipped):
                self._queue.enqueue(order_shipped(shipped))
                return Ok(
                    Confirmation(order=shipped, shipped=True, message="Payment received, order shipped")
                )

    async def _store(
        self,
        order_id: str,
        save: Callable[[AsyncSession], Awaitable[Order | None]],
        *,
        what: str,
    ) -> Result[Order, ShopError]:
        async def work(session: AsyncSession) -> Result[Order, ShopError]:
            saved = await save(session)
            return Ok(saved) if saved else Error(Errors.not_found("Order", order_id))

        return await in_transaction(self._sessions, work, what=what)

    async def _hold(self, order: Order, reason: str, message: str) -> Result[Confirmation, ShopError]:
        """Leave the order Processing and escalate; the payment itself stands."""
        logger.error("Shipment for order %s failed: %s", order.id, reason)
        await self._alerts.raise_alert(order, "shipment", reason)
        return Ok(Confirmation(order=order, shipped=False, message=message))


def _describe(e: Exception) -> str:
    return str(e) or "dispatcher timed out"


def _not_pending(order: Order) -> ShopError:
    return Errors.conflict(
        Reason.INVALID_ORDER,
        f"Order {order.id} is already {order.payment_status.value}",
    )


__all__ = ("ConfirmPayment", "Confirmation", "PaymentConfirmationHandler")
