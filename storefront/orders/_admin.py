"""
Order administration — listing, status changes and cancellation.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from kungfu import Error, Ok, Result

from storefront._errors import Errors, Reason, ShopError
from storefront._types import Clock, utcnow
from storefront.db import SessionFactory, in_transaction
from storefront.orders._repo import OrderRepository
from storefront.orders._types import Order, OrderStatus, OrderView
from storefront.shipping import ShipmentDispatcher, ShipmentError, Tracking

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StatusUpdate:
    order: Order
    tracking: Tracking | None = None


def parse_status(raw: str) -> Result[OrderStatus, ShopError]:
    for status in OrderStatus:
        if raw.strip().lower() == status.value.lower():
            return Ok(status)
    allowed = ", ".join(s.value for s in OrderStatus)
    return Error(Errors.validation(Reason.INVALID_STATUS, f"Invalid status {raw!r}, use one of {allowed}"))


class OrderAdmin:
    def __init__(
        self,
        sessions: SessionFactory,
        dispatcher: ShipmentDispatcher,
        dispatcher_timeout: float = 15.0,
        clock: Clock = utcnow,
    ) -> None:
        self._sessions = sessions
        self._dispatcher = dispatcher
        self._timeout = dispatcher_timeout
        self._repo = OrderRepository(clock)

    async def list_orders(self, owner_id: str | None = None) -> Result[list[OrderView], ShopError]:
        async def work(session: AsyncSession) -> Result[list[OrderView], ShopError]:
            return Ok(await self._repo.list_views(session, owner_id))

        return await in_transaction(self._sessions, work, what="list orders")

    async def get_order(self, order_id: str) -> Result[Order, ShopError]:
        async def work(session: AsyncSession) -> Result[Order, ShopError]:
            order = await self._repo.get(session, order_id)
            return Ok(order) if order else Error(Errors.not_found("Order", order_id))

        return await in_transaction(self._sessions, work, what="get order")

    async def update_status(self, order_id: str, raw_status: str) -> Result[StatusUpdate, ShopError]:
        """Set the order status; moving to Shipped also asks the dispatcher for tracking."""
        match parse_status(raw_status):
            case Error(e):
                return Error(e)
            case Ok(status):
                pass

        async def work(session: AsyncSession) -> Result[Order, ShopError]:
            order = await self._repo.set_status(session, order_id, status)
            return Ok(order) if order else Error(Errors.not_found("Order", order_id))

        match await in_transaction(self._sessions, work, what="update order status"):
            case Error(e):
                return Error(e)
            case Ok(order):
                pass

        tracking = None
        if status is OrderStatus.SHIPPED and order.shipment_id is not None:
            try:
                async with asyncio.timeout(self._timeout):
                    tracking = await self._dispatcher.track(order.shipment_id)
            except (ShipmentError, TimeoutError) as e:
                logger.warning("Tracking lookup for order %s failed: %s", order.id, e)
        return Ok(StatusUpdate(order=order, tracking=tracking))

    async def delete_order(self, order_id: str) -> Result[Order, ShopError]:
        """
        Cancel the shipment (best effort) and delete the order.

        Delivered orders cannot be deleted.
        """
        match await self.get_order(order_id):
            case Error(e):
                return Error(e)
            case Ok(order):
                pass
        if order.order_status is OrderStatus.DELIVERED:
            return Error(
                Errors.conflict(Reason.ORDER_DELIVERED, f"Order {order_id} is already delivered")
            )

        if order.shipper_order_id is not None:
            try:
                async with asyncio.timeout(self._timeout):
                    await self._dispatcher.cancel(order.shipper_order_id)
            except (ShipmentError, TimeoutError) as e:
                logger.warning(
                    "Could not cancel shipment %s of order %s: %s",
                    order.shipper_order_id,
                    order.id,
                    e,
                )

        async def work(session: AsyncSession) -> Result[Order, ShopError]:
            current = await self._repo.get(session, order_id)
            if current is None:
                return Error(Errors.not_found("Order", order_id))
            if current.order_status is OrderStatus.DELIVERED:
                return Error(
                    Errors.conflict(Reason.ORDER_DELIVERED, f"Order {order_id} is already delivered")
                )
            await self._repo.delete(session, order_id)
            return Ok(current)

        result = await in_transaction(self._sessions, work, what="delete order")
        if isinstance(result, Ok):
            logger.info("Deleted order %s", order_id)
        return result


__all__ = ("StatusUpdate", "parse_status", "OrderAdmin")
