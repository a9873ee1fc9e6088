"""
Order persistence — maps ``Order`` to the orders/order_items tables.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, cast

from sqlalchemy import select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession

from storefront._types import Clock, utcnow
from storefront.db import CorruptRecord, OrderLineTable, OrderTable, ProductTable
from storefront.discounts import AppliedDiscount, bps_to_percent, percent_to_bps
from storefront.orders._types import (
    Order,
    OrderLine,
    OrderStatus,
    OrderView,
    PaymentStatus,
    ShippingAddress,
)
from storefront.pricing import Totals, from_minor_units, to_minor_units


def _discount(row: OrderTable) -> AppliedDiscount | None:
    if row.discount_rule_id is None:
        return None
    if row.discount_code is None or row.discount_percent_bps is None or row.discount_max_minor is None:
        raise CorruptRecord(f"Order {row.id} has an incomplete discount snapshot")
    return AppliedDiscount(
        rule_id=row.discount_rule_id,
        code=row.discount_code,
        discount_percentage=bps_to_percent(row.discount_percent_bps),
        max_discount_amount=from_minor_units(row.discount_max_minor),
        applied_at=row.created_at,
    )


def _to_domain(row: OrderTable) -> Order:
    return Order(
        id=row.id,
        owner_id=row.owner_id,
        receipt=row.receipt,
        lines=tuple(
            OrderLine(
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=from_minor_units(line.unit_price_minor),
                product_name=line.product_name,
                sku=line.sku,
            )
            for line in row.lines
        ),
        totals=Totals(
            gross_total=from_minor_units(row.gross_minor),
            discount_amount=from_minor_units(row.discount_minor),
            net_total=from_minor_units(row.net_minor),
            shipping_fee=from_minor_units(row.shipping_fee_minor),
        ),
        currency=row.currency,
        payment_method=row.payment_method,
        discount=_discount(row),
        payment_status=PaymentStatus(row.payment_status),
        order_status=OrderStatus(row.order_status),
        gateway_order_id=row.gateway_order_id,
        gateway_payment_id=row.gateway_payment_id,
        amount_paid=(
            from_minor_units(row.amount_paid_minor) if row.amount_paid_minor is not None else None
        ),
        shipment_id=row.shipment_id,
        shipper_order_id=row.shipper_order_id,
        label_url=row.label_url,
        shipping_address=ShippingAddress.from_dict(row.shipping_address),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class OrderRepository:
    def __init__(self, clock: Clock = utcnow) -> None:
        self._clock = clock

    async def insert(self, session: AsyncSession, order: Order) -> Order:
        discount = order.discount
        row = OrderTable(
            id=order.id,
            owner_id=order.owner_id,
            receipt=order.receipt,
            gross_minor=to_minor_units(order.totals.gross_total),
            discount_minor=to_minor_units(order.totals.discount_amount),
            net_minor=to_minor_units(order.totals.net_total),
            shipping_fee_minor=to_minor_units(order.totals.shipping_fee),
            total_minor=to_minor_units(order.total_amount),
            currency=order.currency,
            payment_method=order.payment_method,
            discount_rule_id=discount.rule_id if discount else None,
            discount_code=discount.code if discount else None,
            discount_percent_bps=percent_to_bps(discount.discount_percentage) if discount else None,
            discount_max_minor=to_minor_units(discount.max_discount_amount) if discount else None,
            payment_status=order.payment_status.value,
            order_status=order.order_status.value,
            gateway_order_id=order.gateway_order_id,
            shipping_address=order.shipping_address.to_dict(),
            created_at=order.created_at,
            updated_at=order.updated_at,
            lines=[
                OrderLineTable(
                    position=position,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price_minor=to_minor_units(line.unit_price),
                    product_name=line.product_name,
                    sku=line.sku,
                )
                for position, line in enumerate(order.lines)
            ],
        )
        session.add(row)
        await session.flush()
        return _to_domain(row)

    async def get(self, session: AsyncSession, order_id: str) -> Order | None:
        row = await self._row(session, OrderTable.id == order_id)
        return _to_domain(row) if row else None

    async def by_gateway_order(self, session: AsyncSession, gateway_order_id: str) -> Order | None:
        row = await self._row(session, OrderTable.gateway_order_id == gateway_order_id)
        return _to_domain(row) if row else None

    async def mark_paid(
        self, session: AsyncSession, order_id: str, payment_id: str, amount_paid: Decimal
    ) -> Order | None:
        """
        Pending → Paid, guarded in the UPDATE itself.

        Returns ``None`` when the order was no longer Pending, so a replayed
        confirmation can never mark it paid twice.
        """
        result = cast(
            CursorResult[Any],
            await session.execute(
                update(OrderTable)
                .where(
                    OrderTable.id == order_id,
                    OrderTable.payment_status == PaymentStatus.PENDING.value,
                )
                .values(
                    payment_status=PaymentStatus.PAID.value,
                    order_status=OrderStatus.PROCESSING.value,
                    gateway_payment_id=payment_id,
                    amount_paid_minor=to_minor_units(amount_paid),
                    updated_at=self._clock(),
                )
                .execution_options(synchronize_session=False)
            ),
        )
        if result.rowcount == 0:
            return None
        return await self.get(session, order_id)

    async def record_shipment(
        self,
        session: AsyncSession,
        order_id: str,
        shipment_id: str,
        shipper_order_id: str,
    ) -> Order | None:
        """Store the dispatcher's ids; the order stays Processing until labelled."""
        row = await self._row(session, OrderTable.id == order_id)
        if row is None:
            return None
        row.shipment_id = shipment_id
        row.shipper_order_id = shipper_order_id
        row.updated_at = self._clock()
        await session.flush()
        return _to_domain(row)

    async def record_label(
        self, session: AsyncSession, order_id: str, label_url: str
    ) -> Order | None:
        row = await self._row(session, OrderTable.id == order_id)
        if row is None:
            return None
        row.label_url = label_url
        row.order_status = OrderStatus.SHIPPED.value
        row.updated_at = self._clock()
        await session.flush()
        return _to_domain(row)

    async def set_status(
        self, session: AsyncSession, order_id: str, status: OrderStatus
    ) -> Order | None:
        row = await self._row(session, OrderTable.id == order_id)
        if row is None:
            return None
        row.order_status = status.value
        row.updated_at = self._clock()
        await session.flush()
        return _to_domain(row)

    async def delete(self, session: AsyncSession, order_id: str) -> bool:
        row = await self._row(session, OrderTable.id == order_id)
        if row is None:
            return False
        await session.delete(row)
        await session.flush()
        return True

    async def list_views(
        self, session: AsyncSession, owner_id: str | None = None
    ) -> list[OrderView]:
        """Newest first, each line joined with the product's current category."""
        query = select(OrderTable).order_by(OrderTable.created_at.desc(), OrderTable.id)
        if owner_id is not None:
            query = query.where(OrderTable.owner_id == owner_id)
        orders = [_to_domain(row) for row in (await session.execute(query)).scalars()]

        product_ids = {line.product_id for order in orders for line in order.lines}
        categories: dict[str, str] = {}
        if product_ids:
            rows = await session.execute(
                select(ProductTable.id, ProductTable.category).where(
                    ProductTable.id.in_(product_ids)
                )
            )
            categories = {pid: category for pid, category in rows.tuples()}

        return [
            OrderView(
                order=order,
                categories={
                    line.product_id: categories[line.product_id]
                    for line in order.lines
                    if line.product_id in categories
                },
            )
            for order in orders
        ]

    async def _row(self, session: AsyncSession, criterion: Any) -> OrderTable | None:
        return (
            await session.execute(
                select(OrderTable).where(criterion).execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()


__all__ = ("OrderRepository",)
