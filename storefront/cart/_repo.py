"""
Cart persistence — maps ``Cart`` to the carts/cart_items tables.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront._types import Clock, new_id, utcnow
from storefront.cart._types import Cart, LineItem
from storefront.db import CartItemTable, CartTable, CorruptRecord
from storefront.discounts import AppliedDiscount, bps_to_percent, percent_to_bps
from storefront.pricing import Totals, from_minor_units, to_minor_units


def _applied(row: CartTable) -> AppliedDiscount | None:
    if row.applied_rule_id is None:
        return None
    if (
        row.applied_code is None
        or row.applied_percent_bps is None
        or row.applied_max_discount_minor is None
        or row.applied_at is None
    ):
        raise CorruptRecord(f"Cart of {row.owner_id} has an incomplete discount snapshot")
    return AppliedDiscount(
        rule_id=row.applied_rule_id,
        code=row.applied_code,
        discount_percentage=bps_to_percent(row.applied_percent_bps),
        max_discount_amount=from_minor_units(row.applied_max_discount_minor),
        applied_at=row.applied_at,
    )


def _to_domain(row: CartTable) -> Cart:
    return Cart(
        id=row.id,
        owner_id=row.owner_id,
        items=tuple(
            LineItem(
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=from_minor_units(item.unit_price_minor),
                product_name=item.product_name,
            )
            for item in row.items
        ),
        applied_discount=_applied(row),
        totals=Totals(
            gross_total=from_minor_units(row.gross_minor),
            discount_amount=from_minor_units(row.discount_minor),
            net_total=from_minor_units(row.net_minor),
            shipping_fee=from_minor_units(row.shipping_fee_minor),
        ),
    )


class CartRepository:
    def __init__(self, clock: Clock = utcnow) -> None:
        self._clock = clock

    async def load(self, session: AsyncSession, owner_id: str) -> Cart | None:
        row = await self._row(session, owner_id)
        return _to_domain(row) if row else None

    async def save(self, session: AsyncSession, cart: Cart) -> Cart:
        row = await self._row(session, cart.owner_id)
        if row is None:
            row = CartTable(id=new_id("cart"), owner_id=cart.owner_id, items=[])
            session.add(row)

        applied = cart.applied_discount
        row.applied_rule_id = applied.rule_id if applied else None
        row.applied_code = applied.code if applied else None
        row.applied_percent_bps = percent_to_bps(applied.discount_percentage) if applied else None
        row.applied_max_discount_minor = (
            to_minor_units(applied.max_discount_amount) if applied else None
        )
        row.applied_at = applied.applied_at if applied else None

        row.gross_minor = to_minor_units(cart.totals.gross_total)
        row.discount_minor = to_minor_units(cart.totals.discount_amount)
        row.net_minor = to_minor_units(cart.totals.net_total)
        row.shipping_fee_minor = to_minor_units(cart.totals.shipping_fee)
        row.updated_at = self._clock()

        row.items = [
            CartItemTable(
                position=position,
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price_minor=to_minor_units(item.unit_price),
                product_name=item.product_name,
            )
            for position, item in enumerate(cart.items)
        ]
        await session.flush()
        return _to_domain(row)

    async def delete(self, session: AsyncSession, owner_id: str) -> bool:
        row = await self._row(session, owner_id)
        if row is None:
            return False
        await session.delete(row)
        await session.flush()
        return True

    async def _row(self, session: AsyncSession, owner_id: str) -> CartTable | None:
        return (
            await session.execute(select(CartTable).where(CartTable.owner_id == owner_id))
        ).scalar_one_or_none()


__all__ = ("CartRepository",)
