"""
Cart types.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal

from storefront.discounts import AppliedDiscount
from storefront.pricing import ShippingPolicy, Totals, compute_totals


@dataclass(frozen=True, slots=True)
class LineItem:
    product_id: str
    quantity: int
    unit_price: Decimal  # snapshot at add time
    product_name: str

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True, slots=True)
class Cart:
    """
    One cart per owner.

    Immutable; every mutation returns a new cart that must be passed through
    ``repriced`` before it is persisted.
    """

    owner_id: str
    items: tuple[LineItem, ...] = ()
    applied_discount: AppliedDiscount | None = None
    totals: Totals = field(default_factory=Totals.zero)
    id: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, product_id: str) -> LineItem | None:
        return next((i for i in self.items if i.product_id == product_id), None)

    def with_line(self, line: LineItem) -> Cart:
        """Replace the line for the same product in place, or append it."""
        if self.find(line.product_id) is None:
            return replace(self, items=(*self.items, line))
        return replace(
            self,
            items=tuple(line if i.product_id == line.product_id else i for i in self.items),
        )

    def without(self, product_id: str) -> Cart:
        return replace(self, items=tuple(i for i in self.items if i.product_id != product_id))

    def with_discount(self, applied: AppliedDiscount | None) -> Cart:
        return replace(self, applied_discount=applied)

    def emptied(self) -> Cart:
        return replace(self, items=(), applied_discount=None, totals=Totals.zero())

    def repriced(self, policy: ShippingPolicy) -> Cart:
        return replace(self, totals=compute_totals(self.items, self.applied_discount, policy))


__all__ = ("LineItem", "Cart")
