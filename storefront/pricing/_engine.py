"""
Pricing engine — pure functions over line items and discount terms.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from storefront.pricing._types import ZERO, DiscountTerms, PricedLine, ShippingPolicy, Totals

_CENT = Decimal("0.01")
_HUNDRED = Decimal(100)

# ═══════════════════════════════════════════════════════════════════════════════
# Money helpers
# ═══════════════════════════════════════════════════════════════════════════════


def round_money(amount: Decimal) -> Decimal:
    """Round half-up to the paisa."""
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """Decimal rupees to integer paisa (``round(amount * 100)``, half-up)."""
    return int((amount * _HUNDRED).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_minor_units(minor: int) -> Decimal:
    return (Decimal(minor) / _HUNDRED).quantize(_CENT)


# ═══════════════════════════════════════════════════════════════════════════════
# compute_totals()
# ═══════════════════════════════════════════════════════════════════════════════


def gross_total(items: Iterable[PricedLine]) -> Decimal:
    return sum((item.unit_price * item.quantity for item in items), ZERO)


def raw_discount(gross: Decimal, terms: DiscountTerms | None) -> Decimal:
    """``min(gross * pct / 100, cap)``, unrounded."""
    if terms is None:
        return ZERO
    percent_off = gross * terms.discount_percentage / _HUNDRED
    return min(percent_off, terms.max_discount_amount)


def compute_totals(
    items: Iterable[PricedLine],
    discount: DiscountTerms | None,
    policy: ShippingPolicy,
) -> Totals:
    """
    Price a set of line items.

    Nothing is rounded until the net total; the reported discount is then
    ``gross - net`` so ``net == max(gross - discount, 0)`` holds exactly and
    the discount never exceeds its cap or the gross total.

    Example:
        totals = compute_totals(cart.items, cart.applied_discount, policy)
        totals.net_total, totals.shipping_fee
    """
    lines = list(items)
    gross = gross_total(lines)
    net = round_money(max(gross - raw_discount(gross, discount), ZERO))
    discount_amount = round_money(gross - net)

    if lines and net < policy.free_threshold:
        shipping = round_money(policy.flat_fee)
    else:
        shipping = ZERO

    return Totals(
        gross_total=round_money(gross),
        discount_amount=discount_amount,
        net_total=net,
        shipping_fee=shipping,
    )


__all__ = (
    "round_money",
    "to_minor_units",
    "from_minor_units",
    "gross_total",
    "raw_discount",
    "compute_totals",
)
