"""
Pricing — gross, discount, net and shipping for a set of line items.

    from storefront import pricing as P

    totals = P.compute_totals(items, applied_discount, P.ShippingPolicy())
    amount = P.to_minor_units(totals.payable)
"""

from storefront.pricing._types import (
    ZERO,
    PricedLine,
    DiscountTerms,
    ShippingPolicy,
    Totals,
)
from storefront.pricing._engine import (
    round_money,
    to_minor_units,
    from_minor_units,
    gross_total,
    raw_discount,
    compute_totals,
)

__all__ = (
    "ZERO",
    "PricedLine",
    "DiscountTerms",
    "ShippingPolicy",
    "Totals",
    "round_money",
    "to_minor_units",
    "from_minor_units",
    "gross_total",
    "raw_discount",
    "compute_totals",
)
