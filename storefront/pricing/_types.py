"""
Pricing types.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

ZERO = Decimal("0.00")

# ═══════════════════════════════════════════════════════════════════════════════
# Inputs: anything with a price and a quantity
# ═══════════════════════════════════════════════════════════════════════════════


class PricedLine(Protocol):
    @property
    def unit_price(self) -> Decimal: ...
    @property
    def quantity(self) -> int: ...


class DiscountTerms(Protocol):
    @property
    def discount_percentage(self) -> Decimal: ...
    @property
    def max_discount_amount(self) -> Decimal: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Policy
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ShippingPolicy:
    """Flat fee below the free-shipping threshold, free at or above it."""

    flat_fee: Decimal = Decimal("55")
    free_threshold: Decimal = Decimal("800")


# ═══════════════════════════════════════════════════════════════════════════════
# Output
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Totals:
    gross_total: Decimal
    discount_amount: Decimal
    net_total: Decimal
    shipping_fee: Decimal

    @property
    def payable(self) -> Decimal:
        """What the customer is charged: net total plus shipping."""
        return self.net_total + self.shipping_fee

    @classmethod
    def zero(cls) -> Totals:
        return cls(ZERO, ZERO, ZERO, ZERO)


__all__ = ("ZERO", "PricedLine", "DiscountTerms", "ShippingPolicy", "Totals")
