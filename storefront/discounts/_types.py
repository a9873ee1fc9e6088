"""
Discount rule types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


def canonical_code(code: str) -> str:
    """Codes are case-insensitive and stored upper-case."""
    return code.strip().upper()


# ═══════════════════════════════════════════════════════════════════════════════
# DiscountRule: shared, read-mostly
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class DiscountRule:
    """
    A percentage-off offer with a cap, validity window and global usage limit.

    ``times_used`` only moves through the store's conditional increment, so
    ``times_used <= usage_limit`` always holds.
    """

    id: str
    code: str
    discount_percentage: Decimal
    max_discount_amount: Decimal
    min_cart_value: Decimal
    valid_from: datetime
    valid_until: datetime
    usage_limit: int
    times_used: int = 0
    is_active: bool = True

    @property
    def exhausted(self) -> bool:
        return self.times_used >= self.usage_limit

    def remaining_uses(self) -> int:
        return max(self.usage_limit - self.times_used, 0)


# ═══════════════════════════════════════════════════════════════════════════════
# AppliedDiscount: snapshot embedded in a cart (and copied onto orders)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class AppliedDiscount:
    rule_id: str
    code: str
    discount_percentage: Decimal
    max_discount_amount: Decimal
    applied_at: datetime

    @classmethod
    def from_rule(cls, rule: DiscountRule, now: datetime) -> AppliedDiscount:
        return cls(
            rule_id=rule.id,
            code=rule.code,
            discount_percentage=rule.discount_percentage,
            max_discount_amount=rule.max_discount_amount,
            applied_at=now,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# DiscountDraft: administrative input
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class DiscountDraft:
    code: str
    discount_percentage: Decimal
    max_discount_amount: Decimal
    valid_from: datetime
    valid_until: datetime
    usage_limit: int
    min_cart_value: Decimal = Decimal("0")
    is_active: bool = True


__all__ = ("canonical_code", "DiscountRule", "AppliedDiscount", "DiscountDraft")
