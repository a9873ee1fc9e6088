"""
Discounts — coupon rules, applicability checks, atomic usage accounting.

    from storefront import discounts as D

    match await store.find_by_code(session, code):
        case Ok(rule):
            checked = D.validate(rule, cart.totals.gross_total, now, cart.applied_discount)
"""

from storefront.discounts._types import (
    canonical_code,
    DiscountRule,
    AppliedDiscount,
    DiscountDraft,
)
from storefront.discounts._validate import validate, validate_draft
from storefront.discounts._store import DiscountRuleStore, percent_to_bps, bps_to_percent
from storefront.discounts._admin import DiscountAdmin

__all__ = (
    "canonical_code",
    "DiscountRule",
    "AppliedDiscount",
    "DiscountDraft",
    "validate",
    "validate_draft",
    "DiscountRuleStore",
    "percent_to_bps",
    "bps_to_percent",
    "DiscountAdmin",
)
