"""
Applicability checks.

Order matters: the first failing check is the reason reported.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from kungfu import Error, Ok, Result

from storefront._errors import Errors, Reason, ShopError
from storefront.discounts._types import AppliedDiscount, DiscountDraft, DiscountRule


def validate(
    rule: DiscountRule,
    cart_gross_total: Decimal,
    now: datetime,
    applied: AppliedDiscount | None = None,
) -> Result[DiscountRule, ShopError]:
    """
    Check a rule against a cart.

    active flag → validity window → usage limit → minimum cart value →
    not already the cart's applied rule.
    """
    if not rule.is_active:
        return Error(Errors.validation(Reason.INACTIVE, f"Discount {rule.code} is not active"))
    if now < rule.valid_from:
        return Error(
            Errors.validation(Reason.NOT_YET_VALID, f"Discount {rule.code} is not valid yet")
        )
    if now > rule.valid_until:
        return Error(Errors.validation(Reason.EXPIRED, f"Discount {rule.code} has expired"))
    if rule.exhausted:
        return Error(
            Errors.conflict(
                Reason.USAGE_LIMIT_REACHED, f"Discount {rule.code} has reached its usage limit"
            )
        )
    if cart_gross_total < rule.min_cart_value:
        return Error(
            Errors.validation(
                Reason.BELOW_MIN_CART_VALUE,
                f"Cart total must be at least {rule.min_cart_value} to use {rule.code}",
            )
        )
    if applied is not None and applied.rule_id == rule.id:
        return Error(
            Errors.conflict(Reason.ALREADY_APPLIED, f"Discount {rule.code} is already applied")
        )
    return Ok(rule)


def _whole_cents(value: Decimal) -> bool:
    return value == value.quantize(Decimal("0.01"))


def validate_draft(draft: DiscountDraft) -> Result[DiscountDraft, ShopError]:
    def invalid(message: str) -> Result[DiscountDraft, ShopError]:
        return Error(Errors.validation(Reason.INVALID_DISCOUNT_RULE, message))

    if not draft.code.strip():
        return invalid("Discount code is required")
    if not Decimal(0) <= draft.discount_percentage <= Decimal(100):
        return invalid("Discount percentage must be between 0 and 100")
    if draft.max_discount_amount < 0 or draft.min_cart_value < 0:
        return invalid("Discount amounts cannot be negative")
    # Percentages are stored in basis points, amounts in paisa.
    if not _whole_cents(draft.discount_percentage):
        return invalid("Discount percentage allows at most 2 decimal places")
    if not (_whole_cents(draft.max_discount_amount) and _whole_cents(draft.min_cart_value)):
        return invalid("Discount amounts allow at most 2 decimal places")
    if draft.usage_limit < 1:
        return invalid("Usage limit must be at least 1")
    if draft.valid_from.tzinfo is None or draft.valid_until.tzinfo is None:
        return invalid("Validity window must be timezone-aware")
    if draft.valid_from >= draft.valid_until:
        return invalid("valid_from must be earlier than valid_until")
    return Ok(draft)


__all__ = ("validate", "validate_draft")
