"""
SQLAlchemy discount rule store.

All methods take the caller's session so rule reads and the usage increment
join the surrounding transaction (cart mutation or payment confirmation).

    store = DiscountRuleStore()

    async with sessions() as session, session.begin():
        rule = await store.find_by_code(session, "save20")
        match await store.increment_usage(session, rule.id):
            case Ok(updated): ...
            case Error(e): ...   # USAGE_LIMIT_REACHED: abort the transaction
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, cast

from sqlalchemy import select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kungfu import Error, Ok, Result

from storefront._errors import Errors, Reason, ShopError
from storefront._types import Clock, new_id, utcnow
from storefront.db import DiscountRuleTable
from storefront.discounts._types import DiscountDraft, DiscountRule, canonical_code
from storefront.discounts._validate import validate_draft
from storefront.pricing import from_minor_units, to_minor_units

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Conversions
# ═══════════════════════════════════════════════════════════════════════════════


def percent_to_bps(percent: Decimal) -> int:
    bps = percent * 100
    if bps != bps.to_integral_value():
        raise ValueError(f"{percent}% is finer than one basis point")
    return int(bps)


def bps_to_percent(bps: int) -> Decimal:
    return Decimal(bps) / 100


def _to_domain(row: DiscountRuleTable) -> DiscountRule:
    return DiscountRule(
        id=row.id,
        code=row.code,
        discount_percentage=bps_to_percent(row.percent_bps),
        max_discount_amount=from_minor_units(row.max_discount_minor),
        min_cart_value=from_minor_units(row.min_cart_value_minor),
        valid_from=row.valid_from,
        valid_until=row.valid_until,
        usage_limit=row.usage_limit,
        times_used=row.times_used,
        is_active=row.is_active,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Store
# ═══════════════════════════════════════════════════════════════════════════════


class DiscountRuleStore:
    def __init__(self, clock: Clock = utcnow) -> None:
        self._clock = clock

    async def find_by_code(
        self, session: AsyncSession, code: str
    ) -> Result[DiscountRule, ShopError]:
        """Case-insensitive exact match on the canonical code."""
        key = canonical_code(code)
        row = (
            await session.execute(
                select(DiscountRuleTable).where(DiscountRuleTable.code == key)
            )
        ).scalar_one_or_none()
        if row is None:
            return Error(Errors.not_found("Discount", key))
        return Ok(_to_domain(row))

    async def get(self, session: AsyncSession, rule_id: str) -> DiscountRule | None:
        row = await self._load(session, rule_id)
        return _to_domain(row) if row else None

    async def list_all(self, session: AsyncSession) -> list[DiscountRule]:
        rows = (
            await session.execute(select(DiscountRuleTable).order_by(DiscountRuleTable.code))
        ).scalars()
        return [_to_domain(row) for row in rows]

    async def add(
        self, session: AsyncSession, draft: DiscountDraft
    ) -> Result[DiscountRule, ShopError]:
        match validate_draft(draft):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass

        code = canonical_code(draft.code)
        row = DiscountRuleTable(
            id=new_id("dsc"),
            code=code,
            percent_bps=percent_to_bps(draft.discount_percentage),
            max_discount_minor=to_minor_units(draft.max_discount_amount),
            min_cart_value_minor=to_minor_units(draft.min_cart_value),
            valid_from=draft.valid_from,
            valid_until=draft.valid_until,
            usage_limit=draft.usage_limit,
            times_used=0,
            is_active=draft.is_active,
            created_at=self._clock(),
        )
        try:
            async with session.begin_nested():
                session.add(row)
        except IntegrityError:
            return Error(Errors.conflict(Reason.DUPLICATE_CODE, f"Discount {code} already exists"))
        return Ok(_to_domain(row))

    async def increment_usage(
        self, session: AsyncSession, rule_id: str
    ) -> Result[DiscountRule, ShopError]:
        """
        Consume one use of the rule.

        A single conditional UPDATE: it only matches while
        ``times_used < usage_limit``, so concurrent callers racing for the last
        slot cannot both win. Reaching the limit deactivates the rule.
        """
        result = cast(
            CursorResult[Any],
            await session.execute(
                update(DiscountRuleTable)
                .where(
                    DiscountRuleTable.id == rule_id,
                    DiscountRuleTable.times_used < DiscountRuleTable.usage_limit,
                )
                .values(times_used=DiscountRuleTable.times_used + 1)
                .execution_options(synchronize_session=False)
            ),
        )
        if result.rowcount == 0:
            if await self._load(session, rule_id) is None:
                return Error(Errors.not_found("Discount", rule_id))
            logger.info("Discount %s: usage limit reached, increment rejected", rule_id)
            return Error(
                Errors.conflict(Reason.USAGE_LIMIT_REACHED, "Discount usage limit reached")
            )

        await session.execute(
            update(DiscountRuleTable)
            .where(
                DiscountRuleTable.id == rule_id,
                DiscountRuleTable.times_used >= DiscountRuleTable.usage_limit,
            )
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )

        row = await self._load(session, rule_id)
        if row is None:
            return Error(Errors.not_found("Discount", rule_id))
        rule = _to_domain(row)
        if not rule.is_active:
            logger.info("Discount %s exhausted after %d uses, deactivated", rule.code, rule.times_used)
        return Ok(rule)

    async def _load(self, session: AsyncSession, rule_id: str) -> DiscountRuleTable | None:
        return (
            await session.execute(
                select(DiscountRuleTable)
                .where(DiscountRuleTable.id == rule_id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()


__all__ = ("DiscountRuleStore", "percent_to_bps", "bps_to_percent")
