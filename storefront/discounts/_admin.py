"""
Discount administration — creating and listing rules outside of a cart.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from kungfu import Error, Ok, Result

from storefront._errors import ShopError
from storefront.db import SessionFactory, in_transaction
from storefront.discounts._store import DiscountRuleStore
from storefront.discounts._types import DiscountDraft, DiscountRule

logger = logging.getLogger(__name__)


class DiscountAdmin:
    def __init__(self, sessions: SessionFactory, store: DiscountRuleStore) -> None:
        self._sessions = sessions
        self._store = store

    async def create(self, draft: DiscountDraft) -> Result[DiscountRule, ShopError]:
        async def work(session: AsyncSession) -> Result[DiscountRule, ShopError]:
            return await self._store.add(session, draft)

        result = await in_transaction(self._sessions, work, what="create discount")
        match result:
            case Ok(rule):
                logger.info("Created discount %s", rule.code)
            case Error(_):
                pass
        return result

    async def list_rules(self) -> Result[list[DiscountRule], ShopError]:
        async def work(session: AsyncSession) -> Result[list[DiscountRule], ShopError]:
            return Ok(await self._store.list_all(session))

        return await in_transaction(self._sessions, work, what="list discounts")

    async def get(self, code: str) -> Result[DiscountRule, ShopError]:
        async def work(session: AsyncSession) -> Result[DiscountRule, ShopError]:
            return await self._store.find_by_code(session, code)

        return await in_transaction(self._sessions, work, what="get discount")


__all__ = ("DiscountAdmin",)
