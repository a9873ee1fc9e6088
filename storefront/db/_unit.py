"""
Unit of work — one transaction per business operation.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kungfu import Error, Ok, Result

from storefront._errors import Errors, ShopError
from storefront.db._engine import SessionFactory

logger = logging.getLogger(__name__)

type Work[T] = Callable[[AsyncSession], Awaitable[Result[T, ShopError]]]


class CorruptRecord(Exception):
    """A stored row breaks a rule the schema cannot express."""


async def in_transaction[T](
    sessions: SessionFactory,
    work: Work[T],
    *,
    what: str,
) -> Result[T, ShopError]:
    """
    Run ``work`` in a single transaction.

    Commits when it returns ``Ok``, rolls back when it returns ``Error`` or
    raises. Storage exceptions and ``CorruptRecord`` become an INTERNAL
    ``ShopError``.

    Example:
        async def work(session: AsyncSession) -> Result[Cart, ShopError]:
            ...

        result = await in_transaction(sessions, work, what="add item")
    """
    async with sessions() as session:
        try:
            result = await work(session)
            match result:
                case Ok(_):
                    await session.commit()
                case Error(_):
                    await session.rollback()
            return result
        except (SQLAlchemyError, CorruptRecord) as e:
            await session.rollback()
            logger.exception("Storage failure during %s", what)
            return Error(Errors.internal(f"{what} failed: {e}"))


__all__ = ("Work", "CorruptRecord", "in_transaction")
