"""
Persistence — SQLAlchemy async models and engine setup.

    from storefront import db

    sessions, engine = await db.create_database("sqlite+aiosqlite:///shop.db")
    async with sessions() as session, session.begin():
        ...
"""

from storefront.db._types import UtcDateTime
from storefront.db._tables import (
    Base,
    ProductTable,
    DiscountRuleTable,
    CartTable,
    CartItemTable,
    OrderTable,
    OrderLineTable,
    AdminAlertTable,
)
from storefront.db._engine import SessionFactory, create_engine, create_database
from storefront.db._unit import Work, CorruptRecord, in_transaction

__all__ = (
    "UtcDateTime",
    "Base",
    "ProductTable",
    "DiscountRuleTable",
    "CartTable",
    "CartItemTable",
    "OrderTable",
    "OrderLineTable",
    "AdminAlertTable",
    "SessionFactory",
    "create_engine",
    "create_database",
    "Work",
    "CorruptRecord",
    "in_transaction",
)
