"""
SQLAlchemy-backed catalog.

Reads share the caller's session so prices are read inside the same
transaction as the cart or order write that depends on them.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.catalog._types import Product
from storefront.db import ProductTable
from storefront.pricing import from_minor_units, to_minor_units


def _to_domain(row: ProductTable) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        sku=row.sku,
        price=from_minor_units(row.price_minor),
        stock=row.stock,
        category=row.category,
        image_url=row.image_url,
    )


class SQLAlchemyCatalog:
    async def find_by_id(self, session: AsyncSession, product_id: str) -> Product | None:
        row = await session.get(ProductTable, product_id)
        return _to_domain(row) if row else None

    async def find_many(
        self, session: AsyncSession, product_ids: Iterable[str]
    ) -> dict[str, Product]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        rows = (
            await session.execute(select(ProductTable).where(ProductTable.id.in_(ids)))
        ).scalars()
        return {row.id: _to_domain(row) for row in rows}

    async def add(self, session: AsyncSession, product: Product) -> Product:
        session.add(
            ProductTable(
                id=product.id,
                name=product.name,
                sku=product.sku,
                category=product.category,
                price_minor=to_minor_units(product.price),
                stock=product.stock,
                image_url=product.image_url,
            )
        )
        await session.flush()
        return product

    async def set_price(self, session: AsyncSession, product_id: str, price: Decimal) -> bool:
        row = await session.get(ProductTable, product_id)
        if row is None:
            return False
        row.price_minor = to_minor_units(price)
        await session.flush()
        return True

    async def remove(self, session: AsyncSession, product_id: str) -> bool:
        row = await session.get(ProductTable, product_id)
        if row is None:
            return False
        await session.delete(row)
        await session.flush()
        return True


__all__ = ("SQLAlchemyCatalog",)
