"""Catalog types."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession


@dataclass(frozen=True, slots=True)
class Product:
    id: str
    name: str
    sku: str
    price: Decimal
    stock: int
    category: str = ""
    image_url: str | None = None


class Catalog(Protocol):
    """Authoritative price and stock, read-only from the core."""

    async def find_by_id(self, session: AsyncSession, product_id: str) -> Product | None: ...


__all__ = ("Product", "Catalog")
