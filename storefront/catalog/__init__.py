"""
Catalog — products with authoritative price and stock.

    from storefront.catalog import SQLAlchemyCatalog

    product = await catalog.find_by_id(session, "p_1")
"""

from storefront.catalog._types import Product, Catalog
from storefront.catalog._sqlalchemy import SQLAlchemyCatalog

__all__ = ("Product", "Catalog", "SQLAlchemyCatalog")
