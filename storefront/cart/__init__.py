"""
Cart — line items plus at most one applied discount, always repriced.

    from storefront.cart import CartService

    carts = CartService(sessions, catalog, discount_store, settings.shipping_policy)
    match await carts.add_item("u_1", "p_1", 2):
        case Ok(cart): cart.totals.net_total
        case Error(e): e.reason
"""

from storefront.cart._types import LineItem, Cart
from storefront.cart._repo import CartRepository
from storefront.cart._service import CartService

__all__ = ("LineItem", "Cart", "CartRepository", "CartService")
