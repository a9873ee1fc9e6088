"""
Orders — frozen order records, persistence and administration.

    from storefront.orders import OrderAdmin

    match await admin.update_status(order_id, "Shipped"):
        case Ok(update): update.tracking
"""

from storefront.orders._types import (
    PaymentStatus,
    OrderStatus,
    ShippingAddress,
    OrderLine,
    Order,
    OrderView,
)
from storefront.orders._repo import OrderRepository
from storefront.orders._admin import StatusUpdate, parse_status, OrderAdmin

__all__ = (
    "PaymentStatus",
    "OrderStatus",
    "ShippingAddress",
    "OrderLine",
    "Order",
    "OrderView",
    "OrderRepository",
    "StatusUpdate",
    "parse_status",
    "OrderAdmin",
)
