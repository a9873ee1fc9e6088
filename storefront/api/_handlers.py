"""
Op handlers — thin adapters from ops to services.

Services are injected by type; see ``_container.inject_services``.
"""

from __future__ import annotations

from kungfu import Ok, Result

from storefront import ops as O
from storefront._errors import ShopError
from storefront.api._ops import (
    AddItem,
    ApplyDiscount,
    Checkout,
    ClearCart,
    Confirm,
    CreateDiscount,
    DeleteOrder,
    GetCart,
    GetOrder,
    ListAlerts,
    ListDiscounts,
    ListOrders,
    RemoveDiscount,
    RemoveItem,
    RetryShipment,
    SetItem,
    UpdateOrderStatus,
    UpdateQuantity,
)
from storefront.cart import Cart, CartService
from storefront.checkout import CheckoutOrchestrator, CheckoutReceipt
from storefront.discounts import DiscountAdmin, DiscountRule
from storefront.notify import AdminAlert, AdminAlerts
from storefront.orders import Order, OrderAdmin, OrderView, StatusUpdate
from storefront.payments import Confirmation, PaymentConfirmationHandler

# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


async def get_cart(req: GetCart, carts: CartService) -> Result[Cart, ShopError]:
    return await carts.get_cart(req.owner_id)


async def add_item(req: AddItem, carts: CartService) -> Result[Cart, ShopError]:
    return await carts.add_item(req.owner_id, req.product_id, req.quantity)


async def set_item(req: SetItem, carts: CartService) -> Result[Cart, ShopError]:
    return await carts.set_item(req.owner_id, req.product_id, req.quantity)


async def update_quantity(req: UpdateQuantity, carts: CartService) -> Result[Cart, ShopError]:
    return await carts.update_quantity(req.owner_id, req.product_id, req.quantity)


async def remove_item(req: RemoveItem, carts: CartService) -> Result[Cart, ShopError]:
    return await carts.remove_item(req.owner_id, req.product_id)


async def clear_cart(req: ClearCart, carts: CartService) -> Result[Cart, ShopError]:
    return await carts.clear(req.owner_id)


async def apply_discount(req: ApplyDiscount, carts: CartService) -> Result[Cart, ShopError]:
    return await carts.apply_discount(req.owner_id, req.code)


async def remove_discount(req: RemoveDiscount, carts: CartService) -> Result[Cart, ShopError]:
    return await carts.remove_discount(req.owner_id, req.code)


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout & payment
# ═══════════════════════════════════════════════════════════════════════════════


async def checkout(
    req: Checkout, orchestrator: CheckoutOrchestrator
) -> Result[CheckoutReceipt, ShopError]:
    return await orchestrator.checkout(req.request)


async def confirm(
    req: Confirm, payments: PaymentConfirmationHandler
) -> Result[Confirmation, ShopError]:
    return await payments.confirm(req.command)


async def retry_shipment(
    req: RetryShipment, payments: PaymentConfirmationHandler
) -> Result[Confirmation, ShopError]:
    return await payments.retry_shipment(req.order_id)


# ═══════════════════════════════════════════════════════════════════════════════
# Administration
# ═══════════════════════════════════════════════════════════════════════════════


async def list_orders(req: ListOrders, admin: OrderAdmin) -> Result[list[OrderView], ShopError]:
    return await admin.list_orders(req.owner_id)


async def get_order(req: GetOrder, admin: OrderAdmin) -> Result[Order, ShopError]:
    return await admin.get_order(req.order_id)


async def update_order_status(
    req: UpdateOrderStatus, admin: OrderAdmin
) -> Result[StatusUpdate, ShopError]:
    return await admin.update_status(req.order_id, req.status)


async def delete_order(req: DeleteOrder, admin: OrderAdmin) -> Result[Order, ShopError]:
    return await admin.delete_order(req.order_id)


async def create_discount(
    req: CreateDiscount, discounts: DiscountAdmin
) -> Result[DiscountRule, ShopError]:
    return await discounts.create(req.draft)


async def list_discounts(
    req: ListDiscounts, discounts: DiscountAdmin
) -> Result[list[DiscountRule], ShopError]:
    return await discounts.list_rules()


async def list_alerts(req: ListAlerts, alerts: AdminAlerts) -> Result[list[AdminAlert], ShopError]:
    return Ok(await alerts.list_alerts(req.order_id))


def storefront_ops() -> O.OpsBuilder:
    return (
        O.ops()
        .on(GetCart, get_cart)
        .on(AddItem, add_item)
        .on(SetItem, set_item)
        .on(UpdateQuantity, update_quantity)
        .on(RemoveItem, remove_item)
        .on(ClearCart, clear_cart)
        .on(ApplyDiscount, apply_discount)
        .on(RemoveDiscount, remove_discount)
        .on(Checkout, checkout)
        .on(Confirm, confirm)
        .on(RetryShipment, retry_shipment)
        .on(ListOrders, list_orders)
        .on(GetOrder, get_order)
        .on(UpdateOrderStatus, update_order_status)
        .on(DeleteOrder, delete_order)
        .on(CreateDiscount, create_discount)
        .on(ListDiscounts, list_discounts)
        .on(ListAlerts, list_alerts)
    )


__all__ = ("storefront_ops",)
