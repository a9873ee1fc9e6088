"""
Operations exposed by the HTTP surface.

One frozen dataclass per use case; handlers live in ``_handlers``.
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront import ops as O
from storefront._errors import ShopError
from storefront.cart import Cart
from storefront.checkout import CheckoutReceipt, CheckoutRequest
from storefront.discounts import DiscountDraft, DiscountRule
from storefront.notify import AdminAlert
from storefront.orders import Order, OrderView, StatusUpdate
from storefront.payments import Confirmation, ConfirmPayment

# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class GetCart(O.Returning[Cart, ShopError]):
    owner_id: str


@dataclass(frozen=True, slots=True)
class AddItem(O.Returning[Cart, ShopError]):
    owner_id: str
    product_id: str
    quantity: int


@dataclass(frozen=True, slots=True)
class SetItem(O.Returning[Cart, ShopError]):
    owner_id: str
    product_id: str
    quantity: int


@dataclass(frozen=True, slots=True)
class UpdateQuantity(O.Returning[Cart, ShopError]):
    owner_id: str
    product_id: str
    quantity: int


@dataclass(frozen=True, slots=True)
class RemoveItem(O.Returning[Cart, ShopError]):
    owner_id: str
    product_id: str


@dataclass(frozen=True, slots=True)
class ClearCart(O.Returning[Cart, ShopError]):
    owner_id: str


@dataclass(frozen=True, slots=True)
class ApplyDiscount(O.Returning[Cart, ShopError]):
    owner_id: str
    code: str


@dataclass(frozen=True, slots=True)
class RemoveDiscount(O.Returning[Cart, ShopError]):
    owner_id: str
    code: str


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout & payment
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Checkout(O.Returning[CheckoutReceipt, ShopError]):
    request: CheckoutRequest


@dataclass(frozen=True, slots=True)
class Confirm(O.Returning[Confirmation, ShopError]):
    command: ConfirmPayment


@dataclass(frozen=True, slots=True)
class RetryShipment(O.Returning[Confirmation, ShopError]):
    order_id: str


# ═══════════════════════════════════════════════════════════════════════════════
# Administration
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ListOrders(O.Returning[list[OrderView], ShopError]):
    owner_id: str | None = None


@dataclass(frozen=True, slots=True)
class GetOrder(O.Returning[Order, ShopError]):
    order_id: str


@dataclass(frozen=True, slots=True)
class UpdateOrderStatus(O.Returning[StatusUpdate, ShopError]):
    order_id: str
    status: str


@dataclass(frozen=True, slots=True)
class DeleteOrder(O.Returning[Order, ShopError]):
    order_id: str


@dataclass(frozen=True, slots=True)
class CreateDiscount(O.Returning[DiscountRule, ShopError]):
    draft: DiscountDraft


@dataclass(frozen=True, slots=True)
class ListDiscounts(O.Returning[list[DiscountRule], ShopError]):
    pass


@dataclass(frozen=True, slots=True)
class ListAlerts(O.Returning[list[AdminAlert], ShopError]):
    order_id: str | None = None


__all__ = (
    "GetCart",
    "AddItem",
    "SetItem",
    "UpdateQuantity",
    "RemoveItem",
    "ClearCart",
    "ApplyDiscount",
    "RemoveDiscount",
    "Checkout",
    "Confirm",
    "RetryShipment",
    "ListOrders",
    "GetOrder",
    "UpdateOrderStatus",
    "DeleteOrder",
    "CreateDiscount",
    "ListDiscounts",
    "ListAlerts",
)
