"""Checkout types."""

from __future__ import annotations

from dataclasses import dataclass

from storefront.discounts import AppliedDiscount
from storefront.orders import Order, OrderLine, ShippingAddress
from storefront.pricing import Totals


@dataclass(frozen=True, slots=True)
class Selection:
    product_id: str
    quantity: int


@dataclass(frozen=True, slots=True)
class CheckoutRequest:
    owner_id: str
    selections: tuple[Selection, ...]
    payment_method: str
    shipping_address: ShippingAddress


@dataclass(frozen=True, slots=True)
class Quote:
    """Validated, priced selection: what the order will contain."""

    lines: tuple[OrderLine, ...]
    totals: Totals
    discount: AppliedDiscount | None


@dataclass(frozen=True, slots=True)
class CheckoutReceipt:
    """What the client needs to open the gateway's payment sheet."""

    order: Order
    amount_minor: int
    gateway_key_id: str

    @property
    def gateway_order_id(self) -> str:
        return self.order.gateway_order_id


__all__ = ("Selection", "CheckoutRequest", "Quote", "CheckoutReceipt")
