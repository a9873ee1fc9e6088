"""
Wire models — pydantic request bodies (``to_domain``) and response envelopes
(``from_domain``).

Every response has the same shape::

    {"ok": true,  "data": {...}, "error": null}
    {"ok": false, "data": null,  "error": {"kind", "reason", "message", "retriable"}}
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any, Self

from kungfu import Error, Ok, Result
from pydantic import BaseModel, Field

from storefront._errors import ShopError
from storefront.api import _ops as ops
from storefront.cart import Cart
from storefront.checkout import CheckoutReceipt, CheckoutRequest, Selection
from storefront.discounts import DiscountDraft, DiscountRule
from storefront.notify import AdminAlert
from storefront.orders import Order, OrderView, StatusUpdate
from storefront.payments import Confirmation, ConfirmPayment
from storefront.pricing import Totals
from storefront.shipping import ShippingAddress

# ═══════════════════════════════════════════════════════════════════════════════
# Shared pieces
# ═══════════════════════════════════════════════════════════════════════════════


class ErrorOut(BaseModel):
    kind: str
    reason: str
    message: str
    retriable: bool

    @classmethod
    def from_domain(cls, e: ShopError) -> Self:
        return cls(kind=e.kind.name, reason=e.reason.value, message=e.message, retriable=e.retriable)


class TotalsOut(BaseModel):
    gross_total: Decimal
    discount_amount: Decimal
    net_total: Decimal
    shipping_fee: Decimal
    payable: Decimal

    @classmethod
    def from_domain(cls, t: Totals) -> Self:
        return cls(
            gross_total=t.gross_total,
            discount_amount=t.discount_amount,
            net_total=t.net_total,
            shipping_fee=t.shipping_fee,
            payable=t.payable,
        )


class AddressIn(BaseModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    email: str = Field(min_length=3)
    line1: str = Field(min_length=1)
    line2: str = ""
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = "India"

    def to_domain(self) -> ShippingAddress:
        return ShippingAddress(
            name=self.name,
            phone=self.phone,
            email=self.email,
            line1=self.line1,
            line2=self.line2,
            city=self.city,
            state=self.state,
            postal_code=self.postal_code,
            country=self.country,
        )


class Envelope(BaseModel):
    ok: bool
    error: ErrorOut | None = None

    @classmethod
    def wrap[T](cls, result: Result[T, ShopError], convert: Callable[[T], Any]) -> Self:
        match result:
            case Ok(value):
                return cls(ok=True, data=convert(value))
            case Error(e):
                return cls(ok=False, error=ErrorOut.from_domain(e))


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


class LineOut(BaseModel):
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class AppliedDiscountOut(BaseModel):
    code: str
    discount_percentage: Decimal
    max_discount_amount: Decimal


class CartOut(BaseModel):
    owner_id: str
    items: list[LineOut]
    discount: AppliedDiscountOut | None
    totals: TotalsOut

    @classmethod
    def from_domain(cls, cart: Cart) -> Self:
        d = cart.applied_discount
        return cls(
            owner_id=cart.owner_id,
            items=[
                LineOut(
                    product_id=i.product_id,
                    product_name=i.product_name,
                    quantity=i.quantity,
                    unit_price=i.unit_price,
                    line_total=i.line_total,
                )
                for i in cart.items
            ],
            discount=(
                AppliedDiscountOut(
                    code=d.code,
                    discount_percentage=d.discount_percentage,
                    max_discount_amount=d.max_discount_amount,
                )
                if d
                else None
            ),
            totals=TotalsOut.from_domain(cart.totals),
        )


class CartResponse(Envelope):
    data: CartOut | None = None

    @classmethod
    def from_domain(cls, result: Result[Cart, ShopError]) -> Self:
        return cls.wrap(result, CartOut.from_domain)


class OwnerIn(BaseModel):
    owner_id: str

    def to_domain(self) -> ops.GetCart:
        return ops.GetCart(self.owner_id)


class ClearCartIn(OwnerIn):
    def to_domain(self) -> ops.ClearCart:  # type: ignore[override]
        return ops.ClearCart(self.owner_id)


class AddItemIn(BaseModel):
    owner_id: str
    product_id: str
    quantity: int = 1

    def to_domain(self) -> ops.AddItem:
        return ops.AddItem(self.owner_id, self.product_id, self.quantity)


class SetItemIn(BaseModel):
    owner_id: str
    product_id: str
    quantity: int

    def to_domain(self) -> ops.SetItem:
        return ops.SetItem(self.owner_id, self.product_id, self.quantity)


class UpdateQuantityIn(SetItemIn):
    def to_domain(self) -> ops.UpdateQuantity:  # type: ignore[override]
        return ops.UpdateQuantity(self.owner_id, self.product_id, self.quantity)


class RemoveItemIn(BaseModel):
    owner_id: str
    product_id: str

    def to_domain(self) -> ops.RemoveItem:
        return ops.RemoveItem(self.owner_id, self.product_id)


class DiscountCodeIn(BaseModel):
    owner_id: str
    code: str = Field(min_length=1)

    def to_domain(self) -> ops.ApplyDiscount:
        return ops.ApplyDiscount(self.owner_id, self.code)


class RemoveDiscountIn(DiscountCodeIn):
    def to_domain(self) -> ops.RemoveDiscount:  # type: ignore[override]
        return ops.RemoveDiscount(self.owner_id, self.code)


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderLineOut(BaseModel):
    product_id: str
    product_name: str
    sku: str
    quantity: int
    unit_price: Decimal
    category: str | None = None


class OrderOut(BaseModel):
    id: str
    owner_id: str
    lines: list[OrderLineOut]
    totals: TotalsOut
    total_amount: Decimal
    currency: str
    payment_method: str
    discount_code: str | None
    payment_status: str
    order_status: str
    gateway_order_id: str
    gateway_payment_id: str | None
    amount_paid: Decimal | None
    shipment_id: str | None
    label_url: str | None
    created_at: datetime

    @classmethod
    def from_domain(cls, order: Order, categories: dict[str, str] | None = None) -> Self:
        categories = categories or {}
        return cls(
            id=order.id,
            owner_id=order.owner_id,
            lines=[
                OrderLineOut(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    sku=line.sku,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    category=categories.get(line.product_id),
                )
                for line in order.lines
            ],
            totals=TotalsOut.from_domain(order.totals),
            total_amount=order.total_amount,
            currency=order.currency,
            payment_method=order.payment_method,
            discount_code=order.discount.code if order.discount else None,
            payment_status=order.payment_status.value,
            order_status=order.order_status.value,
            gateway_order_id=order.gateway_order_id,
            gateway_payment_id=order.gateway_payment_id,
            amount_paid=order.amount_paid,
            shipment_id=order.shipment_id,
            label_url=order.label_url,
            created_at=order.created_at,
        )

    @classmethod
    def from_view(cls, view: OrderView) -> Self:
        return cls.from_domain(view.order, view.categories)


class OrderResponse(Envelope):
    data: OrderOut | None = None

    @classmethod
    def from_domain(cls, result: Result[Order, ShopError]) -> Self:
        return cls.wrap(result, OrderOut.from_domain)


class OrderListResponse(Envelope):
    data: list[OrderOut] | None = None

    @classmethod
    def from_domain(cls, result: Result[list[OrderView], ShopError]) -> Self:
        return cls.wrap(result, lambda views: [OrderOut.from_view(v) for v in views])


class ListOrdersIn(BaseModel):
    owner_id: str | None = None

    def to_domain(self) -> ops.ListOrders:
        return ops.ListOrders(self.owner_id)


class OrderIdIn(BaseModel):
    order_id: str

    def to_domain(self) -> ops.GetOrder:
        return ops.GetOrder(self.order_id)


class DeleteOrderIn(OrderIdIn):
    def to_domain(self) -> ops.DeleteOrder:  # type: ignore[override]
        return ops.DeleteOrder(self.order_id)


class StatusIn(BaseModel):
    order_id: str
    status: str

    def to_domain(self) -> ops.UpdateOrderStatus:
        return ops.UpdateOrderStatus(self.order_id, self.status)


class StatusOut(BaseModel):
    order: OrderOut
    tracking_status: str | None

    @classmethod
    def from_domain(cls, update: StatusUpdate) -> Self:
        return cls(
            order=OrderOut.from_domain(update.order),
            tracking_status=update.tracking.status if update.tracking else None,
        )


class StatusResponse(Envelope):
    data: StatusOut | None = None

    @classmethod
    def from_domain(cls, result: Result[StatusUpdate, ShopError]) -> Self:
        return cls.wrap(result, StatusOut.from_domain)


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout & payment
# ═══════════════════════════════════════════════════════════════════════════════


class SelectionIn(BaseModel):
    product_id: str
    quantity: int


class CheckoutIn(BaseModel):
    owner_id: str
    items: list[SelectionIn]
    payment_method: str
    shipping_address: AddressIn

    def to_domain(self) -> ops.Checkout:
        return ops.Checkout(
            CheckoutRequest(
                owner_id=self.owner_id,
                selections=tuple(Selection(s.product_id, s.quantity) for s in self.items),
                payment_method=self.payment_method,
                shipping_address=self.shipping_address.to_domain(),
            )
        )


class CheckoutOut(BaseModel):
    order: OrderOut
    gateway_order_id: str
    amount_minor: int
    currency: str
    gateway_key_id: str

    @classmethod
    def from_domain(cls, receipt: CheckoutReceipt) -> Self:
        return cls(
            order=OrderOut.from_domain(receipt.order),
            gateway_order_id=receipt.gateway_order_id,
            amount_minor=receipt.amount_minor,
            currency=receipt.order.currency,
            gateway_key_id=receipt.gateway_key_id,
        )


class CheckoutResponse(Envelope):
    data: CheckoutOut | None = None

    @classmethod
    def from_domain(cls, result: Result[CheckoutReceipt, ShopError]) -> Self:
        return cls.wrap(result, CheckoutOut.from_domain)


class ConfirmIn(BaseModel):
    gateway_order_id: str
    gateway_payment_id: str
    signature: str

    def to_domain(self) -> ops.Confirm:
        return ops.Confirm(
            ConfirmPayment(self.gateway_order_id, self.gateway_payment_id, self.signature)
        )


class RetryShipmentIn(OrderIdIn):
    def to_domain(self) -> ops.RetryShipment:  # type: ignore[override]
        return ops.RetryShipment(self.order_id)


class ConfirmationOut(BaseModel):
    order: OrderOut
    shipped: bool
    message: str

    @classmethod
    def from_domain(cls, c: Confirmation) -> Self:
        return cls(order=OrderOut.from_domain(c.order), shipped=c.shipped, message=c.message)


class ConfirmationResponse(Envelope):
    data: ConfirmationOut | None = None

    @classmethod
    def from_domain(cls, result: Result[Confirmation, ShopError]) -> Self:
        return cls.wrap(result, ConfirmationOut.from_domain)


# ═══════════════════════════════════════════════════════════════════════════════
# Discounts & alerts
# ═══════════════════════════════════════════════════════════════════════════════


class DiscountIn(BaseModel):
    code: str = Field(min_length=1)
    discount_percentage: Decimal
    max_discount_amount: Decimal
    min_cart_value: Decimal = Decimal("0")
    valid_from: datetime
    valid_until: datetime
    usage_limit: int
    is_active: bool = True

    def to_domain(self) -> ops.CreateDiscount:
        return ops.CreateDiscount(
            DiscountDraft(
                code=self.code,
                discount_percentage=self.discount_percentage,
                max_discount_amount=self.max_discount_amount,
                valid_from=self.valid_from,
                valid_until=self.valid_until,
                usage_limit=self.usage_limit,
                min_cart_value=self.min_cart_value,
                is_active=self.is_active,
            )
        )


class ListDiscountsIn(BaseModel):
    def to_domain(self) -> ops.ListDiscounts:
        return ops.ListDiscounts()


class DiscountOut(BaseModel):
    id: str
    code: str
    discount_percentage: Decimal
    max_discount_amount: Decimal
    min_cart_value: Decimal
    valid_from: datetime
    valid_until: datetime
    usage_limit: int
    times_used: int
    is_active: bool

    @classmethod
    def from_domain(cls, rule: DiscountRule) -> Self:
        return cls(
            id=rule.id,
            code=rule.code,
            discount_percentage=rule.discount_percentage,
            max_discount_amount=rule.max_discount_amount,
            min_cart_value=rule.min_cart_value,
            valid_from=rule.valid_from,
            valid_until=rule.valid_until,
            usage_limit=rule.usage_limit,
            times_used=rule.times_used,
            is_active=rule.is_active,
        )


class DiscountResponse(Envelope):
    data: DiscountOut | None = None

    @classmethod
    def from_domain(cls, result: Result[DiscountRule, ShopError]) -> Self:
        return cls.wrap(result, DiscountOut.from_domain)


class DiscountListResponse(Envelope):
    data: list[DiscountOut] | None = None

    @classmethod
    def from_domain(cls, result: Result[list[DiscountRule], ShopError]) -> Self:
        return cls.wrap(result, lambda rules: [DiscountOut.from_domain(r) for r in rules])


class ListAlertsIn(BaseModel):
    order_id: str | None = None

    def to_domain(self) -> ops.ListAlerts:
        return ops.ListAlerts(self.order_id)


class AlertOut(BaseModel):
    id: int
    order_id: str
    stage: str
    message: str
    created_at: datetime


class AlertListResponse(Envelope):
    data: list[AlertOut] | None = None

    @classmethod
    def from_domain(cls, result: Result[list[AdminAlert], ShopError]) -> Self:
        return cls.wrap(
            result,
            lambda alerts: [
                AlertOut(
                    id=a.id,
                    order_id=a.order_id,
                    stage=a.stage,
                    message=a.message,
                    created_at=a.created_at,
                )
                for a in alerts
            ],
        )
