"""
Order types.

Lines and the discount snapshot are frozen at checkout and never follow
later product or rule edits.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from storefront.discounts import AppliedDiscount
from storefront.pricing import Totals
from storefront.shipping import ShipmentItem, ShipmentRequest, ShippingAddress


class PaymentStatus(Enum):
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"


class OrderStatus(Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


@dataclass(frozen=True, slots=True)
class OrderLine:
    product_id: str
    quantity: int
    unit_price: Decimal
    product_name: str
    sku: str

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True, slots=True)
class Order:
    id: str
    owner_id: str
    receipt: str
    lines: tuple[OrderLine, ...]
    totals: Totals
    currency: str
    payment_method: str
    discount: AppliedDiscount | None
    payment_status: PaymentStatus
    order_status: OrderStatus
    gateway_order_id: str
    shipping_address: ShippingAddress
    created_at: datetime
    updated_at: datetime
    gateway_payment_id: str | None = None
    amount_paid: Decimal | None = None
    shipment_id: str | None = None
    shipper_order_id: str | None = None
    label_url: str | None = None

    @property
    def total_amount(self) -> Decimal:
        return self.totals.payable

    def shipment_request(self) -> ShipmentRequest:
        return ShipmentRequest(
            order_id=self.id,
            order_date=self.created_at,
            items=tuple(
                ShipmentItem(
                    name=line.product_name,
                    sku=line.sku,
                    units=line.quantity,
                    selling_price=line.unit_price,
                )
                for line in self.lines
            ),
            sub_total=self.total_amount,
            address=self.shipping_address,
        )

    @property
    def awaiting_shipment(self) -> bool:
        """Paid and Processing, with no shipment or a shipment still missing its label."""
        return (
            self.payment_status is PaymentStatus.PAID
            and self.order_status is OrderStatus.PROCESSING
            and self.label_url is None
        )


@dataclass(frozen=True, slots=True)
class OrderView:
    """Read-only projection for listings: the order plus current catalog data."""

    order: Order
    categories: dict[str, str]


__all__ = (
    "PaymentStatus",
    "OrderStatus",
    "ShippingAddress",
    "OrderLine",
    "Order",
    "OrderView",
)
