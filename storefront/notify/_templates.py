"""Message templates for order lifecycle mails."""

from __future__ import annotations

from html import escape

from storefront.notify._types import Notification
from storefront.orders import Order


def _lines_text(order: Order) -> str:
    return "\n".join(
        f"  {line.product_name} x{line.quantity} @ {line.unit_price}" for line in order.lines
    )


def _lines_html(order: Order) -> str:
    rows = "".join(
        f"<li>{escape(line.product_name)} &times; {line.quantity} @ {line.unit_price}</li>"
        for line in order.lines
    )
    return f"<ul>{rows}</ul>"


def order_confirmation(order: Order) -> Notification:
    address = order.shipping_address
    total = f"{order.total_amount} {order.currency}"
    return Notification(
        to=address.email,
        subject=f"Order {order.id} confirmed",
        text=(
            f"Hi {address.name},\n\nWe received your payment of {total} "
            f"for order {order.id}.\n\n{_lines_text(order)}\n"
        ),
        html=(
            f"<p>Hi {escape(address.name)},</p>"
            f"<p>We received your payment of <b>{total}</b> for order {order.id}.</p>"
            f"{_lines_html(order)}"
        ),
    )


def order_shipped(order: Order) -> Notification:
    address = order.shipping_address
    return Notification(
        to=address.email,
        subject=f"Order {order.id} shipped",
        text=(
            f"Hi {address.name},\n\nYour order {order.id} is on its way. "
            f"Shipment: {order.shipment_id}.\n"
        ),
        html=(
            f"<p>Hi {escape(address.name)},</p>"
            f"<p>Your order {order.id} is on its way. Shipment: {order.shipment_id}.</p>"
        ),
    )


def admin_alert(to: str, order: Order, stage: str, error: str) -> Notification:
    return Notification(
        to=to,
        subject=f"[action needed] {stage} failed for order {order.id}",
        text=(
            f"Order: {order.id}\n"
            f"Payment: {order.gateway_payment_id}\n"
            f"Payment status: {order.payment_status.value}\n"
            f"Order status: {order.order_status.value}\n"
            f"Stage: {stage}\n"
            f"Error: {error}\n"
        ),
        html=(
            f"<p>Order <b>{order.id}</b> needs attention.</p>"
            f"<p>Payment {order.gateway_payment_id}: {order.payment_status.value}, "
            f"order {order.order_status.value}.</p>"
            f"<p>{escape(stage)}: {escape(error)}</p>"
        ),
    )


__all__ = ("order_confirmation", "order_shipped", "admin_alert")
