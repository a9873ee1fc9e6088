"""
Selection checks and pricing against the cart and the catalog.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace

from kungfu import Error, Ok, Result

from storefront._errors import Errors, Reason, ShopError
from storefront.cart import Cart
from storefront.catalog import Product
from storefront.checkout._types import Quote, Selection
from storefront.orders import OrderLine
from storefront.pricing import ShippingPolicy, compute_totals


def check_selection(selections: tuple[Selection, ...]) -> Result[tuple[Selection, ...], ShopError]:
    if not selections:
        return Error(Errors.validation(Reason.INVALID_SELECTION, "Select at least one item"))
    seen: set[str] = set()
    for sel in selections:
        if sel.quantity < 1:
            return Error(
                Errors.validation(
                    Reason.INVALID_QUANTITY, f"Quantity for {sel.product_id} must be at least 1"
                )
            )
        if sel.product_id in seen:
            return Error(
                Errors.validation(
                    Reason.INVALID_SELECTION, f"Product {sel.product_id} selected twice"
                )
            )
        seen.add(sel.product_id)
    return Ok(selections)


def quote(
    cart: Cart | None,
    selections: tuple[Selection, ...],
    products: Mapping[str, Product],
    policy: ShippingPolicy,
) -> Result[Quote, ShopError]:
    """
    Check every selected line against the cart and the catalog, then price it
    with the cart's applied discount.

    The cart's recorded unit price must equal the catalog price; otherwise
    the caller is told to refresh the cart.
    """
    if cart is None or cart.is_empty:
        return Error(Errors.validation(Reason.EMPTY_CART, "Cart is empty"))

    lines: list[OrderLine] = []
    for sel in selections:
        item = cart.find(sel.product_id)
        if item is None:
            return Error(
                Errors.validation(Reason.ITEM_NOT_IN_CART, f"Product {sel.product_id} not found in cart")
            )
        if sel.quantity > item.quantity:
            return Error(
                Errors.validation(
                    Reason.QUANTITY_EXCEEDS_CART,
                    f"Cart holds {item.quantity} of {item.product_name}, {sel.quantity} requested",
                )
            )
        product = products.get(sel.product_id)
        if product is None:
            return Error(Errors.not_found("Product", sel.product_id))
        if item.unit_price != product.price:
            return Error(
                Errors.conflict(
                    Reason.PRICE_CHANGED,
                    f"Price of {product.name} changed from {item.unit_price} to {product.price}, "
                    "refresh your cart",
                )
            )
        lines.append(
            OrderLine(
                product_id=product.id,
                quantity=sel.quantity,
                unit_price=product.price,
                product_name=product.name,
                sku=product.sku,
            )
        )

    return Ok(
        Quote(
            lines=tuple(lines),
            totals=compute_totals(lines, cart.applied_discount, policy),
            discount=cart.applied_discount,
        )
    )


def shrink(cart: Cart, selections: tuple[Selection, ...]) -> Cart:
    """Remove the checked-out quantities; lines that reach zero disappear."""
    taken = {sel.product_id: sel.quantity for sel in selections}
    items = tuple(
        replace(item, quantity=item.quantity - taken.get(item.product_id, 0))
        for item in cart.items
        if item.quantity > taken.get(item.product_id, 0)
    )
    return replace(cart, items=items)


__all__ = ("check_selection", "quote", "shrink")
