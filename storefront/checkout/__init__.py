"""
Checkout — turn part of a cart into a Pending order with a payment intent.

    from storefront.checkout import CheckoutOrchestrator, CheckoutRequest, Selection

    request = CheckoutRequest(
        owner_id="u_1",
        selections=(Selection("p_1", 2),),
        payment_method="upi",
        shipping_address=address,
    )
    match await orchestrator.checkout(request):
        case Ok(receipt): receipt.gateway_order_id
        case Error(e): e.reason
"""

from storefront.checkout._types import Selection, CheckoutRequest, Quote, CheckoutReceipt
from storefront.checkout._quote import check_selection, quote, shrink
from storefront.checkout._orchestrator import CheckoutOrchestrator

__all__ = (
    "Selection",
    "CheckoutRequest",
    "Quote",
    "CheckoutReceipt",
    "check_selection",
    "quote",
    "shrink",
    "CheckoutOrchestrator",
)
