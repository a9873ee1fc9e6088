"""
Payments — gateway boundary, signatures and payment confirmation.

    from storefront.payments import ConfirmPayment

    match await handler.confirm(ConfirmPayment(gateway_order_id, payment_id, signature)):
        case Ok(done): done.shipped
        case Error(e): e.reason   # INVALID_SIGNATURE, INVALID_ORDER, USAGE_LIMIT_REACHED, ...
"""

from storefront.payments._gateway import (
    GatewayError,
    PaymentIntent,
    PaymentInfo,
    PaymentGateway,
    gateway_error,
    HttpPaymentGateway,
)
from storefront.payments._signature import sign_payment, verify_signature
from storefront.payments._confirm import ConfirmPayment, Confirmation, PaymentConfirmationHandler

__all__ = (
    "GatewayError",
    "PaymentIntent",
    "PaymentInfo",
    "PaymentGateway",
    "gateway_error",
    "HttpPaymentGateway",
    "sign_payment",
    "verify_signature",
    "ConfirmPayment",
    "Confirmation",
    "PaymentConfirmationHandler",
)
