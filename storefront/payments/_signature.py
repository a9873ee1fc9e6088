"""
Payment signatures: HMAC-SHA256 over ``"{gateway_order_id}|{gateway_payment_id}"``.
"""

from __future__ import annotations

import hashlib
import hmac


def sign_payment(secret: str, gateway_order_id: str, gateway_payment_id: str) -> str:
    message = f"{gateway_order_id}|{gateway_payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_signature(
    secret: str, gateway_order_id: str, gateway_payment_id: str, signature: str
) -> bool:
    """Constant-time comparison against the expected signature."""
    if not secret:
        return False
    expected = sign_payment(secret, gateway_order_id, gateway_payment_id)
    return hmac.compare_digest(expected, signature)


__all__ = ("sign_payment", "verify_signature")
