"""
Error taxonomy.

Every operation returns ``Result[T, ShopError]``. ``kind`` drives propagation
(and the HTTP status), ``reason`` is the machine-readable cause reported to
the caller:

    match await carts.apply_discount(owner, "SAVE20"):
        case Ok(cart): ...
        case Error(e) if e.reason is Reason.EXPIRED: ...
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


# ═══════════════════════════════════════════════════════════════════════════════
# Kinds
# ═══════════════════════════════════════════════════════════════════════════════


class ErrorKind(Enum):
    """
    Broad category of a failure.

    VALIDATION, NOT_FOUND and CONFLICT are expected and never retried
    automatically. EXTERNAL_SERVICE covers gateway/dispatcher failures.
    """

    VALIDATION = auto()
    NOT_FOUND = auto()
    CONFLICT = auto()
    EXTERNAL_SERVICE = auto()
    INTERNAL = auto()


class Reason(Enum):
    # cart
    INSUFFICIENT_STOCK = "insufficient_stock"
    INVALID_QUANTITY = "invalid_quantity"
    # discount validation, in check order
    INACTIVE = "inactive"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    USAGE_LIMIT_REACHED = "usage_limit_reached"
    BELOW_MIN_CART_VALUE = "below_min_cart_value"
    ALREADY_APPLIED = "already_applied"
    DISCOUNT_ALREADY_ACTIVE = "discount_already_active"
    INVALID_DISCOUNT_RULE = "invalid_discount_rule"
    DUPLICATE_CODE = "duplicate_code"
    # checkout
    INVALID_PAYMENT_METHOD = "invalid_payment_method"
    INVALID_SELECTION = "invalid_selection"
    EMPTY_CART = "empty_cart"
    ITEM_NOT_IN_CART = "item_not_in_cart"
    QUANTITY_EXCEEDS_CART = "quantity_exceeds_cart"
    PRICE_CHANGED = "price_changed"
    CART_CHANGED = "cart_changed"
    # payment
    INVALID_SIGNATURE = "invalid_signature"
    PAYMENT_NOT_CAPTURED = "payment_not_captured"
    INVALID_ORDER = "invalid_order"
    # orders
    INVALID_STATUS = "invalid_status"
    ORDER_DELIVERED = "order_delivered"
    SHIPMENT_NOT_PENDING = "shipment_not_pending"
    # generic
    NOT_FOUND = "not_found"
    GATEWAY_ERROR = "gateway_error"
    GATEWAY_TIMEOUT = "gateway_timeout"
    SHIPMENT_FAILED = "shipment_failed"
    STORAGE_ERROR = "storage_error"


# ═══════════════════════════════════════════════════════════════════════════════
# ShopError
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ShopError:
    """Structured failure: kind + reason + human-readable message."""

    kind: ErrorKind
    reason: Reason
    message: str
    retriable: bool = False

    def __str__(self) -> str:
        return f"{self.kind.name}/{self.reason.value}: {self.message}"


class Errors:
    """Factories for the common failures."""

    @staticmethod
    def validation(reason: Reason, message: str) -> ShopError:
        return ShopError(ErrorKind.VALIDATION, reason, message)

    @staticmethod
    def not_found(entity: str, key: object) -> ShopError:
        return ShopError(ErrorKind.NOT_FOUND, Reason.NOT_FOUND, f"{entity} {key} not found")

    @staticmethod
    def conflict(reason: Reason, message: str) -> ShopError:
        return ShopError(ErrorKind.CONFLICT, reason, message)

    @staticmethod
    def external(reason: Reason, message: str, retriable: bool = True) -> ShopError:
        return ShopError(ErrorKind.EXTERNAL_SERVICE, reason, message, retriable)

    @staticmethod
    def timeout(what: str) -> ShopError:
        return ShopError(
            ErrorKind.EXTERNAL_SERVICE,
            Reason.GATEWAY_TIMEOUT,
            f"{what} timed out, retry later",
            retriable=True,
        )

    @staticmethod
    def internal(message: str) -> ShopError:
        return ShopError(ErrorKind.INTERNAL, Reason.STORAGE_ERROR, message)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("ErrorKind", "Reason", "ShopError", "Errors")
