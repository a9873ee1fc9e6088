"""
storefront — cart, discounts, checkout and payment confirmation.

    from storefront import pricing as P   # Totals and rounding
    from storefront import saga as S      # Compensated multi-step operations
    from storefront import ops as O       # Typed ops with DI
"""

from storefront import pricing
from storefront import saga
from storefront import ops
from storefront._types import (
    Lazy,
    Money,
    OwnerId,
    ProductId,
    OrderId,
    RuleId,
    Clock,
)
from storefront._errors import ErrorKind, Reason, ShopError, Errors

__version__ = "0.1.0"

__all__ = (
    "pricing",
    "saga",
    "ops",
    "Lazy",
    "Money",
    "OwnerId",
    "ProductId",
    "OrderId",
    "RuleId",
    "Clock",
    "ErrorKind",
    "Reason",
    "ShopError",
    "Errors",
)
