"""
Core types for storefront.

Re-exports from kungfu + domain aliases shared by every subpackage.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal
import uuid

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Lazy Computation Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Lazy[T, E] = LazyCoroResult[T, E]
"""Lazy async computation that may fail."""

# ═══════════════════════════════════════════════════════════════════════════════
# Domain Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Money = Decimal
"""Amount in major currency units (rupees), two decimal places."""

type OwnerId = str
type ProductId = str
type OrderId = str
type RuleId = str

type Clock = Callable[[], datetime]
"""Source of the current time; always timezone-aware UTC."""


def utcnow() -> datetime:
    return datetime.now(UTC)


def new_id(prefix: str) -> str:
    """Short prefixed identifier, e.g. ``ord_3f9c1a2b7d4e``."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Aliases
    "Lazy",
    "Money",
    "OwnerId",
    "ProductId",
    "OrderId",
    "RuleId",
    "Clock",
    # Helpers
    "utcnow",
    "new_id",
)
