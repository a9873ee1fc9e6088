"""
Tables — SQLAlchemy declarative models.

Money columns hold integer minor units (paisa); percentages hold basis
points (12.5% → 1250).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from storefront.db._types import UtcDateTime


# ═══════════════════════════════════════════════════════════════════════════════
# Base
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


class ProductTable(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    sku: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    price_minor: Mapped[int] = mapped_column(Integer, nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Discount Rules
# ═══════════════════════════════════════════════════════════════════════════════


class DiscountRuleTable(Base):
    __tablename__ = "discount_rules"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    percent_bps: Mapped[int] = mapped_column(Integer, nullable=False)
    max_discount_minor: Mapped[int] = mapped_column(Integer, nullable=False)
    min_cart_value_minor: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    valid_from: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    valid_until: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    usage_limit: Mapped[int] = mapped_column(Integer, nullable=False)
    times_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Carts
# ═══════════════════════════════════════════════════════════════════════════════


class CartTable(Base):
    __tablename__ = "carts"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)

    # Applied discount snapshot (at most one)
    applied_rule_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    applied_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    applied_percent_bps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    applied_max_discount_minor: Mapped[int | None] = mapped_column(Integer, nullable=True)
    applied_at: Mapped[datetime | None] = mapped_column(UtcDateTime, nullable=True)

    # Totals, recomputed on every write
    gross_minor: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    discount_minor: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    net_minor: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    shipping_fee_minor: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)

    items: Mapped[list[CartItemTable]] = relationship(
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemTable.position",
        lazy="selectin",
    )


class CartItemTable(Base):
    __tablename__ = "cart_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cart_id: Mapped[str] = mapped_column(
        ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[str] = mapped_column(String(50), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_minor: Mapped[int] = mapped_column(Integer, nullable=False)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)

    cart: Mapped[CartTable] = relationship(back_populates="items")


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderTable(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    receipt: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    # Amounts
    gross_minor: Mapped[int] = mapped_column(Integer, nullable=False)
    discount_minor: Mapped[int] = mapped_column(Integer, nullable=False)
    net_minor: Mapped[int] = mapped_column(Integer, nullable=False)
    shipping_fee_minor: Mapped[int] = mapped_column(Integer, nullable=False)
    total_minor: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_paid_minor: Mapped[int | None] = mapped_column(Integer, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)

    # Frozen discount snapshot
    discount_rule_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    discount_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    discount_percent_bps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    discount_max_minor: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # State
    payment_status: Mapped[str] = mapped_column(String(20), nullable=False)
    order_status: Mapped[str] = mapped_column(String(20), nullable=False)

    # Gateway / shipper identifiers
    gateway_order_id: Mapped[str] = mapped_column(
        String(100), nullable=False, unique=True, index=True
    )
    gateway_payment_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    shipment_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    shipper_order_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    label_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    shipping_address: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)

    lines: Mapped[list[OrderLineTable]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLineTable.position",
        lazy="selectin",
    )


class OrderLineTable(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[str] = mapped_column(String(50), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_minor: Mapped[int] = mapped_column(Integer, nullable=False)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    sku: Mapped[str] = mapped_column(String(64), nullable=False)

    order: Mapped[OrderTable] = relationship(back_populates="lines")


# ═══════════════════════════════════════════════════════════════════════════════
# Admin Alerts
# ═══════════════════════════════════════════════════════════════════════════════


class AdminAlertTable(Base):
    __tablename__ = "admin_alerts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    stage: Mapped[str] = mapped_column(String(50), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)


__all__ = (
    "Base",
    "ProductTable",
    "DiscountRuleTable",
    "CartTable",
    "CartItemTable",
    "OrderTable",
    "OrderLineTable",
    "AdminAlertTable",
)
