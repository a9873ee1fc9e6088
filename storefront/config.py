"""
Settings — read once from the environment.

    settings = Settings.from_env()           # STOREFRONT_* variables
    settings = Settings(gateway_key_secret="test")   # explicit, for tests
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal

from storefront.pricing import ShippingPolicy

_PREFIX = "STOREFRONT_"


def _env(name: str, default: str) -> str:
    return os.getenv(_PREFIX + name, default)


def _env_tuple(name: str, default: str) -> tuple[str, ...]:
    raw = _env(name, default)
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _env_bool(name: str, default: bool) -> bool:
    return _env(name, "1" if default else "0").lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True, slots=True)
class Settings:
    database_url: str = "sqlite+aiosqlite:///./storefront.db"
    log_level: str = "INFO"

    # Pricing
    currency: str = "INR"
    flat_shipping_fee: Decimal = Decimal("55")
    free_shipping_threshold: Decimal = Decimal("800")
    payment_methods: tuple[str, ...] = ("razorpay", "upi")

    # Payment gateway
    gateway_base_url: str = "https://api.razorpay.com/v1"
    gateway_key_id: str = ""
    gateway_key_secret: str = ""
    gateway_timeout: float = 10.0
    verify_capture: bool = False

    # Shipment dispatcher
    shipper_base_url: str = "https://apiv2.shiprocket.in/v1/external"
    shipper_email: str = ""
    shipper_password: str = ""
    shipper_token_ttl: float = 9 * 24 * 3600.0
    shipper_timeout: float = 15.0
    pickup_location: str = "Home"

    # Notifications
    sender_address: str = "orders@storefront.local"
    admin_emails: tuple[str, ...] = ()

    @property
    def shipping_policy(self) -> ShippingPolicy:
        return ShippingPolicy(
            flat_fee=self.flat_shipping_fee,
            free_threshold=self.free_shipping_threshold,
        )

    @classmethod
    def from_env(cls) -> Settings:
        d = cls()
        return cls(
            database_url=_env("DATABASE_URL", d.database_url),
            log_level=_env("LOG_LEVEL", d.log_level),
            currency=_env("CURRENCY", d.currency),
            flat_shipping_fee=Decimal(_env("FLAT_SHIPPING_FEE", str(d.flat_shipping_fee))),
            free_shipping_threshold=Decimal(
                _env("FREE_SHIPPING_THRESHOLD", str(d.free_shipping_threshold))
            ),
            payment_methods=_env_tuple("PAYMENT_METHODS", ",".join(d.payment_methods)),
            gateway_base_url=_env("GATEWAY_BASE_URL", d.gateway_base_url),
            gateway_key_id=_env("GATEWAY_KEY_ID", d.gateway_key_id),
            gateway_key_secret=_env("GATEWAY_KEY_SECRET", d.gateway_key_secret),
            gateway_timeout=float(_env("GATEWAY_TIMEOUT", str(d.gateway_timeout))),
            verify_capture=_env_bool("VERIFY_CAPTURE", d.verify_capture),
            shipper_base_url=_env("SHIPPER_BASE_URL", d.shipper_base_url),
            shipper_email=_env("SHIPPER_EMAIL", d.shipper_email),
            shipper_password=_env("SHIPPER_PASSWORD", d.shipper_password),
            shipper_token_ttl=float(_env("SHIPPER_TOKEN_TTL", str(d.shipper_token_ttl))),
            shipper_timeout=float(_env("SHIPPER_TIMEOUT", str(d.shipper_timeout))),
            pickup_location=_env("PICKUP_LOCATION", d.pickup_location),
            sender_address=_env("SENDER_ADDRESS", d.sender_address),
            admin_emails=_env_tuple("ADMIN_EMAILS", ""),
        )


__all__ = ("Settings",)
