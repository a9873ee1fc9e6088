"""
Shipment types.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol

# Default parcel for every order: 15 x 5 x 20 cm, 0.8 kg.
PARCEL_LENGTH_CM = 15
PARCEL_BREADTH_CM = 5
PARCEL_HEIGHT_CM = 20
PARCEL_WEIGHT_KG = Decimal("0.8")


class ShipmentError(Exception):
    """The dispatcher refused or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True, slots=True)
class ShippingAddress:
    name: str
    phone: str
    email: str
    line1: str
    city: str
    state: str
    postal_code: str
    country: str = "India"
    line2: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShippingAddress:
        return cls(**data)


@dataclass(frozen=True, slots=True)
class ShipmentItem:
    name: str
    sku: str
    units: int
    selling_price: Decimal


@dataclass(frozen=True, slots=True)
class ShipmentRequest:
    """Everything the dispatcher needs, taken from the order snapshot."""

    order_id: str
    order_date: datetime
    items: tuple[ShipmentItem, ...]
    sub_total: Decimal
    address: ShippingAddress
    payment_method: str = "Prepaid"


@dataclass(frozen=True, slots=True)
class Shipment:
    shipment_id: str
    shipper_order_id: str


@dataclass(frozen=True, slots=True)
class Label:
    label_url: str


@dataclass(frozen=True, slots=True)
class Tracking:
    shipment_id: str
    status: str
    raw: dict[str, Any] = field(default_factory=dict[str, Any])


class ShipmentDispatcher(Protocol):
    """External logistics provider. Every method raises ``ShipmentError``."""

    async def create_shipment(self, request: ShipmentRequest) -> Shipment: ...
    async def generate_label(self, shipment_id: str) -> Label: ...
    async def track(self, shipment_id: str) -> Tracking: ...
    async def cancel(self, shipper_order_id: str) -> None: ...


__all__ = (
    "PARCEL_LENGTH_CM",
    "PARCEL_BREADTH_CM",
    "PARCEL_HEIGHT_CM",
    "PARCEL_WEIGHT_KG",
    "ShipmentError",
    "ShippingAddress",
    "ShipmentItem",
    "ShipmentRequest",
    "Shipment",
    "Label",
    "Tracking",
    "ShipmentDispatcher",
)
