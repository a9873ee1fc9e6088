"""
Shipping — external shipment dispatcher boundary.

    from storefront.shipping import HttpShipmentDispatcher, ShipmentError

    try:
        shipment = await dispatcher.create_shipment(order.shipment_request())
        label = await dispatcher.generate_label(shipment.shipment_id)
    except ShipmentError:
        ...  # escalate, the order stays Paid/Processing
"""

from storefront.shipping._types import (
    PARCEL_LENGTH_CM,
    PARCEL_BREADTH_CM,
    PARCEL_HEIGHT_CM,
    PARCEL_WEIGHT_KG,
    ShipmentError,
    ShippingAddress,
    ShipmentItem,
    ShipmentRequest,
    Shipment,
    Label,
    Tracking,
    ShipmentDispatcher,
)
from storefront.shipping._token import TokenCache
from storefront.shipping._http import HttpShipmentDispatcher, shipment_payload

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
    "TokenCache",
    "HttpShipmentDispatcher",
    "shipment_payload",
)
