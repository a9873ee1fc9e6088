"""Shared infrastructure for examples: in-memory collaborators and a seeded shop."""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable, Coroutine
from decimal import Decimal

from storefront.catalog import Product, SQLAlchemyCatalog
from storefront.db import SessionFactory
from storefront.payments import PaymentInfo, PaymentIntent
from storefront.shipping import Label, Shipment, ShipmentError, ShipmentRequest, Tracking


# Payment gateway that accepts everything
class PrintingGateway:
    def __init__(self) -> None:
        self._ids = itertools.count(1)

    async def create_intent(
        self, amount_minor: int, currency: str, receipt: str, metadata: dict[str, str]
    ) -> PaymentIntent:
        intent_id = f"order_demo_{next(self._ids)}"
        print(f"  → gateway: intent {intent_id} for {amount_minor} {currency}")
        return PaymentIntent(intent_id, amount_minor, currency, receipt)

    async def fetch_payment(self, payment_id: str) -> PaymentInfo:
        return PaymentInfo(payment_id, "captured")


# Dispatcher that can be switched off
class PrintingDispatcher:
    def __init__(self) -> None:
        self.down = False
        self._ids = itertools.count(1)

    async def create_shipment(self, request: ShipmentRequest) -> Shipment:
        if self.down:
            print("  ✗ dispatcher: unavailable")
            raise ShipmentError("Dispatcher unavailable", 503)
        n = next(self._ids)
        print(f"  → dispatcher: shipment {n} for {request.order_id} ({len(request.items)} items)")
        return Shipment(shipment_id=f"SHP{n}", shipper_order_id=f"SO{n}")

    async def generate_label(self, shipment_id: str) -> Label:
        return Label(label_url=f"https://labels.example/{shipment_id}.pdf")

    async def track(self, shipment_id: str) -> Tracking:
        return Tracking(shipment_id=shipment_id, status="IN TRANSIT")

    async def cancel(self, shipper_order_id: str) -> None:
        print(f"  ← dispatcher: cancelled {shipper_order_id}")


class PrintingSender:
    async def send(self, to: str, subject: str, text: str, html: str) -> None:
        print(f"  ✉ {to}: {subject}")


async def seed(sessions: SessionFactory) -> SQLAlchemyCatalog:
    catalog = SQLAlchemyCatalog()
    async with sessions() as session, session.begin():
        await catalog.add(
            session, Product("p_lamp", "Desk Lamp", "LAMP-1", Decimal("500.00"), 10, "home")
        )
        await catalog.add(
            session, Product("p_tee", "Cotton Tee", "TEE-1", Decimal("100.00"), 20, "apparel")
        )
    return catalog


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    asyncio.run(main())
