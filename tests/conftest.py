"""Shared fixtures: a temporary SQLite database, a seeded catalog and fake collaborators."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest
from kungfu import Error, Ok

from storefront.cart import CartService
from storefront.catalog import Product, SQLAlchemyCatalog
from storefront.checkout import CheckoutOrchestrator, CheckoutReceipt, CheckoutRequest, Selection
from storefront.db import SessionFactory, create_database
from storefront.discounts import DiscountAdmin, DiscountDraft, DiscountRule, DiscountRuleStore
from storefront.notify import AdminAlerts, NotificationQueue
from storefront.orders import OrderAdmin
from storefront.payments import (
    GatewayError,
    PaymentConfirmationHandler,
    PaymentInfo,
    PaymentIntent,
)
from storefront.pricing import ShippingPolicy
from storefront.shipping import (
    Label,
    Shipment,
    ShipmentError,
    ShipmentRequest,
    ShippingAddress,
    Tracking,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
SECRET = "test-secret"
POLICY = ShippingPolicy(flat_fee=Decimal("55"), free_threshold=Decimal("800"))


def clock() -> datetime:
    return NOW


# -- Fakes --------------------------------------------------------------------


class FakeGateway:
    def __init__(self) -> None:
        self.intents: list[PaymentIntent] = []
        self.payment_status: dict[str, str] = {}
        self.error: Exception | None = None
        self.delay = 0.0
        self.before_create: Callable[[], Awaitable[object]] | None = None

    async def create_intent(
        self, amount_minor: int, currency: str, receipt: str, metadata: dict[str, str]
    ) -> PaymentIntent:
        if self.before_create is not None:
            await self.before_create()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        intent = PaymentIntent(
            intent_id=f"gw_order_{len(self.intents) + 1}",
            amount_minor=amount_minor,
            currency=currency,
            receipt=receipt,
        )
        self.intents.append(intent)
        return intent

    async def fetch_payment(self, payment_id: str) -> PaymentInfo:
        if payment_id not in self.payment_status:
            raise GatewayError(f"Unknown payment {payment_id}", 404)
        return PaymentInfo(payment_id=payment_id, status=self.payment_status[payment_id])


class FakeDispatcher:
    def __init__(self) -> None:
        self.created: list[ShipmentRequest] = []
        self.cancelled: list[str] = []
        self.labelled: list[str] = []
        self.fail_create = False
        self.fail_label = False
        self.fail_cancel = False

    async def create_shipment(self, request: ShipmentRequest) -> Shipment:
        if self.fail_create:
            raise ShipmentError("Dispatcher unavailable", 503)
        self.created.append(request)
        n = len(self.created)
        return Shipment(shipment_id=f"shp_{n}", shipper_order_id=f"so_{n}")

    async def generate_label(self, shipment_id: str) -> Label:
        if self.fail_label:
            raise ShipmentError("Label service down", 502)
        self.labelled.append(shipment_id)
        return Label(label_url=f"https://labels.example/{shipment_id}.pdf")

    async def track(self, shipment_id: str) -> Tracking:
        return Tracking(shipment_id=shipment_id, status="IN TRANSIT")

    async def cancel(self, shipper_order_id: str) -> None:
        if self.fail_cancel:
            raise ShipmentError("Cancel rejected", 400)
        self.cancelled.append(shipper_order_id)


class RecordingSender:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def send(self, to: str, subject: str, text: str, html: str) -> None:
        self.sent.append((to, subject))


# -- Database -----------------------------------------------------------------


@pytest.fixture
async def sessions(tmp_path: Path) -> AsyncIterator[SessionFactory]:
    factory, engine = await create_database(f"sqlite+aiosqlite:///{tmp_path / 'shop.db'}")
    yield factory
    await engine.dispose()


@pytest.fixture
async def catalog(sessions: SessionFactory) -> SQLAlchemyCatalog:
    catalog = SQLAlchemyCatalog()
    async with sessions() as session, session.begin():
        await catalog.add(
            session,
            Product("p_lamp", "Desk Lamp", "LAMP-1", Decimal("500.00"), 10, category="home"),
        )
        await catalog.add(
            session,
            Product("p_tee", "Cotton Tee", "TEE-1", Decimal("100.00"), 20, category="apparel"),
        )
        await catalog.add(
            session, Product("p_mug", "Mug", "MUG-1", Decimal("250.00"), 2, category="kitchen")
        )
    return catalog


@pytest.fixture
def store() -> DiscountRuleStore:
    return DiscountRuleStore(clock)


type AddRule = Callable[..., Awaitable[DiscountRule]]


@pytest.fixture
def add_rule(sessions: SessionFactory, store: DiscountRuleStore) -> AddRule:
    admin = DiscountAdmin(sessions, store)

    async def add(
        code: str,
        percent: str,
        cap: str,
        *,
        usage_limit: int = 100,
        min_cart_value: str = "0",
        is_active: bool = True,
        valid_from: datetime = NOW - timedelta(days=1),
        valid_until: datetime = NOW + timedelta(days=30),
    ) -> DiscountRule:
        draft = DiscountDraft(
            code=code,
            discount_percentage=Decimal(percent),
            max_discount_amount=Decimal(cap),
            valid_from=valid_from,
            valid_until=valid_until,
            usage_limit=usage_limit,
            min_cart_value=Decimal(min_cart_value),
            is_active=is_active,
        )
        match await admin.create(draft):
            case Ok(rule):
                return rule
            case Error(e):
                raise AssertionError(f"could not create rule: {e}")

    return add


# -- Services -----------------------------------------------------------------


@pytest.fixture
def carts(
    sessions: SessionFactory, catalog: SQLAlchemyCatalog, store: DiscountRuleStore
) -> CartService:
    return CartService(sessions, catalog, store, POLICY, clock)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
async def queue(sender: RecordingSender) -> AsyncIterator[NotificationQueue]:
    queue = NotificationQueue(sender)
    await queue.start()
    yield queue
    await queue.stop()


@pytest.fixture
def alerts(sessions: SessionFactory, queue: NotificationQueue) -> AdminAlerts:
    return AdminAlerts(sessions, queue, ("ops@shop.example",), clock)


@pytest.fixture
def orchestrator(
    sessions: SessionFactory, catalog: SQLAlchemyCatalog, gateway: FakeGateway
) -> CheckoutOrchestrator:
    return CheckoutOrchestrator(
        sessions,
        catalog,
        gateway,
        POLICY,
        currency="INR",
        payment_methods=("razorpay", "upi"),
        gateway_timeout=0.5,
        gateway_key_id="key_test",
        clock=clock,
    )


@pytest.fixture
def payments(
    sessions: SessionFactory,
    gateway: FakeGateway,
    dispatcher: FakeDispatcher,
    carts: CartService,
    store: DiscountRuleStore,
    queue: NotificationQueue,
    alerts: AdminAlerts,
) -> PaymentConfirmationHandler:
    return PaymentConfirmationHandler(
        sessions,
        gateway,
        dispatcher,
        carts,
        store,
        queue,
        alerts,
        secret=SECRET,
        dispatcher_timeout=1.0,
        clock=clock,
    )


@pytest.fixture
def order_admin(sessions: SessionFactory, dispatcher: FakeDispatcher) -> OrderAdmin:
    return OrderAdmin(sessions, dispatcher, 1.0, clock)


@pytest.fixture
def address() -> ShippingAddress:
    return ShippingAddress(
        name="Asha Rao",
        phone="9000000000",
        email="asha@example.com",
        line1="12 MG Road",
        city="Bengaluru",
        state="KA",
        postal_code="560001",
    )


type CheckoutFn = Callable[..., Awaitable[CheckoutReceipt]]


@pytest.fixture
def checkout(
    carts: CartService, orchestrator: CheckoutOrchestrator, address: ShippingAddress
) -> CheckoutFn:
    """Fill a cart and check all of it out; returns the receipt."""

    async def run(owner_id: str, *lines: tuple[str, int], code: str | None = None) -> CheckoutReceipt:
        for product_id, quantity in lines:
            assert isinstance(await carts.add_item(owner_id, product_id, quantity), Ok)
        if code is not None:
            assert isinstance(await carts.apply_discount(owner_id, code), Ok)
        request = CheckoutRequest(
            owner_id=owner_id,
            selections=tuple(Selection(p, q) for p, q in lines),
            payment_method="upi",
            shipping_address=address,
        )
        match await orchestrator.checkout(request):
            case Ok(receipt):
                return receipt
            case Error(e):
                raise AssertionError(f"checkout failed: {e}")

    return run
