"""HTTP tests: routes, the response envelope and status codes."""

from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from pathlib import Path

import httpx
import pytest

from storefront.api import create_app
from storefront.catalog import Product, SQLAlchemyCatalog
from storefront.config import Settings
from storefront.db import create_database
from storefront.payments import sign_payment

from tests.conftest import SECRET, FakeDispatcher, FakeGateway, RecordingSender

ADDRESS = {
    "name": "Asha Rao",
    "phone": "9000000000",
    "email": "asha@example.com",
    "line1": "12 MG Road",
    "city": "Bengaluru",
    "state": "KA",
    "postal_code": "560001",
}


@pytest.fixture
def api_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def api_dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture
async def client(
    tmp_path: Path, api_gateway: FakeGateway, api_dispatcher: FakeDispatcher
) -> AsyncIterator[httpx.AsyncClient]:
    url = f"sqlite+aiosqlite:///{tmp_path / 'api.db'}"
    settings = Settings(
        database_url=url,
        gateway_key_id="key_test",
        gateway_key_secret=SECRET,
        gateway_timeout=0.2,
        shipper_timeout=1.0,
        admin_emails=("ops@shop.example",),
    )
    app = create_app(
        settings, gateway=api_gateway, dispatcher=api_dispatcher, sender=RecordingSender()
    )

    async with app.router.lifespan_context(app):
        sessions, engine = await create_database(url)
        catalog = SQLAlchemyCatalog()
        async with sessions() as session, session.begin():
            await catalog.add(
                session, Product("p_tee", "Cotton Tee", "TEE-1", Decimal("100.00"), 20, "apparel")
            )
            await catalog.add(
                session, Product("p_lamp", "Desk Lamp", "LAMP-1", Decimal("500.00"), 10, "home")
            )
        await engine.dispose()

        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        ) as http:
            yield http


async def _checkout(client: httpx.AsyncClient, owner: str = "u_1") -> dict:
    await client.post(f"/carts/{owner}/items", json={"product_id": "p_lamp", "quantity": 1})
    response = await client.post(
        "/checkout",
        json={
            "owner_id": owner,
            "items": [{"product_id": "p_lamp", "quantity": 1}],
            "payment_method": "UPI",
            "shipping_address": ADDRESS,
        },
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]


def _confirm_body(gateway_order_id: str, payment_id: str = "pay_1") -> dict:
    return {
        "gateway_order_id": gateway_order_id,
        "gateway_payment_id": payment_id,
        "signature": sign_payment(SECRET, gateway_order_id, payment_id),
    }


class TestCartRoutes:
    async def test_missing_cart_is_empty(self, client):
        response = await client.get("/carts/u_1")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["error"] is None
        assert body["data"]["items"] == []

    async def test_add_update_remove(self, client):
        response = await client.post("/carts/u_1/items", json={"product_id": "p_tee", "quantity": 2})
        assert response.status_code == 200
        assert Decimal(response.json()["data"]["totals"]["gross_total"]) == Decimal("200")

        response = await client.patch("/carts/u_1/items/p_tee", json={"quantity": 5})
        assert response.json()["data"]["items"][0]["quantity"] == 5

        response = await client.delete("/carts/u_1/items/p_tee")
        assert response.json()["data"]["items"] == []

    async def test_unknown_product_is_404(self, client):
        response = await client.post("/carts/u_1/items", json={"product_id": "p_nope"})

        assert response.status_code == 404
        body = response.json()
        assert body["ok"] is False
        assert body["data"] is None
        assert body["error"]["kind"] == "NOT_FOUND"
        assert body["error"]["reason"] == "not_found"

    async def test_insufficient_stock_is_422(self, client):
        response = await client.post("/carts/u_1/items", json={"product_id": "p_lamp", "quantity": 11})

        assert response.status_code == 422
        assert response.json()["error"]["reason"] == "insufficient_stock"

    async def test_malformed_body_is_422(self, client):
        response = await client.post("/carts/u_1/items", json={"product_id": "p_tee", "quantity": "many"})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["reason"] == "invalid_request"
        assert error["detail"]

    async def test_non_object_body_is_422(self, client):
        response = await client.post("/carts/u_1/items", json=["p_tee"])

        assert response.status_code == 422

    async def test_discount_apply_and_remove(self, client):
        now = datetime.now(UTC)
        created = await client.post(
            "/discounts",
            json={
                "code": "Save10",
                "discount_percentage": "10",
                "max_discount_amount": "30",
                "valid_from": (now - timedelta(days=1)).isoformat(),
                "valid_until": (now + timedelta(days=1)).isoformat(),
                "usage_limit": 5,
            },
        )
        assert created.status_code == 200, created.text
        await client.post("/carts/u_1/items", json={"product_id": "p_lamp", "quantity": 1})

        applied = await client.post("/carts/u_1/discount", json={"code": "save10"})
        assert applied.status_code == 200
        totals = applied.json()["data"]["totals"]
        assert Decimal(totals["discount_amount"]) == Decimal("30")

        again = await client.post("/carts/u_1/discount", json={"code": "SAVE10"})
        assert again.status_code == 409

        removed = await client.delete("/carts/u_1/discount/SAVE10")
        assert removed.json()["data"]["discount"] is None

        listed = await client.get("/discounts")
        assert [d["code"] for d in listed.json()["data"]] == ["SAVE10"]


class TestCheckoutAndPayment:
    async def test_checkout_confirm_ship(self, client, api_dispatcher):
        data = await _checkout(client)

        assert data["currency"] == "INR"
        assert data["gateway_key_id"] == "key_test"
        assert data["amount_minor"] == 55500
        assert data["order"]["payment_status"] == "Pending"

        response = await client.post("/payments/confirm", json=_confirm_body(data["gateway_order_id"]))
        assert response.status_code == 200, response.text
        confirmation = response.json()["data"]
        assert confirmation["shipped"] is True
        assert confirmation["order"]["payment_status"] == "Paid"
        assert len(api_dispatcher.created) == 1

        order = (await client.get(f"/orders/{data['order']['id']}")).json()["data"]
        assert order["order_status"] == "Shipped"
        assert Decimal(order["amount_paid"]) == Decimal("555")
        assert order["lines"][0]["category"] is None

        listed = (await client.get("/orders", params={"owner_id": "u_1"})).json()["data"]
        assert listed[0]["lines"][0]["category"] == "home"

    async def test_bad_payment_method(self, client):
        await client.post("/carts/u_1/items", json={"product_id": "p_tee"})
        response = await client.post(
            "/checkout",
            json={
                "owner_id": "u_1",
                "items": [{"product_id": "p_tee", "quantity": 1}],
                "payment_method": "cash",
                "shipping_address": ADDRESS,
            },
        )

        assert response.status_code == 422
        assert response.json()["error"]["reason"] == "invalid_payment_method"

    async def test_gateway_timeout_is_504(self, client, api_gateway):
        api_gateway.delay = 1.0
        await client.post("/carts/u_1/items", json={"product_id": "p_tee"})
        response = await client.post(
            "/checkout",
            json={
                "owner_id": "u_1",
                "items": [{"product_id": "p_tee", "quantity": 1}],
                "payment_method": "upi",
                "shipping_address": ADDRESS,
            },
        )

        assert response.status_code == 504
        error = response.json()["error"]
        assert error["reason"] == "gateway_timeout"
        assert error["retriable"] is True

    async def test_bad_signature(self, client):
        data = await _checkout(client)
        body = _confirm_body(data["gateway_order_id"]) | {"signature": "0" * 64}

        response = await client.post("/payments/confirm", json=body)

        assert response.status_code == 422
        assert response.json()["error"]["reason"] == "invalid_signature"

    async def test_replayed_confirmation_is_409(self, client):
        data = await _checkout(client)
        body = _confirm_body(data["gateway_order_id"])
        assert (await client.post("/payments/confirm", json=body)).status_code == 200

        response = await client.post("/payments/confirm", json=body)

        assert response.status_code == 409
        assert response.json()["error"]["reason"] == "invalid_order"


class TestAdminRoutes:
    async def test_failed_shipment_alert_and_retry(self, client, api_dispatcher):
        api_dispatcher.fail_create = True
        data = await _checkout(client)
        order_id = data["order"]["id"]

        confirmed = await client.post("/payments/confirm", json=_confirm_body(data["gateway_order_id"]))
        assert confirmed.status_code == 200
        assert confirmed.json()["data"]["shipped"] is False

        alerts = (await client.get("/alerts", params={"order_id": order_id})).json()["data"]
        assert [a["stage"] for a in alerts] == ["shipment"]

        api_dispatcher.fail_create = False
        retried = await client.post(f"/orders/{order_id}/shipment")
        assert retried.status_code == 200
        assert retried.json()["data"]["shipped"] is True

        again = await client.post(f"/orders/{order_id}/shipment")
        assert again.status_code == 409

    async def test_status_update_and_delete(self, client, api_dispatcher):
        data = await _checkout(client)
        order_id = data["order"]["id"]
        await client.post("/payments/confirm", json=_confirm_body(data["gateway_order_id"]))

        updated = await client.patch(f"/orders/{order_id}/status", json={"status": "shipped"})
        assert updated.status_code == 200
        assert updated.json()["data"]["tracking_status"] == "IN TRANSIT"

        invalid = await client.patch(f"/orders/{order_id}/status", json={"status": "lost"})
        assert invalid.status_code == 422

        deleted = await client.delete(f"/orders/{order_id}")
        assert deleted.status_code == 200
        assert api_dispatcher.cancelled == ["so_1"]
        assert (await client.get(f"/orders/{order_id}")).status_code == 404
