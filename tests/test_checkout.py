"""Tests for the checkout orchestrator."""

from decimal import Decimal

from kungfu import Error, Ok
from sqlalchemy import func, select

from storefront._errors import ErrorKind, Reason
from storefront.cart import CartRepository
from storefront.checkout import CheckoutRequest, Selection, check_selection, shrink
from storefront.db import OrderTable
from storefront.orders import OrderStatus, PaymentStatus
from storefront.payments import GatewayError

from tests.conftest import NOW


def _request(address, *lines, owner="u_1", method="upi"):
    return CheckoutRequest(
        owner_id=owner,
        selections=tuple(Selection(p, q) for p, q in lines),
        payment_method=method,
        shipping_address=address,
    )


def _err(result):
    match result:
        case Error(e):
            return e
        case Ok(value):
            raise AssertionError(f"unexpected success: {value}")


async def _order_count(sessions) -> int:
    async with sessions() as session:
        return (await session.execute(select(func.count()).select_from(OrderTable))).scalar_one()


class TestSelection:
    def test_empty_selection(self):
        assert _err(check_selection(())).reason is Reason.INVALID_SELECTION

    def test_duplicate_product(self):
        selections = (Selection("p_tee", 1), Selection("p_tee", 2))
        assert _err(check_selection(selections)).reason is Reason.INVALID_SELECTION

    def test_non_positive_quantity(self):
        assert _err(check_selection((Selection("p_tee", 0),))).reason is Reason.INVALID_QUANTITY


class TestCheckout:
    async def test_creates_pending_order_and_intent(self, checkout, gateway, add_rule):
        await add_rule("SAVE20", "20", "150")

        receipt = await checkout("u_1", ("p_lamp", 2), code="SAVE20")
        order = receipt.order

        assert order.payment_status is PaymentStatus.PENDING
        assert order.order_status is OrderStatus.PENDING
        assert order.totals.net_total == Decimal("850.00")
        assert order.total_amount == Decimal("850.00")
        assert order.discount is not None and order.discount.code == "SAVE20"
        assert [(l.product_id, l.quantity, l.sku) for l in order.lines] == [("p_lamp", 2, "LAMP-1")]
        assert receipt.amount_minor == 85000
        assert receipt.gateway_key_id == "key_test"

        intent = gateway.intents[0]
        assert intent.intent_id == order.gateway_order_id
        assert intent.amount_minor == 85000
        assert intent.currency == "INR"
        assert intent.receipt == order.receipt

    async def test_charges_shipping_below_threshold(self, checkout, gateway):
        receipt = await checkout("u_1", ("p_tee", 2))

        assert receipt.order.totals.shipping_fee == Decimal("55.00")
        assert receipt.amount_minor == 25500
        assert gateway.intents[0].amount_minor == 25500

    async def test_full_checkout_deletes_cart(self, sessions, checkout):
        await checkout("u_1", ("p_tee", 2))

        async with sessions() as session:
            assert await CartRepository().load(session, "u_1") is None

    async def test_partial_checkout_shrinks_cart(self, sessions, carts, orchestrator, address):
        await carts.add_item("u_1", "p_tee", 3)
        await carts.add_item("u_1", "p_lamp", 1)

        result = await orchestrator.checkout(_request(address, ("p_tee", 2)))

        assert isinstance(result, Ok)
        match await carts.get_cart("u_1"):
            case Ok(cart):
                assert [(i.product_id, i.quantity) for i in cart.items] == [("p_tee", 1), ("p_lamp", 1)]
                assert cart.totals.gross_total == Decimal("600.00")
            case Error(e):
                raise AssertionError(e)

    async def test_order_snapshot_ignores_later_price_change(
        self, sessions, catalog, checkout, order_admin
    ):
        receipt = await checkout("u_1", ("p_tee", 1))
        async with sessions() as session, session.begin():
            await catalog.set_price(session, "p_tee", Decimal("999.00"))

        match await order_admin.get_order(receipt.order.id):
            case Ok(order):
                assert order.lines[0].unit_price == Decimal("100.00")
                assert order.created_at == NOW
            case Error(e):
                raise AssertionError(e)


class TestCheckoutFailures:
    async def test_price_changed(self, sessions, carts, catalog, orchestrator, gateway, address):
        await carts.add_item("u_1", "p_tee", 1)
        async with sessions() as session, session.begin():
            await catalog.set_price(session, "p_tee", Decimal("120.00"))

        error = _err(await orchestrator.checkout(_request(address, ("p_tee", 1))))

        assert error.reason is Reason.PRICE_CHANGED
        assert error.kind is ErrorKind.CONFLICT
        assert gateway.intents == []
        assert await _order_count(sessions) == 0

    async def test_unsupported_payment_method(self, carts, orchestrator, address):
        await carts.add_item("u_1", "p_tee", 1)

        error = _err(await orchestrator.checkout(_request(address, ("p_tee", 1), method="cod")))

        assert error.reason is Reason.INVALID_PAYMENT_METHOD

    async def test_payment_method_is_case_insensitive(self, carts, orchestrator, address):
        await carts.add_item("u_1", "p_tee", 1)

        match await orchestrator.checkout(_request(address, ("p_tee", 1), method=" UPI ")):
            case Ok(receipt):
                assert receipt.order.payment_method == "upi"
            case Error(e):
                raise AssertionError(e)

    async def test_empty_cart(self, orchestrator, address):
        assert _err(await orchestrator.checkout(_request(address, ("p_tee", 1)))).reason is Reason.EMPTY_CART

    async def test_item_not_in_cart(self, carts, orchestrator, address):
        await carts.add_item("u_1", "p_tee", 1)

        error = _err(await orchestrator.checkout(_request(address, ("p_lamp", 1))))

        assert error.reason is Reason.ITEM_NOT_IN_CART

    async def test_quantity_exceeds_cart(self, carts, orchestrator, address):
        await carts.add_item("u_1", "p_tee", 1)

        error = _err(await orchestrator.checkout(_request(address, ("p_tee", 2))))

        assert error.reason is Reason.QUANTITY_EXCEEDS_CART

    async def test_gateway_failure_leaves_cart_untouched(
        self, sessions, carts, orchestrator, gateway, address
    ):
        await carts.add_item("u_1", "p_tee", 2)
        gateway.error = GatewayError("Bad request", 400)

        error = _err(await orchestrator.checkout(_request(address, ("p_tee", 2))))

        assert error.kind is ErrorKind.EXTERNAL_SERVICE
        assert error.retriable is False
        assert await _order_count(sessions) == 0
        match await carts.get_cart("u_1"):
            case Ok(cart):
                assert cart.find("p_tee").quantity == 2
            case Error(e):
                raise AssertionError(e)

    async def test_gateway_timeout_is_retriable(self, sessions, carts, orchestrator, gateway, address):
        await carts.add_item("u_1", "p_tee", 1)
        gateway.delay = 2.0

        error = _err(await orchestrator.checkout(_request(address, ("p_tee", 1))))

        assert error.reason is Reason.GATEWAY_TIMEOUT
        assert error.retriable is True
        assert await _order_count(sessions) == 0

    async def test_discount_applied_while_reserving(
        self, sessions, carts, orchestrator, gateway, address, add_rule, caplog
    ):
        await add_rule("SAVE10", "10", "50")
        await carts.add_item("u_1", "p_tee", 2)
        gateway.before_create = lambda: carts.apply_discount("u_1", "SAVE10")

        error = _err(await orchestrator.checkout(_request(address, ("p_tee", 2))))

        assert error.reason is Reason.CART_CHANGED
        assert error.kind is ErrorKind.CONFLICT
        assert await _order_count(sessions) == 0
        assert "left unused" in caplog.text

    async def test_cart_shrunk_while_reserving(self, sessions, carts, orchestrator, gateway, address):
        await carts.add_item("u_1", "p_tee", 2)
        gateway.before_create = lambda: carts.set_item("u_1", "p_tee", 1)

        error = _err(await orchestrator.checkout(_request(address, ("p_tee", 2))))

        assert error.reason is Reason.QUANTITY_EXCEEDS_CART
        assert await _order_count(sessions) == 0


class TestShrink:
    async def test_shrink_removes_exhausted_lines(self, carts):
        match await carts.add_item("u_1", "p_tee", 2):
            case Ok(cart):
                pass
            case Error(e):
                raise AssertionError(e)

        assert shrink(cart, (Selection("p_tee", 2),)).is_empty
        assert shrink(cart, (Selection("p_tee", 1),)).items[0].quantity == 1
