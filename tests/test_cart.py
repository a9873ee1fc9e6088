"""Tests for the cart service."""

from datetime import timedelta
from decimal import Decimal

from kungfu import Error, Ok
from sqlalchemy import update

from storefront._errors import ErrorKind, Reason
from storefront.db import CartTable

from tests.conftest import NOW


def _ok(result):
    match result:
        case Ok(value):
            return value
        case Error(e):
            raise AssertionError(f"unexpected error: {e}")


def _err(result):
    match result:
        case Error(e):
            return e
        case Ok(value):
            raise AssertionError(f"unexpected success: {value}")


class TestGetCart:
    async def test_missing_cart_is_empty(self, carts):
        cart = _ok(await carts.get_cart("u_new"))

        assert cart.is_empty
        assert cart.id is None
        assert cart.totals.net_total == 0

    async def test_deleted_product_lines_are_dropped_on_read(self, sessions, carts, catalog):
        _ok(await carts.add_item("u_1", "p_tee", 1))
        _ok(await carts.add_item("u_1", "p_lamp", 1))
        async with sessions() as session, session.begin():
            assert await catalog.remove(session, "p_lamp")

        cart = _ok(await carts.get_cart("u_1"))

        assert [i.product_id for i in cart.items] == ["p_tee"]
        assert cart.totals.gross_total == Decimal("100.00")

    async def test_exhausted_discount_is_dropped_on_read(self, sessions, carts, store, add_rule):
        rule = await add_rule("ONCE", "10", "100", usage_limit=1)
        _ok(await carts.add_item("u_1", "p_tee", 2))
        _ok(await carts.apply_discount("u_1", "once"))
        async with sessions() as session, session.begin():
            _ok(await store.increment_usage(session, rule.id))

        cart = _ok(await carts.get_cart("u_1"))

        assert cart.applied_discount is None
        assert cart.totals.discount_amount == 0

    async def test_incomplete_discount_snapshot_is_internal(self, sessions, carts, add_rule):
        await add_rule("SAVE20", "20", "150")
        _ok(await carts.add_item("u_1", "p_lamp", 1))
        _ok(await carts.apply_discount("u_1", "save20"))
        async with sessions() as session, session.begin():
            await session.execute(
                update(CartTable).where(CartTable.owner_id == "u_1").values(applied_code=None)
            )

        err = _err(await carts.get_cart("u_1"))

        assert err.kind is ErrorKind.INTERNAL
        assert "incomplete discount snapshot" in err.message


class TestItems:
    async def test_add_item_prices_cart(self, carts):
        cart = _ok(await carts.add_item("u_1", "p_tee", 2))

        assert cart.items[0].unit_price == Decimal("100.00")
        assert cart.totals.gross_total == Decimal("200.00")
        assert cart.totals.shipping_fee == Decimal("55.00")

    async def test_add_item_increments(self, carts):
        _ok(await carts.add_item("u_1", "p_tee", 2))
        cart = _ok(await carts.add_item("u_1", "p_tee", 3))

        assert cart.find("p_tee").quantity == 5

    async def test_set_item_overwrites(self, carts):
        _ok(await carts.add_item("u_1", "p_tee", 2))
        cart = _ok(await carts.set_item("u_1", "p_tee", 7))

        assert cart.find("p_tee").quantity == 7

    async def test_stock_is_checked_against_total_quantity(self, carts):
        _ok(await carts.add_item("u_1", "p_mug", 2))
        error = _err(await carts.add_item("u_1", "p_mug", 1))

        assert error.reason is Reason.INSUFFICIENT_STOCK
        assert _ok(await carts.get_cart("u_1")).find("p_mug").quantity == 2

    async def test_zero_quantity_rejected(self, carts):
        assert _err(await carts.add_item("u_1", "p_tee", 0)).reason is Reason.INVALID_QUANTITY

    async def test_unknown_product(self, carts):
        assert _err(await carts.add_item("u_1", "p_nope", 1)).kind is ErrorKind.NOT_FOUND

    async def test_update_quantity_requires_line(self, carts):
        _ok(await carts.add_item("u_1", "p_tee", 1))

        assert _err(await carts.update_quantity("u_1", "p_lamp", 2)).kind is ErrorKind.NOT_FOUND
        cart = _ok(await carts.update_quantity("u_1", "p_tee", 4))
        assert cart.totals.gross_total == Decimal("400.00")

    async def test_update_quantity_refreshes_price(self, sessions, carts, catalog):
        _ok(await carts.add_item("u_1", "p_tee", 1))
        async with sessions() as session, session.begin():
            await catalog.set_price(session, "p_tee", Decimal("120.00"))

        cart = _ok(await carts.update_quantity("u_1", "p_tee", 2))

        assert cart.find("p_tee").unit_price == Decimal("120.00")

    async def test_add_then_remove_restores_empty_totals(self, carts, add_rule):
        await add_rule("OTHER", "10", "50")
        _ok(await carts.add_item("u_1", "p_tee", 2))

        cart = _ok(await carts.remove_item("u_1", "p_tee"))

        assert cart.is_empty
        assert cart.totals.gross_total == 0
        assert cart.totals.shipping_fee == 0
        assert cart.applied_discount is None

    async def test_remove_missing_line(self, carts):
        _ok(await carts.add_item("u_1", "p_tee", 1))
        assert _err(await carts.remove_item("u_1", "p_lamp")).kind is ErrorKind.NOT_FOUND

    async def test_clear_drops_items_and_discount(self, carts, add_rule):
        await add_rule("SAVE10", "10", "50")
        _ok(await carts.add_item("u_1", "p_tee", 2))
        _ok(await carts.apply_discount("u_1", "SAVE10"))

        cart = _ok(await carts.clear("u_1"))

        assert cart.is_empty
        assert cart.applied_discount is None
        assert cart.totals.net_total == 0

    async def test_clear_without_cart(self, carts):
        assert _err(await carts.clear("u_none")).kind is ErrorKind.NOT_FOUND


class TestDiscounts:
    async def test_apply_capped_discount(self, carts, add_rule):
        await add_rule("SAVE20", "20", "150")
        _ok(await carts.add_item("u_1", "p_lamp", 2))

        cart = _ok(await carts.apply_discount("u_1", "save20"))

        assert cart.applied_discount.code == "SAVE20"
        assert cart.totals.discount_amount == Decimal("150.00")
        assert cart.totals.net_total == Decimal("850.00")
        assert cart.totals.shipping_fee == 0

    async def test_apply_half_off_adds_shipping(self, carts, add_rule):
        await add_rule("HALF", "50", "1000")
        _ok(await carts.add_item("u_1", "p_lamp", 2))

        cart = _ok(await carts.apply_discount("u_1", "HALF"))

        assert cart.totals.net_total == Decimal("500.00")
        assert cart.totals.shipping_fee == Decimal("55.00")

    async def test_same_code_twice(self, carts, add_rule):
        await add_rule("SAVE20", "20", "150")
        _ok(await carts.add_item("u_1", "p_lamp", 1))
        _ok(await carts.apply_discount("u_1", "SAVE20"))

        assert _err(await carts.apply_discount("u_1", "SAVE20")).reason is Reason.ALREADY_APPLIED

    async def test_second_code_rejected(self, carts, add_rule):
        await add_rule("SAVE20", "20", "150")
        await add_rule("SAVE10", "10", "50")
        _ok(await carts.add_item("u_1", "p_lamp", 1))
        _ok(await carts.apply_discount("u_1", "SAVE20"))

        error = _err(await carts.apply_discount("u_1", "SAVE10"))

        assert error.reason is Reason.DISCOUNT_ALREADY_ACTIVE
        assert error.kind is ErrorKind.CONFLICT

    async def test_min_cart_value(self, carts, add_rule):
        await add_rule("BIG", "10", "100", min_cart_value="1000")
        _ok(await carts.add_item("u_1", "p_tee", 1))

        assert _err(await carts.apply_discount("u_1", "BIG")).reason is Reason.BELOW_MIN_CART_VALUE

    async def test_expired_code(self, carts, add_rule):
        await add_rule(
            "OLD",
            "10",
            "100",
            valid_from=NOW - timedelta(days=10),
            valid_until=NOW - timedelta(days=1),
        )
        _ok(await carts.add_item("u_1", "p_tee", 1))

        assert _err(await carts.apply_discount("u_1", "OLD")).reason is Reason.EXPIRED

    async def test_apply_without_cart(self, carts, add_rule):
        await add_rule("SAVE20", "20", "150")
        assert _err(await carts.apply_discount("u_none", "SAVE20")).kind is ErrorKind.NOT_FOUND

    async def test_remove_discount(self, carts, add_rule):
        await add_rule("SAVE20", "20", "150")
        _ok(await carts.add_item("u_1", "p_lamp", 2))
        _ok(await carts.apply_discount("u_1", "SAVE20"))

        assert _err(await carts.remove_discount("u_1", "OTHER")).kind is ErrorKind.NOT_FOUND
        cart = _ok(await carts.remove_discount("u_1", "save20"))

        assert cart.applied_discount is None
        assert cart.totals.net_total == Decimal("1000.00")

    async def test_release_discount_without_cart(self, carts):
        assert _ok(await carts.release_discount("u_none")) is None
