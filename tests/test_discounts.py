"""Tests for discount validation and the rule store."""

import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest
from kungfu import Error, Ok

from storefront._errors import ErrorKind, Reason
from storefront.discounts import (
    AppliedDiscount,
    DiscountAdmin,
    DiscountDraft,
    DiscountRule,
    canonical_code,
    validate,
)

from tests.conftest import NOW


def _rule(**overrides) -> DiscountRule:
    fields = dict(
        id="dsc_1",
        code="SAVE20",
        discount_percentage=Decimal("20"),
        max_discount_amount=Decimal("150"),
        min_cart_value=Decimal("0"),
        valid_from=NOW - timedelta(days=1),
        valid_until=NOW + timedelta(days=1),
        usage_limit=5,
        times_used=0,
        is_active=True,
    )
    fields.update(overrides)
    return DiscountRule(**fields)


def _reason(result):
    match result:
        case Error(e):
            return e.reason
        case Ok(_):
            return None


class TestCanonicalCode:
    def test_upper_cases_and_strips(self):
        assert canonical_code("  save20 ") == "SAVE20"


class TestValidate:
    def test_usable_rule_passes(self):
        assert isinstance(validate(_rule(), Decimal("100"), NOW), Ok)

    def test_inactive(self):
        assert _reason(validate(_rule(is_active=False), Decimal("100"), NOW)) is Reason.INACTIVE

    def test_not_yet_valid(self):
        rule = _rule(valid_from=NOW + timedelta(hours=1))
        assert _reason(validate(rule, Decimal("100"), NOW)) is Reason.NOT_YET_VALID

    def test_expired(self):
        rule = _rule(valid_until=NOW - timedelta(seconds=1))
        assert _reason(validate(rule, Decimal("100"), NOW)) is Reason.EXPIRED

    def test_usage_limit_is_a_conflict(self):
        match validate(_rule(times_used=5), Decimal("100"), NOW):
            case Error(e):
                assert e.reason is Reason.USAGE_LIMIT_REACHED
                assert e.kind is ErrorKind.CONFLICT
            case Ok(_):
                raise AssertionError("exhausted rule accepted")

    def test_below_min_cart_value(self):
        rule = _rule(min_cart_value=Decimal("500"))
        assert _reason(validate(rule, Decimal("499.99"), NOW)) is Reason.BELOW_MIN_CART_VALUE

    def test_already_applied(self):
        rule = _rule()
        applied = AppliedDiscount.from_rule(rule, NOW)
        assert _reason(validate(rule, Decimal("100"), NOW, applied)) is Reason.ALREADY_APPLIED

    def test_first_failing_check_wins(self):
        rule = _rule(is_active=False, valid_until=NOW - timedelta(days=1), times_used=5)
        assert _reason(validate(rule, Decimal("0"), NOW)) is Reason.INACTIVE


class TestRuleStore:
    async def test_find_by_code_is_case_insensitive(self, sessions, store, add_rule):
        rule = await add_rule("Save20", "20", "150")
        assert rule.code == "SAVE20"

        async with sessions() as session:
            match await store.find_by_code(session, "save20"):
                case Ok(found):
                    assert found.id == rule.id
                case Error(e):
                    raise AssertionError(e)

    async def test_unknown_code_is_not_found(self, sessions, store):
        async with sessions() as session:
            match await store.find_by_code(session, "NOPE"):
                case Error(e):
                    assert e.kind is ErrorKind.NOT_FOUND
                case Ok(_):
                    raise AssertionError("unknown code found")

    async def test_duplicate_code_is_a_conflict(self, sessions, store, add_rule):
        await add_rule("SAVE20", "20", "150")
        admin = DiscountAdmin(sessions, store)
        draft = DiscountDraft(
            code="save20",
            discount_percentage=Decimal("10"),
            max_discount_amount=Decimal("50"),
            valid_from=NOW,
            valid_until=NOW + timedelta(days=1),
            usage_limit=1,
        )
        assert _reason(await admin.create(draft)) is Reason.DUPLICATE_CODE

    async def test_invalid_draft_rejected(self, sessions, store):
        admin = DiscountAdmin(sessions, store)
        draft = DiscountDraft(
            code="BIG",
            discount_percentage=Decimal("120"),
            max_discount_amount=Decimal("50"),
            valid_from=NOW,
            valid_until=NOW + timedelta(days=1),
            usage_limit=1,
        )
        assert _reason(await admin.create(draft)) is Reason.INVALID_DISCOUNT_RULE

    @pytest.mark.parametrize(
        ("percent", "cap", "minimum"),
        [("12.345", "50", "0"), ("10", "50.005", "0"), ("10", "50", "99.999")],
    )
    async def test_sub_cent_values_rejected(self, sessions, store, percent, cap, minimum):
        admin = DiscountAdmin(sessions, store)
        draft = DiscountDraft(
            code="FINE",
            discount_percentage=Decimal(percent),
            max_discount_amount=Decimal(cap),
            min_cart_value=Decimal(minimum),
            valid_from=NOW,
            valid_until=NOW + timedelta(days=1),
            usage_limit=1,
        )
        assert _reason(await admin.create(draft)) is Reason.INVALID_DISCOUNT_RULE

        async with sessions() as session:
            assert await store.list_all(session) == []

    async def test_two_decimal_percentage_is_kept_exactly(self, add_rule):
        rule = await add_rule("EXACT", "12.35", "100.50")

        assert rule.discount_percentage == Decimal("12.35")
        assert rule.max_discount_amount == Decimal("100.50")


class TestIncrementUsage:
    async def test_increments_and_deactivates_at_limit(self, sessions, store, add_rule):
        rule = await add_rule("TWICE", "10", "100", usage_limit=2)

        for expected_used, expected_active in ((1, True), (2, False)):
            async with sessions() as session, session.begin():
                match await store.increment_usage(session, rule.id):
                    case Ok(updated):
                        assert updated.times_used == expected_used
                        assert updated.is_active is expected_active
                    case Error(e):
                        raise AssertionError(e)

        async with sessions() as session, session.begin():
            assert _reason(await store.increment_usage(session, rule.id)) is Reason.USAGE_LIMIT_REACHED

    async def test_missing_rule_is_not_found(self, sessions, store):
        async with sessions() as session, session.begin():
            match await store.increment_usage(session, "dsc_missing"):
                case Error(e):
                    assert e.kind is ErrorKind.NOT_FOUND
                case Ok(_):
                    raise AssertionError("missing rule incremented")

    async def test_concurrent_increments_never_exceed_limit(self, sessions, store, add_rule):
        rule = await add_rule("LAST", "10", "100", usage_limit=3)

        async def attempt():
            async with sessions() as session, session.begin():
                return await store.increment_usage(session, rule.id)

        results = await asyncio.gather(*(attempt() for _ in range(10)))

        assert sum(isinstance(r, Ok) for r in results) == 3
        async with sessions() as session:
            final = await store.get(session, rule.id)
        assert final is not None
        assert final.times_used == 3
        assert final.is_active is False
