"""
Cart service — every mutation is load → check against the catalog →
mutate → reprice → persist, inside one transaction.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from kungfu import Error, Ok, Result

from storefront._errors import Errors, Reason, ShopError
from storefront._types import Clock, utcnow
from storefront.cart._repo import CartRepository
from storefront.cart._types import Cart, LineItem
from storefront.catalog import Catalog, Product
from storefront.db import SessionFactory, in_transaction
from storefront.discounts import (
    AppliedDiscount,
    DiscountRuleStore,
    canonical_code,
    validate,
)
from storefront.pricing import ShippingPolicy

logger = logging.getLogger(__name__)


def _check_quantity(quantity: int) -> Result[int, ShopError]:
    if quantity < 1:
        return Error(Errors.validation(Reason.INVALID_QUANTITY, "Quantity must be at least 1"))
    return Ok(quantity)


def _check_stock(product: Product, quantity: int) -> Result[int, ShopError]:
    if quantity > product.stock:
        return Error(
            Errors.validation(
                Reason.INSUFFICIENT_STOCK,
                f"Only {product.stock} units of {product.name} available",
            )
        )
    return Ok(quantity)


class CartService:
    """
    Cart operations for one owner at a time.

    Adding an item that is already in the cart is split into two explicit
    operations: ``add_item`` increments the quantity, ``set_item`` overwrites it.
    """

    def __init__(
        self,
        sessions: SessionFactory,
        catalog: Catalog,
        discounts: DiscountRuleStore,
        policy: ShippingPolicy,
        clock: Clock = utcnow,
    ) -> None:
        self._sessions = sessions
        self._catalog = catalog
        self._discounts = discounts
        self._policy = policy
        self._clock = clock
        self._repo = CartRepository(clock)

    @property
    def repository(self) -> CartRepository:
        return self._repo

    # ───────────────────────────────────────────────────────────────────────
    # Reads
    # ───────────────────────────────────────────────────────────────────────

    async def get_cart(self, owner_id: str) -> Result[Cart, ShopError]:
        """
        Current cart, or an empty unsaved one.

        Lines whose product has been deleted and a discount whose rule is gone
        or no longer usable are dropped here, on read.
        """

        async def work(session: AsyncSession) -> Result[Cart, ShopError]:
            cart = await self._repo.load(session, owner_id)
            if cart is None:
                return Ok(Cart(owner_id=owner_id))

            kept: list[LineItem] = []
            for item in cart.items:
                if await self._catalog.find_by_id(session, item.product_id) is not None:
                    kept.append(item)

            applied = cart.applied_discount
            if applied is not None and not await self._discount_still_usable(session, applied):
                logger.info("Dropping stale discount %s from cart of %s", applied.code, owner_id)
                applied = None

            if len(kept) == len(cart.items) and applied == cart.applied_discount:
                return Ok(cart)

            logger.info(
                "Filtered %d stale line(s) from cart of %s",
                len(cart.items) - len(kept),
                owner_id,
            )
            cleaned = Cart(owner_id=owner_id, items=tuple(kept), applied_discount=applied)
            return Ok(await self._save(session, cleaned))

        return await in_transaction(self._sessions, work, what="get cart")

    # ───────────────────────────────────────────────────────────────────────
    # Items
    # ───────────────────────────────────────────────────────────────────────

    async def add_item(
        self, owner_id: str, product_id: str, quantity: int
    ) -> Result[Cart, ShopError]:
        """Add ``quantity`` units, on top of what the cart already holds."""
        return await self._put_item(owner_id, product_id, quantity, increment=True)

    async def set_item(
        self, owner_id: str, product_id: str, quantity: int
    ) -> Result[Cart, ShopError]:
        """Hold exactly ``quantity`` units, adding the line if needed."""
        return await self._put_item(owner_id, product_id, quantity, increment=False)

    async def update_quantity(
        self, owner_id: str, product_id: str, quantity: int
    ) -> Result[Cart, ShopError]:
        """Change the quantity of a line that must already be in the cart."""
        match _check_quantity(quantity):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass

        async def work(session: AsyncSession) -> Result[Cart, ShopError]:
            cart = await self._repo.load(session, owner_id)
            if cart is None:
                return Error(Errors.not_found("Cart", owner_id))
            line = cart.find(product_id)
            if line is None:
                return Error(Errors.not_found("Cart item", product_id))

            product = await self._catalog.find_by_id(session, product_id)
            if product is None:
                return Error(Errors.not_found("Product", product_id))
            match _check_stock(product, quantity):
                case Error(e):
                    return Error(e)
                case Ok(_):
                    pass

            updated = LineItem(product.id, quantity, product.price, product.name)
            return Ok(await self._save(session, cart.with_line(updated)))

        return await in_transaction(self._sessions, work, what="update quantity")

    async def remove_item(self, owner_id: str, product_id: str) -> Result[Cart, ShopError]:
        async def work(session: AsyncSession) -> Result[Cart, ShopError]:
            cart = await self._repo.load(session, owner_id)
            if cart is None:
                return Error(Errors.not_found("Cart", owner_id))
            if cart.find(product_id) is None:
                return Error(Errors.not_found("Cart item", product_id))
            return Ok(await self._save(session, cart.without(product_id)))

        return await in_transaction(self._sessions, work, what="remove item")

    async def clear(self, owner_id: str) -> Result[Cart, ShopError]:
        """Empty items and discount, zero the totals. Also used on logout."""

        async def work(session: AsyncSession) -> Result[Cart, ShopError]:
            cart = await self._repo.load(session, owner_id)
            if cart is None:
                return Error(Errors.not_found("Cart", owner_id))
            return Ok(await self._save(session, cart.emptied()))

        return await in_transaction(self._sessions, work, what="clear cart")

    # ───────────────────────────────────────────────────────────────────────
    # Discounts
    # ───────────────────────────────────────────────────────────────────────

    async def apply_discount(self, owner_id: str, code: str) -> Result[Cart, ShopError]:
        async def work(session: AsyncSession) -> Result[Cart, ShopError]:
            cart = await self._repo.load(session, owner_id)
            if cart is None:
                return Error(Errors.not_found("Cart", owner_id))

            match await self._discounts.find_by_code(session, code):
                case Error(e):
                    return Error(e)
                case Ok(rule):
                    pass

            now = self._clock()
            match validate(rule, cart.totals.gross_total, now, cart.applied_discount):
                case Error(e):
                    return Error(e)
                case Ok(_):
                    pass

            if cart.applied_discount is not None:
                return Error(
                    Errors.conflict(
                        Reason.DISCOUNT_ALREADY_ACTIVE,
                        f"Remove discount {cart.applied_discount.code} before applying {rule.code}",
                    )
                )

            applied = AppliedDiscount.from_rule(rule, now)
            return Ok(await self._save(session, cart.with_discount(applied)))

        return await in_transaction(self._sessions, work, what="apply discount")

    async def remove_discount(self, owner_id: str, code: str) -> Result[Cart, ShopError]:
        async def work(session: AsyncSession) -> Result[Cart, ShopError]:
            cart = await self._repo.load(session, owner_id)
            applied = cart.applied_discount if cart else None
            if cart is None or applied is None or applied.code != canonical_code(code):
                return Error(Errors.not_found("Applied discount", canonical_code(code)))
            return Ok(await self._save(session, cart.with_discount(None)))

        return await in_transaction(self._sessions, work, what="remove discount")

    async def release_discount(self, owner_id: str) -> Result[Cart | None, ShopError]:
        """Drop whatever discount is applied and reprice; no-op without a cart."""

        async def work(session: AsyncSession) -> Result[Cart | None, ShopError]:
            cart = await self._repo.load(session, owner_id)
            if cart is None:
                return Ok(None)
            if cart.applied_discount is None:
                return Ok(cart)
            return Ok(await self._save(session, cart.with_discount(None)))

        return await in_transaction(self._sessions, work, what="release discount")

    # ───────────────────────────────────────────────────────────────────────
    # Internals
    # ───────────────────────────────────────────────────────────────────────

    async def _put_item(
        self, owner_id: str, product_id: str, quantity: int, increment: bool
    ) -> Result[Cart, ShopError]:
        match _check_quantity(quantity):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass

        async def work(session: AsyncSession) -> Result[Cart, ShopError]:
            product = await self._catalog.find_by_id(session, product_id)
            if product is None:
                return Error(Errors.not_found("Product", product_id))

            cart = await self._repo.load(session, owner_id) or Cart(owner_id=owner_id)
            existing = cart.find(product_id)
            wanted = quantity + existing.quantity if increment and existing else quantity

            match _check_stock(product, wanted):
                case Error(e):
                    return Error(e)
                case Ok(_):
                    pass

            line = LineItem(product.id, wanted, product.price, product.name)
            return Ok(await self._save(session, cart.with_line(line)))

        return await in_transaction(self._sessions, work, what="add item")

    async def _save(self, session: AsyncSession, cart: Cart) -> Cart:
        return await self._repo.save(session, cart.repriced(self._policy))

    async def _discount_still_usable(self, session: AsyncSession, applied: AppliedDiscount) -> bool:
        rule = await self._discounts.get(session, applied.rule_id)
        if rule is None:
            return False
        return rule.is_active and not rule.exhausted and self._clock() <= rule.valid_until


__all__ = ("CartService",)
