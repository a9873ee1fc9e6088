"""
Checkout orchestrator — cart selection → payment intent → Pending order.

The gateway call happens before any transaction is opened; the order insert
and the cart shrink then commit together:

    1. validate     payment method, selection, cart lines, current prices
    2. price        selected lines + the cart's applied discount
    3. reserve      gateway intent for the payable amount (bounded timeout)
    4. persist      Pending/Pending order with frozen snapshots   ┐ one
    5. shrink       remove checked-out quantities from the cart   ┘ transaction

Steps 3 and 4–5 run as a saga: if persisting fails, the intent's compensator
logs it as orphaned (unused intents expire at the gateway).
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from kungfu import Error, LazyCoroResult, Ok, Result

from storefront import saga as S
from storefront._errors import Errors, Reason, ShopError
from storefront._types import Clock, new_id, utcnow
from storefront.cart import CartRepository
from storefront.catalog import Catalog, Product
from storefront.checkout._quote import check_selection, quote, shrink
from storefront.checkout._types import CheckoutReceipt, CheckoutRequest, Quote
from storefront.db import SessionFactory, in_transaction
from storefront.orders import Order, OrderRepository, OrderStatus, PaymentStatus
from storefront.payments import PaymentGateway, PaymentIntent, gateway_error
from storefront.pricing import ShippingPolicy, to_minor_units

logger = logging.getLogger(__name__)


class CheckoutOrchestrator:
    def __init__(
        self,
        sessions: SessionFactory,
        catalog: Catalog,
        gateway: PaymentGateway,
        policy: ShippingPolicy,
        *,
        currency: str = "INR",
        payment_methods: tuple[str, ...] = ("razorpay", "upi"),
        gateway_timeout: float = 10.0,
        gateway_key_id: str = "",
        clock: Clock = utcnow,
    ) -> None:
        self._sessions = sessions
        self._catalog = catalog
        self._gateway = gateway
        self._policy = policy
        self._currency = currency
        self._payment_methods = payment_methods
        self._gateway_timeout = gateway_timeout
        self._gateway_key_id = gateway_key_id
        self._clock = clock
        self._carts = CartRepository(clock)
        self._orders = OrderRepository(clock)

    async def checkout(self, request: CheckoutRequest) -> Result[CheckoutReceipt, ShopError]:
        method = request.payment_method.strip().lower()
        if method not in self._payment_methods:
            return Error(
                Errors.validation(
                    Reason.INVALID_PAYMENT_METHOD,
                    f"Unsupported payment method {request.payment_method!r}",
                )
            )
        match check_selection(request.selections):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass

        match await self._quote(request):
            case Error(e):
                return Error(e)
            case Ok(priced):
                pass

        receipt = new_id("rcpt")
        amount_minor = to_minor_units(priced.totals.payable)

        reserve = S.from_async(
            lambda: self._gateway.create_intent(
                amount_minor, self._currency, receipt, {"owner": request.owner_id}
            ),
            on_error=gateway_error,
            compensate=self._orphaned,
            name="reserve-payment",
            timeout=self._gateway_timeout,
            on_timeout=lambda: Errors.timeout("Payment gateway"),
        )

        def persist_step(intent: PaymentIntent) -> S.SagaStep[Order, ShopError]:
            async def run() -> Result[Order, ShopError]:
                return await self._persist(request, method, priced, receipt, intent)

            return S.step(LazyCoroResult(run), name="persist-order")

        match await S.run_chain(reserve.then(persist_step)):
            case Ok(done):
                order = done.value
                logger.info(
                    "Order %s created for %s: %s %s (intent %s)",
                    order.id,
                    order.owner_id,
                    order.total_amount,
                    order.currency,
                    order.gateway_order_id,
                )
                return Ok(
                    CheckoutReceipt(
                        order=order,
                        amount_minor=amount_minor,
                        gateway_key_id=self._gateway_key_id,
                    )
                )
            case Error(failure):
                return Error(failure.error)

    # ───────────────────────────────────────────────────────────────────────
    # Steps
    # ───────────────────────────────────────────────────────────────────────

    async def _quote(self, request: CheckoutRequest) -> Result[Quote, ShopError]:
        async def work(session: AsyncSession) -> Result[Quote, ShopError]:
            return await self._quote_in(session, request)

        return await in_transaction(self._sessions, work, what="checkout validation")

    async def _quote_in(self, session: AsyncSession, request: CheckoutRequest) -> Result[Quote, ShopError]:
        cart = await self._carts.load(session, request.owner_id)
        products: dict[str, Product] = {}
        for sel in request.selections:
            product = await self._catalog.find_by_id(session, sel.product_id)
            if product is not None:
                products[product.id] = product
        return quote(cart, request.selections, products, self._policy)

    async def _persist(
        self,
        request: CheckoutRequest,
        method: str,
        priced: Quote,
        receipt: str,
        intent: PaymentIntent,
    ) -> Result[Order, ShopError]:
        async def work(session: AsyncSession) -> Result[Order, ShopError]:
            # The cart may have changed while the gateway was being called.
            match await self._quote_in(session, request):
                case Error(e):
                    return Error(e)
                case Ok(fresh):
                    pass
            if fresh != priced:
                return Error(
                    Errors.conflict(Reason.CART_CHANGED, "Cart changed during checkout, try again")
                )

            now = self._clock()
            order = await self._orders.insert(
                session,
                Order(
                    id=new_id("ord"),
                    owner_id=request.owner_id,
                    receipt=receipt,
                    lines=priced.lines,
                    totals=priced.totals,
                    currency=self._currency,
                    payment_method=method,
                    discount=priced.discount,
                    payment_status=PaymentStatus.PENDING,
                    order_status=OrderStatus.PENDING,
                    gateway_order_id=intent.intent_id,
                    shipping_address=request.shipping_address,
                    created_at=now,
                    updated_at=now,
                ),
            )

            cart = await self._carts.load(session, request.owner_id)
            if cart is None:
                return Error(Errors.not_found("Cart", request.owner_id))
            remaining = shrink(cart, request.selections)
            if remaining.is_empty:
                await self._carts.delete(session, request.owner_id)
            else:
                await self._carts.save(session, remaining.repriced(self._policy))
            return Ok(order)

        return await in_transaction(self._sessions, work, what="persist order")

    async def _orphaned(self, intent: PaymentIntent) -> None:
        logger.warning(
            "Payment intent %s (receipt %s) left unused after failed checkout",
            intent.intent_id,
            intent.receipt,
        )


__all__ = ("CheckoutOrchestrator",)
