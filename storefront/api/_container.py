"""
Service wiring — builds every service from settings and collaborators and
injects them into the ops runner.
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront import ops as O
from storefront._types import Clock, utcnow
from storefront.cart import CartService
from storefront.catalog import SQLAlchemyCatalog
from storefront.checkout import CheckoutOrchestrator
from storefront.config import Settings
from storefront.db import SessionFactory
from storefront.discounts import DiscountAdmin, DiscountRuleStore
from storefront.notify import AdminAlerts, NotificationQueue, NotificationSender
from storefront.orders import OrderAdmin
from storefront.payments import PaymentConfirmationHandler, PaymentGateway
from storefront.shipping import ShipmentDispatcher


@dataclass(frozen=True, slots=True)
class Services:
    carts: CartService
    checkout: CheckoutOrchestrator
    payments: PaymentConfirmationHandler
    orders: OrderAdmin
    discounts: DiscountAdmin
    alerts: AdminAlerts
    queue: NotificationQueue


def build_services(
    settings: Settings,
    sessions: SessionFactory,
    gateway: PaymentGateway,
    dispatcher: ShipmentDispatcher,
    sender: NotificationSender,
    clock: Clock = utcnow,
) -> Services:
    catalog = SQLAlchemyCatalog()
    store = DiscountRuleStore(clock)
    policy = settings.shipping_policy
    queue = NotificationQueue(sender)
    alerts = AdminAlerts(sessions, queue, settings.admin_emails, clock)
    carts = CartService(sessions, catalog, store, policy, clock)
    return Services(
        carts=carts,
        checkout=CheckoutOrchestrator(
            sessions,
            catalog,
            gateway,
            policy,
            currency=settings.currency,
            payment_methods=settings.payment_methods,
            gateway_timeout=settings.gateway_timeout,
            gateway_key_id=settings.gateway_key_id,
            clock=clock,
        ),
        payments=PaymentConfirmationHandler(
            sessions,
            gateway,
            dispatcher,
            carts,
            store,
            queue,
            alerts,
            secret=settings.gateway_key_secret,
            verify_capture=settings.verify_capture,
            gateway_timeout=settings.gateway_timeout,
            dispatcher_timeout=settings.shipper_timeout,
            clock=clock,
        ),
        orders=OrderAdmin(sessions, dispatcher, settings.shipper_timeout, clock),
        discounts=DiscountAdmin(sessions, store),
        alerts=alerts,
        queue=queue,
    )


def inject_services(runner: O.Runner, services: Services) -> O.Runner:
    return (
        runner.inject(CartService, services.carts)
        .inject(CheckoutOrchestrator, services.checkout)
        .inject(PaymentConfirmationHandler, services.payments)
        .inject(OrderAdmin, services.orders)
        .inject(DiscountAdmin, services.discounts)
        .inject(AdminAlerts, services.alerts)
    )


__all__ = ("Services", "build_services", "inject_services")
