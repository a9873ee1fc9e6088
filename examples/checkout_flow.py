"""
Checkout flow — cart → discount → checkout → payment confirmation → shipment.

Runs every service against a throwaway SQLite file with printing stand-ins
for the gateway, the dispatcher and the mail sender:

    $ python -m examples.checkout_flow
"""

import tempfile
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

from kungfu import Error, Ok

from storefront._types import utcnow
from storefront.api import build_services
from storefront.checkout import CheckoutRequest, Selection
from storefront.config import Settings
from storefront.db import create_database
from storefront.discounts import DiscountDraft
from storefront.payments import ConfirmPayment, sign_payment
from storefront.shipping import ShippingAddress
from examples._infra import (
    PrintingDispatcher,
    PrintingGateway,
    PrintingSender,
    banner,
    run,
    seed,
)

SECRET = "demo-secret"

ADDRESS = ShippingAddress(
    name="Asha Rao",
    phone="9000000000",
    email="asha@example.com",
    line1="12 MG Road",
    city="Bengaluru",
    state="KA",
    postal_code="560001",
)


async def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        url = f"sqlite+aiosqlite:///{Path(tmp) / 'demo.db'}"
        settings = Settings(
            database_url=url, gateway_key_secret=SECRET, admin_emails=("ops@shop.example",)
        )
        sessions, engine = await create_database(url)
        await seed(sessions)
        dispatcher = PrintingDispatcher()
        shop = build_services(settings, sessions, PrintingGateway(), dispatcher, PrintingSender())
        await shop.queue.start()

        banner("Cart")
        now = utcnow()
        await shop.discounts.create(
            DiscountDraft(
                code="WELCOME10",
                discount_percentage=Decimal("10"),
                max_discount_amount=Decimal("100"),
                valid_from=now - timedelta(days=1),
                valid_until=now + timedelta(days=7),
                usage_limit=1,
            )
        )
        await shop.carts.add_item("u_1", "p_lamp", 1)
        await shop.carts.add_item("u_1", "p_tee", 3)
        match await shop.carts.apply_discount("u_1", "welcome10"):
            case Ok(cart):
                t = cart.totals
                print(f"  gross {t.gross_total}  discount {t.discount_amount}  net {t.net_total}")
                print(f"  shipping {t.shipping_fee}  payable {t.payable}")
            case Error(e):
                print(f"  ✗ {e}")

        banner("Checkout (lamp only)")
        request = CheckoutRequest(
            owner_id="u_1",
            selections=(Selection("p_lamp", 1),),
            payment_method="upi",
            shipping_address=ADDRESS,
        )
        match await shop.checkout.checkout(request):
            case Ok(receipt):
                print(f"  order {receipt.order.id}: {receipt.amount_minor} minor units")
            case Error(e):
                print(f"  ✗ {e}")
                return

        banner("Payment confirmed, dispatcher down")
        dispatcher.down = True
        gid = receipt.gateway_order_id
        confirm = ConfirmPayment(gid, "pay_demo_1", sign_payment(SECRET, gid, "pay_demo_1"))
        match await shop.payments.confirm(confirm):
            case Ok(done):
                print(f"  {done.order.payment_status.value}/{done.order.order_status.value}: {done.message}")
            case Error(e):
                print(f"  ✗ {e}")

        banner("Retry shipment")
        dispatcher.down = False
        match await shop.payments.retry_shipment(receipt.order.id):
            case Ok(done):
                print(f"  shipped={done.shipped} label={done.order.label_url}")
            case Error(e):
                print(f"  ✗ {e}")

        banner("Replay the confirmation")
        match await shop.payments.confirm(confirm):
            case Ok(_):
                print("  ✗ accepted twice")
            case Error(e):
                print(f"  rejected: {e.reason.value}")

        match await shop.carts.get_cart("u_1"):
            case Ok(cart):
                print(f"\n  left in cart: {[(i.product_id, i.quantity) for i in cart.items]}")
            case Error(e):
                print(f"  ✗ {e}")

        await shop.queue.stop()
        await engine.dispose()


if __name__ == "__main__":
    run(main)
