"""
Ops — declarative dispatch with type-hint dependency injection.

    from storefront import ops as O

    @dataclass(frozen=True, slots=True)
    class GetOrder(O.Returning[Order, ShopError]):
        order_id: str

    async def get_order(req: GetOrder, admin: OrderAdmin) -> Result[Order, ShopError]:
        return await admin.get_order(req.order_id)

    runner = O.ops().on(GetOrder, get_order).compile().inject(OrderAdmin, admin)
    result = await runner.run(GetOrder("ord_1"))
"""

from storefront.ops._runner import (
    Op,
    Returning,
    OpsBuilder,
    Runner,
    OpsError,
    ops,
)

__all__ = (
    "Op",
    "Returning",
    "OpsBuilder",
    "Runner",
    "OpsError",
    "ops",
)
