"""
Ops runner: one async handler per op type, parameters filled from type hints.

A handler parameter annotated with the op's own type receives the request;
any other annotation receives the service injected for that type.

    runner = ops().on(GetCart, get_cart).compile().inject(CartService, carts)
    match await runner.run(GetCart("u_1")):
        case Ok(cart): ...
"""

from __future__ import annotations

import inspect
from abc import ABC
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, cast, get_type_hints

from kungfu import Error, Ok, Result

type Handler = Callable[..., Awaitable[Result[Any, Any] | Any]]
type OpType = type[Op[Any, Any]]


class OpsError(Exception):
    """The runner is wired wrong: unknown op or a parameter nobody provides."""


class Op[T, E](ABC):
    """Marker base for op dataclasses; ``T``/``E`` are the handler's result types."""


@dataclass(frozen=True, slots=True)
class _Registration:
    handler: Handler
    params: tuple[tuple[str, Any], ...]

    @classmethod
    def of(cls, handler: Handler) -> _Registration:
        hints = get_type_hints(handler)
        names = inspect.signature(handler).parameters
        return cls(handler, tuple((name, hints.get(name)) for name in names))


@dataclass(frozen=True, slots=True)
class OpsBuilder:
    handlers: tuple[tuple[OpType, Handler], ...] = ()

    def on(self, op_type: OpType, handler: Handler) -> OpsBuilder:
        """Register ``handler`` for ``op_type``, replacing an earlier one."""
        kept = tuple((t, h) for t, h in self.handlers if t is not op_type)
        return OpsBuilder((*kept, (op_type, handler)))

    def compile(self) -> Runner:
        return Runner({t: _Registration.of(h) for t, h in self.handlers})


@dataclass(slots=True)
class Runner:
    registry: dict[OpType, _Registration]
    services: dict[type[Any], object] = field(default_factory=dict[type[Any], object])

    def inject(self, typ: type[Any], impl: object) -> Runner:
        self.services[typ] = impl
        return self

    def registered(self, op_type: OpType) -> bool:
        return op_type in self.registry

    async def run[T, E](self, req: Op[T, E]) -> Result[T, E]:
        """Call the op's handler; a plain return value is wrapped in ``Ok``."""
        op_type = type(req)
        reg = self.registry.get(op_type)
        if reg is None:
            raise OpsError(f"No handler registered for {op_type.__name__}")

        kwargs: dict[str, Any] = {}
        for name, typ in reg.params:
            if typ is op_type:
                kwargs[name] = req
            elif typ in self.services:
                kwargs[name] = self.services[typ]
            else:
                raise OpsError(f"{op_type.__name__} handler needs {name}: {typ!r}, nothing provides it")

        out = await reg.handler(**kwargs)
        if isinstance(out, (Ok, Error)):
            return cast(Result[T, E], out)
        return Ok(out)


def ops() -> OpsBuilder:
    return OpsBuilder()


# Reads as ``class GetCart(Returning[Cart, ShopError])``
Returning = Op

__all__ = ("Op", "Returning", "OpsBuilder", "Runner", "OpsError", "ops")
