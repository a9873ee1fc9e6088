"""
Step constructors.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from combinators import lift as L
from kungfu import LazyCoroResult

from storefront.saga._types import Compensator, SagaStep


def step[T, E](
    action: LazyCoroResult[T, E],
    compensate: Compensator[T] | None = None,
    *,
    name: str = "step",
    timeout: float | None = None,
    on_timeout: Callable[[], E] | None = None,
) -> SagaStep[T, E]:
    """
    Step from an action that already returns a ``Result``.

        persist = S.step(LazyCoroResult(insert_order), name="persist-order")
    """
    if timeout is not None and on_timeout is None:
        raise ValueError("on_timeout is required when timeout is set")
    return SagaStep(action, compensate, name, timeout, on_timeout)


def from_async[T, E](
    action: Callable[[], Awaitable[T]],
    on_error: Callable[[Exception], E],
    compensate: Compensator[T] | None = None,
    *,
    name: str = "step",
    timeout: float | None = None,
    on_timeout: Callable[[], E] | None = None,
) -> SagaStep[T, E]:
    """
    Step from a coroutine that raises on failure; ``on_error`` maps the exception.

        reserve = S.from_async(
            lambda: gateway.create_intent(amount_minor, "INR", receipt, meta),
            on_error=gateway_error,
            compensate=log_orphaned_intent,
            name="reserve-payment",
            timeout=10.0,
            on_timeout=lambda: Errors.timeout("Payment gateway"),
        )
    """
    return step(
        L.catching_async(action, on_error=on_error),
        compensate,
        name=name,
        timeout=timeout,
        on_timeout=on_timeout,
    )


__all__ = ("step", "from_async")
