"""
Saga building blocks.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from kungfu import LazyCoroResult

type Compensator[T] = Callable[[T], Awaitable[None]]
"""Gets the value its step produced; undoes or records the side effect."""


@dataclass(frozen=True, slots=True)
class SagaStep[T, E]:
    """
    An action plus the compensator that undoes it.

    ``timeout`` (seconds) cancels the action; ``on_timeout()`` then supplies
    the step's error.
    """

    action: LazyCoroResult[T, E]
    compensate: Compensator[T] | None = None
    name: str = "step"
    timeout: float | None = None
    on_timeout: Callable[[], E] | None = None

    def then[U, E2](self, f: Callable[[T], SagaStep[U, E2]]) -> Then[T, U, E, E2]:
        return Then(self, f)


@dataclass(frozen=True, slots=True)
class Then[T, U, E, E2]:
    """Two steps; the second is built from the first one's value."""

    inner: SagaStep[T, E]
    f: Callable[[T], SagaStep[U, E2]]


@dataclass(frozen=True, slots=True)
class SagaResult[T]:
    value: T
    steps_executed: int
    compensators_recorded: int


@dataclass(frozen=True, slots=True)
class SagaError[E]:
    error: E
    step_failed: int
    compensators_run: int
    compensators_failed: int

    @property
    def rollback_complete(self) -> bool:
        return self.compensators_failed == 0


__all__ = ("Compensator", "SagaStep", "Then", "SagaResult", "SagaError")
