"""
Saga execution: run steps in order, undo completed ones when a later step fails.
"""

from __future__ import annotations

import asyncio
import logging

from kungfu import Error, Ok, Result

from storefront.saga._types import Compensator, SagaError, SagaResult, SagaStep, Then

logger = logging.getLogger(__name__)

type Undo = tuple[str, object, Compensator[object]]


async def _run_step[T, E](step: SagaStep[T, E], undo: list[Undo]) -> Result[T, E]:
    """Run one step; on success push its compensator onto ``undo``."""
    try:
        async with asyncio.timeout(step.timeout):
            result = await step.action
    except TimeoutError:
        logger.warning("Saga step %s timed out after %ss", step.name, step.timeout)
        if step.on_timeout is None:
            raise
        return Error(step.on_timeout())

    match result:
        case Ok(value):
            if step.compensate is not None:
                undo.append((step.name, value, step.compensate))  # type: ignore[arg-type]
            return Ok(value)
        case Error(e):
            logger.info("Saga step %s failed: %s", step.name, e)
            return Error(e)


async def _run_compensators(undo: list[Undo]) -> tuple[int, int]:
    """Newest first; a failing compensator is logged and does not stop the rest."""
    done = failed = 0
    for name, value, compensate in reversed(undo):
        try:
            await compensate(value)
        except Exception:
            logger.exception("Compensator for saga step %s failed", name)
            failed += 1
        else:
            done += 1
    return done, failed


async def run_chain[T, U, E, E2](
    chain: Then[T, U, E, E2],
) -> Result[SagaResult[U], SagaError[E | E2]]:
    """
    First step, then the step built from its value.

        match await S.run_chain(S.step(reserve, release).then(persist)):
            case Ok(done): done.value
            case Error(failure): failure.error, failure.rollback_complete
    """
    undo: list[Undo] = []

    match await _run_step(chain.inner, undo):
        case Error(e):
            return Error(SagaError(e, step_failed=1, compensators_run=0, compensators_failed=0))
        case Ok(first):
            pass

    match await _run_step(chain.f(first), undo):
        case Ok(value):
            return Ok(SagaResult(value, steps_executed=2, compensators_recorded=len(undo)))
        case Error(e2):
            done, failed = await _run_compensators(undo)
            return Error(
                SagaError(e2, step_failed=2, compensators_run=done, compensators_failed=failed)
            )


__all__ = ("run_chain",)
