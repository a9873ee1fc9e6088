"""
Saga — two-step operations with compensation.

    from storefront import saga as S

    chain = S.from_async(reserve, on_error=to_error, compensate=release).then(
        lambda reservation: S.step(persist(reservation))
    )
    match await S.run_chain(chain):
        case Ok(done): done.value
        case Error(failure): failure.error     # ``release`` already ran
"""

from storefront.saga._types import Compensator, SagaStep, Then, SagaResult, SagaError
from storefront.saga._step import step, from_async
from storefront.saga._run import run_chain

__all__ = (
    "Compensator",
    "SagaStep",
    "Then",
    "SagaResult",
    "SagaError",
    "step",
    "from_async",
    "run_chain",
)
