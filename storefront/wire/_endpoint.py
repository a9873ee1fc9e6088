"""
Endpoints pair a runner with the ways its ops are reached.

An exposure is ``(trigger, codec)``: the trigger says where a request comes
in, the codec turns it into an op and the op's result into a response.
Compilers take the exposures they understand and skip the rest.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from storefront.ops import Runner

type Exposure = tuple[Any, Any]


@dataclass(frozen=True, slots=True)
class Endpoint:
    runner: Runner
    exposures: tuple[Exposure, ...] = ()

    def expose(self, trigger: Any, codec: Any) -> Endpoint:
        return Endpoint(self.runner, (*self.exposures, (trigger, codec)))


def endpoint(runner: Runner) -> Endpoint:
    return Endpoint(runner)


@dataclass(slots=True)
class Application:
    endpoints: list[Endpoint] = field(default_factory=list[Endpoint])

    def mount(self, *endpoints: Endpoint) -> Application:
        self.endpoints.extend(endpoints)
        return self


def application() -> Application:
    return Application()


__all__ = ("Exposure", "Endpoint", "endpoint", "Application", "application")
