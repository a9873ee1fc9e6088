"""
Request/response codec: request model → op, op result → response model.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from kungfu import Result

from storefront.ops import Op


class ToDomain(Protocol):
    def to_domain(self) -> Op[Any, Any]: ...


class FromDomain(Protocol):
    @classmethod
    def from_domain(cls, result: Result[Any, Any]) -> FromDomain: ...


type StatusOf = Callable[[Result[Any, Any]], int]


def always_ok(result: Result[Any, Any]) -> int:
    return 200


@dataclass(frozen=True, slots=True)
class RequestResponseCodec:
    """``status`` maps a result to the transport status (HTTP code for routes)."""

    request: type[ToDomain]
    response: type[FromDomain]
    status: StatusOf = always_ok


__all__ = ("ToDomain", "FromDomain", "StatusOf", "always_ok", "RequestResponseCodec")
