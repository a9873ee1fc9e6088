"""
HTTP route trigger.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

type Method = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

_WITH_BODY = frozenset({"POST", "PUT", "PATCH"})


@dataclass(frozen=True, slots=True)
class HTTPRouteTrigger:
    """``path`` may hold ``{name}`` placeholders; they bind request fields of the same name."""

    method: Method
    path: str

    @property
    def has_body(self) -> bool:
        return self.method in _WITH_BODY


__all__ = ("Method", "HTTPRouteTrigger")
