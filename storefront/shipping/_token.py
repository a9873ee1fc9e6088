"""
Bearer token cache for the dispatcher.

Lifecycle: empty → filled by the first request (or after invalidation) →
expires after ``ttl`` seconds or is invalidated by a 401.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class TokenCache:
    def __init__(
        self,
        login: Callable[[], Awaitable[str]],
        ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._login = login
        self._ttl = ttl
        self._clock = clock
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    @property
    def cached(self) -> str | None:
        if self._token is not None and self._clock() < self._expires_at:
            return self._token
        return None

    async def get(self) -> str:
        token = self.cached
        if token is not None:
            return token
        async with self._lock:
            # Another waiter may have logged in while we queued for the lock.
            token = self.cached
            if token is not None:
                return token
            logger.info("Authenticating with shipment dispatcher")
            token = await self._login()
            self._token = token
            self._expires_at = self._clock() + self._ttl
            return token

    def invalidate(self, stale: str | None = None) -> None:
        """Drop the token; with ``stale`` given, only if it is still the cached one."""
        if stale is None or stale == self._token:
            self._token = None
            self._expires_at = 0.0


__all__ = ("TokenCache",)
