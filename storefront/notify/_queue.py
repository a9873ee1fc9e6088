"""
Notification queue — callers enqueue and return; a worker task delivers.

    queue = NotificationQueue(sender)
    await queue.start()
    queue.enqueue(Notification(to, subject, text, html))
    ...
    await queue.stop()   # drains what is already queued
"""

from __future__ import annotations

import asyncio
import logging

from storefront.notify._types import Notification, NotificationSender

logger = logging.getLogger(__name__)


class NotificationQueue:
    def __init__(self, sender: NotificationSender, maxsize: int = 1000) -> None:
        self._sender = sender
        self._queue: asyncio.Queue[Notification] = asyncio.Queue(maxsize=maxsize)
        self._worker: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        if not self.running:
            self._worker = asyncio.create_task(self._run(), name="notification-worker")

    def enqueue(self, message: Notification) -> bool:
        """Queue a message without waiting. Returns False (and logs) if the queue is full."""
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.error("Notification queue full, dropping %r to %s", message.subject, message.to)
            return False
        return True

    async def join(self) -> None:
        """Wait until every queued message has been handled."""
        await self._queue.join()

    async def stop(self) -> None:
        if self._worker is None:
            return
        if self.running:
            await self._queue.join()
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def _run(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                await self._sender.send(message.to, message.subject, message.text, message.html)
            except Exception:
                logger.exception("Failed to send %r to %s", message.subject, message.to)
            finally:
                self._queue.task_done()


__all__ = ("NotificationQueue",)
