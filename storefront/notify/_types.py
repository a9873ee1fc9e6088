"""Notification types."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Notification:
    to: str
    subject: str
    text: str
    html: str = ""


class NotificationSender(Protocol):
    """Delivers one message; may raise, the queue worker logs failures."""

    async def send(self, to: str, subject: str, text: str, html: str) -> None: ...


class LogSender:
    """Sender for environments without a mail transport: writes to the log."""

    def __init__(self, sender_address: str = "orders@storefront.local") -> None:
        self._from = sender_address

    async def send(self, to: str, subject: str, text: str, html: str) -> None:
        logger.info("mail %s -> %s: %s", self._from, to, subject)


__all__ = ("Notification", "NotificationSender", "LogSender")
