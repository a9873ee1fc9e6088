"""
Administrative alert channel.

Alerts are stored (so they survive a lost mail) and mailed to every admin
address through the notification queue.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from storefront._types import Clock, utcnow
from storefront.db import AdminAlertTable, SessionFactory
from storefront.notify._queue import NotificationQueue
from storefront.notify._templates import admin_alert
from storefront.orders import Order

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AdminAlert:
    id: int
    order_id: str
    stage: str
    message: str
    created_at: datetime


class AdminAlerts:
    def __init__(
        self,
        sessions: SessionFactory,
        queue: NotificationQueue,
        admin_emails: tuple[str, ...] = (),
        clock: Clock = utcnow,
    ) -> None:
        self._sessions = sessions
        self._queue = queue
        self._admin_emails = admin_emails
        self._clock = clock

    async def raise_alert(self, order: Order, stage: str, message: str) -> None:
        """Record and mail an alert. Never raises: this is the last line of escalation."""
        logger.error("ALERT order=%s stage=%s: %s", order.id, stage, message)
        try:
            async with self._sessions() as session, session.begin():
                session.add(
                    AdminAlertTable(
                        order_id=order.id,
                        stage=stage,
                        message=message,
                        created_at=self._clock(),
                    )
                )
        except SQLAlchemyError:
            logger.exception("Could not record alert for order %s", order.id)

        for address in self._admin_emails:
            self._queue.enqueue(admin_alert(address, order, stage, message))

    async def list_alerts(self, order_id: str | None = None) -> list[AdminAlert]:
        query = select(AdminAlertTable).order_by(AdminAlertTable.id)
        if order_id is not None:
            query = query.where(AdminAlertTable.order_id == order_id)
        async with self._sessions() as session:
            rows = (await session.execute(query)).scalars()
            return [
                AdminAlert(
                    id=row.id,
                    order_id=row.order_id,
                    stage=row.stage,
                    message=row.message,
                    created_at=row.created_at,
                )
                for row in rows
            ]


__all__ = ("AdminAlert", "AdminAlerts")
