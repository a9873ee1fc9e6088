"""
Notify — queued customer mails and the admin alert channel.

    queue = NotificationQueue(LogSender())
    await queue.start()
    queue.enqueue(order_confirmation(order))
"""

from storefront.notify._types import Notification, NotificationSender, LogSender
from storefront.notify._queue import NotificationQueue
from storefront.notify._templates import order_confirmation, order_shipped, admin_alert
from storefront.notify._alerts import AdminAlert, AdminAlerts

__all__ = (
    "Notification",
    "NotificationSender",
    "LogSender",
    "NotificationQueue",
    "order_confirmation",
    "order_shipped",
    "admin_alert",
    "AdminAlert",
    "AdminAlerts",
)
