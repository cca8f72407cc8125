"""Notificaciones a operadores (push vía webhook) con despacho asíncrono."""

from .dispatcher import NotificationDispatcher, create_dispatcher
from .notifier import LoggingNotifier, Notification, Notifier, WebhookNotifier, create_notifier

__all__ = [
    "NotificationDispatcher",
    "create_dispatcher",
    "LoggingNotifier",
    "Notification",
    "Notifier",
    "WebhookNotifier",
    "create_notifier",
]
