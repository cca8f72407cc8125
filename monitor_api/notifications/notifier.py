"""Gateway de notificaciones a operadores.

El transporte push real queda fuera del servicio: aquí solo existe
``notify(recipient_group, message)``. Con ``NOTIFY_WEBHOOK_URL``
configurado se reenvía por HTTP; si no, solo se loguea.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

import requests

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    recipient_group: str
    title: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)


class Notifier(Protocol):
    def notify(self, notification: Notification) -> bool:
        """Entrega la notificación. True si el transporte la aceptó."""
        ...


class LoggingNotifier:
    """Notifier sin transporte: deja constancia en el log."""

    def notify(self, notification: Notification) -> bool:
        logger.warning(
            "[PUSH] (sin webhook) group=%s title=%s message=%s",
            notification.recipient_group,
            notification.title,
            notification.message,
        )
        return True


class WebhookNotifier:
    """Dispara push vía webhook HTTP.

    No lanza excepciones: si falla solo loguea el error y devuelve False.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float = 5.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._url = url
        self._timeout = timeout_seconds
        self._session = session or requests.Session()

    def notify(self, notification: Notification) -> bool:
        try:
            response = self._session.post(
                self._url,
                json={
                    "recipientGroup": notification.recipient_group,
                    "title": notification.title,
                    "message": notification.message,
                    "data": notification.data,
                },
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error("[PUSH] Error enviando notificación group=%s: %s", notification.recipient_group, e)
            return False

        if response.ok:
            logger.info("[PUSH] Notificación enviada group=%s", notification.recipient_group)
            return True

        logger.warning(
            "[PUSH] Webhook rechazó la notificación: %s %s",
            response.status_code,
            response.text[:200],
        )
        return False


def create_notifier(webhook_url: Optional[str], timeout_seconds: float = 5.0) -> Notifier:
    if webhook_url:
        logger.info("[PUSH] Usando webhook de notificaciones")
        return WebhookNotifier(webhook_url, timeout_seconds=timeout_seconds)
    logger.warning("[PUSH] NOTIFY_WEBHOOK_URL no configurado - alertas solo en log")
    return LoggingNotifier()
