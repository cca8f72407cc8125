"""Formato Server-Sent Events para el stream en vivo."""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable

from .broadcaster import LiveBroadcaster, LiveEvent

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}


def format_sse(event: LiveEvent) -> str:
    data = json.dumps(event.data, default=str, ensure_ascii=False)
    return f"event: {event.event}\ndata: {data}\n\n"


async def event_stream(
    broadcaster: LiveBroadcaster,
    snapshot: Any,
    is_disconnected: Callable[[], Awaitable[bool]],
    heartbeat_seconds: float,
) -> AsyncIterator[str]:
    """Eventos del suscriptor en formato SSE, con heartbeat cuando no hay datos.

    La suscripción se registra en la primera iteración: si el cliente se
    va antes de que arranque el stream, no queda ningún suscriptor. Al
    cerrarse la conexión (desconexión o cancelación) se da de baja.
    """
    subscription = broadcaster.subscribe(snapshot)
    try:
        while True:
            if await is_disconnected():
                break
            event = await subscription.get(timeout=heartbeat_seconds)
            if event is None:
                event = broadcaster.heartbeat_event()
            yield format_sse(event)
    finally:
        broadcaster.unsubscribe(subscription)
