"""Broadcaster en vivo hacia dashboards.

Cada suscriptor tiene su propia ``asyncio.Queue`` acotada que vive en el
event loop de su conexión. ``publish`` puede llamarse desde cualquier hilo
(los endpoints de ingesta corren en el threadpool): toma una copia del
conjunto de suscriptores bajo un lock corto y entrega cada evento con
``call_soon_threadsafe``, sin esperar a nadie.

Sin backlog: si la cola de un suscriptor se llena se descarta el evento
más viejo. Un dashboard que reconecta recibe un snapshot fresco.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass
from threading import Lock
from typing import Any, Optional, Set

from ..metrics import STREAM_SUBSCRIBERS
from ..timeutils import isoformat, utcnow

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 100

_ids = itertools.count(1)


@dataclass(frozen=True)
class LiveEvent:
    event: str
    data: Any


class Subscription:
    """Handle de un suscriptor en vivo."""

    def __init__(self, loop: asyncio.AbstractEventLoop, maxsize: int = DEFAULT_QUEUE_SIZE) -> None:
        self.id = next(_ids)
        self.loop = loop
        self.queue: "asyncio.Queue[LiveEvent]" = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def offer(self, event: LiveEvent) -> None:
        """Encola sin bloquear. Debe ejecutarse en el loop del suscriptor."""
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            # Se descarta el más viejo y se conserva el último.
            try:
                self.queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
            self.dropped += 1
            try:
                self.queue.put_nowait(event)
            except asyncio.QueueFull:
                pass

    def post(self, event: LiveEvent) -> bool:
        """Entrega thread-safe. False si el loop del suscriptor ya cerró."""
        try:
            self.loop.call_soon_threadsafe(self.offer, event)
        except RuntimeError:
            return False
        return True

    async def get(self, timeout: Optional[float] = None) -> Optional[LiveEvent]:
        """Siguiente evento, o None si pasa ``timeout`` sin eventos."""
        if timeout is None:
            return await self.queue.get()
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None


class LiveBroadcaster:
    """Registro concurrente de suscriptores + fan-out no bloqueante."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self._queue_size = queue_size
        self._lock = Lock()
        self._subscribers: Set[Subscription] = set()
        self._published = 0

    def subscribe(self, snapshot: Any) -> Subscription:
        """Registra un suscriptor. El primer evento de su cola es el snapshot.

        Debe llamarse desde el event loop de la conexión.
        """
        loop = asyncio.get_running_loop()
        subscription = Subscription(loop, maxsize=self._queue_size)
        subscription.offer(LiveEvent("snapshot", snapshot))
        with self._lock:
            self._subscribers.add(subscription)
            count = len(self._subscribers)
        STREAM_SUBSCRIBERS.set(count)
        logger.info("[STREAM] Suscriptor conectado id=%s total=%d", subscription.id, count)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscribers.discard(subscription)
            count = len(self._subscribers)
        STREAM_SUBSCRIBERS.set(count)
        logger.info("[STREAM] Suscriptor desconectado id=%s total=%d", subscription.id, count)

    def publish(self, event_type: str, payload: Any) -> int:
        """Fan-out a todos los suscriptores actuales. Devuelve a cuántos se entregó."""
        event = LiveEvent(event_type, payload)
        with self._lock:
            subscribers = list(self._subscribers)
            self._published += 1

        delivered = 0
        dead: list[Subscription] = []
        for subscription in subscribers:
            if subscription.post(event):
                delivered += 1
            else:
                dead.append(subscription)

        if dead:
            with self._lock:
                for subscription in dead:
                    self._subscribers.discard(subscription)
                STREAM_SUBSCRIBERS.set(len(self._subscribers))
            logger.info("[STREAM] %d suscriptores con loop cerrado eliminados", len(dead))
        return delivered

    def heartbeat_event(self) -> LiveEvent:
        return LiveEvent("heartbeat", {"ts": isoformat(utcnow())})

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    @property
    def stats(self) -> dict:
        with self._lock:
            return {
                "subscribers": len(self._subscribers),
                "published": self._published,
                "dropped": sum(s.dropped for s in self._subscribers),
            }
