"""Despacho asíncrono de notificaciones.

Desacopla el tracker de alarmas del transporte: ``submit()`` encola y
retorna de inmediato; hilos worker llaman al notifier. Una cola acotada
evita crecer sin límite si el transporte se cuelga.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Optional

from .notifier import Notification, Notifier

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 200
DEFAULT_NUM_WORKERS = 2


class NotificationDispatcher:
    """Cola + hilos worker alrededor de un Notifier.

    - submit() → put_nowait, nunca bloquea
    - Workers → notifier.notify() (I/O de red)
    - Cola llena → se descarta y se cuenta
    """

    def __init__(
        self,
        notifier: Notifier,
        max_queue_size: int = DEFAULT_QUEUE_SIZE,
        num_workers: int = DEFAULT_NUM_WORKERS,
    ) -> None:
        self._notifier = notifier
        self._queue: "queue.Queue[Notification]" = queue.Queue(maxsize=max_queue_size)
        self._num_workers = num_workers
        self._stop_event = threading.Event()
        self._workers: list[threading.Thread] = []

        # Métricas
        self._submitted = 0
        self._dropped = 0
        self._delivered = 0
        self._failed = 0
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return bool(self._workers)

    def start(self) -> None:
        if self._workers:
            return
        self._stop_event.clear()
        for i in range(self._num_workers):
            t = threading.Thread(
                target=self._worker_loop,
                args=(i,),
                daemon=True,
                name=f"notify-worker-{i}",
            )
            t.start()
            self._workers.append(t)
        logger.info(
            "[PUSH] Dispatcher iniciado workers=%d queue_max=%d",
            self._num_workers, self._queue.maxsize,
        )

    def stop(self, drain: bool = True, timeout: float = 5.0) -> None:
        """Detiene los workers. Con drain=True entrega lo pendiente antes."""
        if drain and self._workers:
            self._drain(timeout)
        self._stop_event.set()
        for t in self._workers:
            t.join(timeout=timeout)
        self._workers.clear()
        logger.info("[PUSH] Dispatcher detenido. %s", self.metrics)

    def submit(self, notification: Notification) -> bool:
        """Encola la notificación. False si la cola está llena."""
        try:
            self._queue.put_nowait(notification)
        except queue.Full:
            with self._lock:
                self._dropped += 1
            logger.warning(
                "[PUSH] Cola llena, notificación descartada group=%s title=%s",
                notification.recipient_group, notification.title,
            )
            return False
        with self._lock:
            self._submitted += 1
        return True

    def _drain(self, timeout: float) -> None:
        done = threading.Event()

        def _wait() -> None:
            self._queue.join()
            done.set()

        threading.Thread(target=_wait, daemon=True).start()
        if not done.wait(timeout):
            logger.warning("[PUSH] Drain incompleto, pendientes=%d", self._queue.qsize())

    def _worker_loop(self, worker_id: int) -> None:
        while not self._stop_event.is_set():
            try:
                notification = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue

            try:
                ok = self._notifier.notify(notification)
                with self._lock:
                    if ok:
                        self._delivered += 1
                    else:
                        self._failed += 1
            except Exception as e:
                # Un fallo de entrega nunca sale del worker.
                with self._lock:
                    self._failed += 1
                logger.error("[PUSH] Worker %d error: %s", worker_id, e)
            finally:
                self._queue.task_done()

    @property
    def metrics(self) -> dict:
        with self._lock:
            return {
                "queue_depth": self._queue.qsize(),
                "queue_max": self._queue.maxsize,
                "submitted": self._submitted,
                "dropped": self._dropped,
                "delivered": self._delivered,
                "failed": self._failed,
                "workers": len(self._workers),
            }


def create_dispatcher(
    notifier: Notifier,
    max_queue_size: Optional[int] = None,
    num_workers: Optional[int] = None,
) -> NotificationDispatcher:
    return NotificationDispatcher(
        notifier,
        max_queue_size=max_queue_size or DEFAULT_QUEUE_SIZE,
        num_workers=num_workers or DEFAULT_NUM_WORKERS,
    )
