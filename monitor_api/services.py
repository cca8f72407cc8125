"""Instancias compartidas del proceso.

Centraliza la creación de los componentes para que los endpoints, el
lifespan de la app y los tests usen las mismas instancias.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

from common.config import Settings, get_settings
from common.db import get_session_factory

from .alarms import AlarmStateTracker
from .live import LiveBroadcaster
from .notifications import NotificationDispatcher, create_dispatcher, create_notifier
from .pipeline import IngestionPipeline
from .registry import DeviceRegistry
from .thresholds import ThresholdConfigStore

logger = logging.getLogger(__name__)


class Services:
    def __init__(self, settings: Settings, session_factory=None) -> None:
        self.settings = settings
        self.session_factory = session_factory or get_session_factory()
        self.config_store = ThresholdConfigStore(self.session_factory)
        self.registry = DeviceRegistry(
            self.session_factory, cache_ttl_seconds=settings.device_cache_ttl_seconds
        )
        self.dispatcher: NotificationDispatcher = create_dispatcher(
            create_notifier(settings.notify_webhook_url, settings.notify_timeout_seconds),
            max_queue_size=settings.notify_queue_size,
            num_workers=settings.notify_workers,
        )
        self.tracker = AlarmStateTracker(
            self.session_factory,
            dispatcher=self.dispatcher,
            recipient_group=settings.notify_recipient_group,
        )
        self.broadcaster = LiveBroadcaster(queue_size=settings.stream_queue_size)
        self.pipeline = IngestionPipeline(
            self.session_factory,
            registry=self.registry,
            config_store=self.config_store,
            tracker=self.tracker,
            broadcaster=self.broadcaster,
        )


_services: Optional[Services] = None
_lock = Lock()


def get_services() -> Services:
    """Singleton de servicios (dependencia FastAPI)."""
    global _services
    if _services is None:
        with _lock:
            if _services is None:
                _services = Services(get_settings())
                logger.info("[CONFIG] Servicios inicializados")
    return _services


def set_services(services: Optional[Services]) -> None:
    """Reemplaza la instancia global (tests)."""
    global _services
    with _lock:
        if _services is not None and services is not _services:
            _services.dispatcher.stop(drain=False)
        _services = services
