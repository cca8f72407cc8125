"""Fixtures compartidas: SQLite en memoria y componentes del pipeline."""

from datetime import datetime, timezone
from typing import List

import pytest

from common import db as db_module
from common.config import Settings
from monitor_api.alarms import AlarmStateTracker
from monitor_api.live import LiveBroadcaster
from monitor_api.notifications import Notification
from monitor_api.persistence import ensure_schema
from monitor_api.pipeline import IngestionPipeline
from monitor_api.registry import DeviceRegistry
from monitor_api.services import set_services
from monitor_api.thresholds import ThresholdConfigStore

T0 = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


def make_settings(**overrides) -> Settings:
    values = dict(
        database_url="sqlite://",
        gateway_token=None,
        notify_webhook_url=None,
        notify_recipient_group="kitchen-managers",
        notify_timeout_seconds=1.0,
        notify_queue_size=10,
        notify_workers=1,
        stream_heartbeat_seconds=0.05,
        stream_queue_size=5,
        device_cache_ttl_seconds=60,
        readings_retention_days=30,
        log_level="DEBUG",
    )
    values.update(overrides)
    return Settings(**values)


class RecordingDispatcher:
    """Dispatcher falso: guarda lo que se le envía."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: List[Notification] = []
        self.fail = fail

    def submit(self, notification: Notification) -> bool:
        if self.fail:
            raise RuntimeError("transport down")
        self.sent.append(notification)
        return True


@pytest.fixture
def engine():
    eng = db_module.build_engine("sqlite://")
    ensure_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    factory = db_module.configure(engine)
    yield factory
    set_services(None)
    db_module.reset()


@pytest.fixture
def config_store(session_factory) -> ThresholdConfigStore:
    return ThresholdConfigStore(session_factory)


@pytest.fixture
def registry(session_factory) -> DeviceRegistry:
    return DeviceRegistry(session_factory, cache_ttl_seconds=60)


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def tracker(session_factory, dispatcher) -> AlarmStateTracker:
    return AlarmStateTracker(session_factory, dispatcher=dispatcher)


@pytest.fixture
def broadcaster() -> LiveBroadcaster:
    return LiveBroadcaster(queue_size=5)


@pytest.fixture
def pipeline(session_factory, registry, config_store, tracker, broadcaster) -> IngestionPipeline:
    return IngestionPipeline(
        session_factory,
        registry=registry,
        config_store=config_store,
        tracker=tracker,
        broadcaster=broadcaster,
    )
