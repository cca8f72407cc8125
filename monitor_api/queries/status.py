"""Consultas de estado actual por canal (GET latest y snapshot del stream)."""

from __future__ import annotations

from typing import List

from sqlalchemy.orm import sessionmaker

from ..alarms import AlarmStateTracker
from ..domain import EquipmentChannel, evaluate_range
from ..persistence import readings_repository
from ..thresholds import ThresholdConfigStore

NO_DATA = "no-data"


def channel_status(
    session_factory: sessionmaker,
    channel: EquipmentChannel,
    config_store: ThresholdConfigStore,
    tracker: AlarmStateTracker,
) -> dict:
    config = config_store.get(channel)
    with session_factory() as db:
        reading = readings_repository.latest_reading(db, channel)
    status = evaluate_range(reading.temperature, config).value if reading else NO_DATA
    return {
        "channel": channel.value,
        "label": channel.label,
        "status": status,
        "reading": reading.to_payload() if reading else None,
        "config": config.to_payload(),
        "alarm": tracker.get_state(channel).to_payload(),
    }


def latest_status(
    session_factory: sessionmaker,
    config_store: ThresholdConfigStore,
    tracker: AlarmStateTracker,
) -> List[dict]:
    """Una entrada por canal, en el orden del enum."""
    return [
        channel_status(session_factory, channel, config_store, tracker)
        for channel in EquipmentChannel
    ]
