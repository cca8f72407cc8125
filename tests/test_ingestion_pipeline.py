"""Tests del pipeline de ingesta (normalizar → persistir → broadcast → alarma)."""

import asyncio
from datetime import timedelta

import pytest

from conftest import T0
from monitor_api.domain import AlarmPhase, Direction, EquipmentChannel
from monitor_api.errors import ValidationError
from monitor_api.persistence import readings_repository
from monitor_api.registry import build_mapping
from monitor_api.timeutils import isoformat


def at(minutes):
    return isoformat(T0 + timedelta(minutes=minutes))


class TestIngestionPipeline:
    def test_direct_ingest_persists_and_evaluates(self, pipeline, session_factory):
        result = pipeline.ingest_direct(
            {"readings": [{"channel": "chiller", "temperature": 7, "recordedAt": at(0)}, {"temperature": 1}]}
        )

        assert result.count == 1
        assert result.received == 2
        assert result.rejected == 1
        processed = result.processed[0]
        assert processed.status == Direction.HIGH
        assert processed.outcome.phase == AlarmPhase.PENDING
        assert processed.reading.id is not None
        with session_factory() as db:
            assert readings_repository.count_readings(db, EquipmentChannel.CHILLER) == 1

    def test_direct_ingest_without_valid_rows_raises(self, pipeline):
        with pytest.raises(ValidationError):
            pipeline.ingest_direct([{"channel": "chiller", "temperature": None}])

    def test_gateway_ingest_counts(self, pipeline, registry):
        registry.register(build_mapping("S1", "EM300-TH", "freezer"))

        result = pipeline.ingest_gateway(
            {
                "gatewayId": "gw-9",
                "items": [
                    {"sensorId": "S1", "temperature": -18},
                    {"sensorId": "S7", "temperature": -18},
                    {"sensorId": "S1", "temperature": "?"},
                ],
            }
        )

        assert result.gateway_id == "gw-9"
        assert (result.received, result.parsed, result.matched, result.ingested, result.malformed) == (3, 2, 1, 1, 1)
        assert result.unmatched == ["S7"]

    @pytest.mark.asyncio
    async def test_publishes_reading_then_alert(self, pipeline, broadcaster):
        sub = broadcaster.subscribe([])
        await sub.get(timeout=1)

        await asyncio.to_thread(
            pipeline.ingest_direct,
            [
                {"channel": "food-warmer", "temperature": 55, "recordedAt": at(0)},
                {"channel": "food-warmer", "temperature": 54, "recordedAt": at(12)},
            ],
        )

        events = []
        while True:
            event = await sub.get(timeout=0.05)
            if event is None:
                break
            events.append(event)

        assert [e.event for e in events] == ["reading", "reading", "alert"]
        assert events[0].data["status"] == "low"
        assert events[0].data["channel"] == "food-warmer"
        assert events[2].data["direction"] == "low"
