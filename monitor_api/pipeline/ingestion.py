"""Pipeline de ingesta de temperaturas.

Compone, por cada lectura:
  Normalizer → config del canal → evaluación de rango → persistir lectura
  → Broadcaster("reading") → AlarmStateTracker → Broadcaster("alert")

Las dos entradas (API directa y relay de gateway) comparten ``process``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, List, Optional

from sqlalchemy.orm import sessionmaker

from ..alarms import AlarmStateTracker
from ..domain import (
    AlarmOutcome,
    Direction,
    EquipmentChannel,
    Reading,
    ReadingCandidate,
    ReadingSource,
    evaluate_range,
    parse_channel,
)
from ..errors import ValidationError
from ..live import LiveBroadcaster
from ..metrics import INGEST_LATENCY, READINGS_INGESTED, ROWS_REJECTED
from ..normalization import normalize_direct, normalize_gateway
from ..persistence import readings_repository
from ..persistence.gateway_event_repository import GatewayEvent, insert_gateway_event, serialize_payload
from ..registry import DeviceRegistry
from ..thresholds import ThresholdConfigStore
from ..timeutils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessedReading:
    reading: Reading
    status: Direction
    outcome: AlarmOutcome


@dataclass
class DirectIngestResult:
    processed: List[ProcessedReading] = field(default_factory=list)
    received: int = 0
    rejected: int = 0

    @property
    def count(self) -> int:
        return len(self.processed)


@dataclass
class GatewayIngestResult:
    gateway_id: Optional[str]
    received: int
    parsed: int
    matched: int
    ingested: int
    malformed: int
    unmatched: List[str] = field(default_factory=list)


class IngestionPipeline:
    def __init__(
        self,
        session_factory: sessionmaker,
        registry: DeviceRegistry,
        config_store: ThresholdConfigStore,
        tracker: AlarmStateTracker,
        broadcaster: LiveBroadcaster,
    ) -> None:
        self._session_factory = session_factory
        self._registry = registry
        self._config_store = config_store
        self._tracker = tracker
        self._broadcaster = broadcaster

    def ingest_direct(self, payload: Any) -> DirectIngestResult:
        """Ingesta desde la API directa.

        Cada fila se procesa de forma independiente. Si después de
        normalizar no queda ninguna lectura válida lanza ValidationError.
        """
        started = time.perf_counter()
        batch = normalize_direct(payload)
        readings: List[Reading] = []
        rejected = batch.malformed
        source = ReadingSource.DIRECT_API.value
        if batch.malformed:
            ROWS_REJECTED.labels(source=source, reason="malformed").inc(batch.malformed)

        for candidate in batch.candidates:
            channel = self._resolve_direct_channel(candidate)
            if channel is None:
                rejected += 1
                ROWS_REJECTED.labels(
                    source=source,
                    reason="invalid_channel" if candidate.channel_hint else "unmatched",
                ).inc()
                continue
            readings.append(Reading.from_candidate(candidate, channel))

        if not readings:
            raise ValidationError("No valid readings in request")

        result = DirectIngestResult(received=batch.received, rejected=rejected)
        for reading in readings:
            result.processed.append(self.process(reading))
        INGEST_LATENCY.labels(source=source).observe(time.perf_counter() - started)

        logger.info(
            "[INGEST] Directa recibidas=%d aceptadas=%d rechazadas=%d",
            result.received, result.count, result.rejected,
        )
        return result

    def ingest_gateway(self, payload: Any) -> GatewayIngestResult:
        """Ingesta desde el relay de gateway.

        Solo se ingieren filas con mapeo habilitado. Siempre se registra
        un GatewayEvent, aunque no se haya ingerido nada.
        """
        started = time.perf_counter()
        received_at = utcnow()
        batch = normalize_gateway(payload, now=received_at)
        source = ReadingSource.GATEWAY.value

        unmatched: List[str] = []
        readings: List[Reading] = []
        for candidate in batch.candidates:
            mapping = self._registry.resolve(candidate.sensor_id)
            if mapping is None:
                unmatched.append(candidate.sensor_id)
                continue
            readings.append(Reading.from_candidate(candidate, mapping.channel))

        ingested = 0
        for reading in readings:
            self.process(reading)
            ingested += 1

        result = GatewayIngestResult(
            gateway_id=batch.gateway_id,
            received=batch.received,
            parsed=len(batch.candidates),
            matched=len(readings),
            ingested=ingested,
            malformed=batch.malformed,
            unmatched=unmatched,
        )
        self._record_gateway_event(payload, result, received_at)
        INGEST_LATENCY.labels(source=source).observe(time.perf_counter() - started)
        if result.malformed:
            ROWS_REJECTED.labels(source=source, reason="malformed").inc(result.malformed)

        if unmatched:
            ROWS_REJECTED.labels(source=source, reason="unmatched").inc(len(unmatched))
            logger.info(
                "[GATEWAY] Sensores sin mapeo gateway=%s unmatched=%s",
                batch.gateway_id, ",".join(unmatched),
            )
        logger.info(
            "[GATEWAY] gateway=%s recibidas=%d parseadas=%d ingeridas=%d malformadas=%d",
            result.gateway_id, result.received, result.parsed, result.ingested, result.malformed,
        )
        return result

    def process(self, reading: Reading) -> ProcessedReading:
        """Procesa una lectura canónica de punta a punta."""
        config = self._config_store.get(reading.channel)
        status = evaluate_range(reading.temperature, config)

        with self._session_factory.begin() as db:
            stored = readings_repository.insert_reading(db, reading)
        READINGS_INGESTED.labels(
            source=stored.source.value, channel=stored.channel.value, status=status.value
        ).inc()

        self._broadcaster.publish("reading", {**stored.to_payload(), "status": status.value})

        outcome = self._tracker.process(stored, config)
        if outcome.alert is not None:
            self._broadcaster.publish("alert", outcome.alert.to_payload())

        return ProcessedReading(stored, status, outcome)

    def _resolve_direct_channel(self, candidate: ReadingCandidate) -> Optional[EquipmentChannel]:
        if candidate.channel_hint:
            try:
                return parse_channel(candidate.channel_hint)
            except ValidationError:
                logger.debug("[INGEST] Canal inválido %r descartado", candidate.channel_hint)
                return None
        mapping = self._registry.resolve(candidate.sensor_id)
        return mapping.channel if mapping is not None else None

    def _record_gateway_event(self, payload: Any, result: GatewayIngestResult, received_at) -> None:
        event = GatewayEvent(
            gateway_id=result.gateway_id,
            raw_payload=serialize_payload(payload),
            received=result.received,
            parsed=result.parsed,
            matched=result.matched,
            ingested=result.ingested,
            malformed=result.malformed,
            unmatched=list(result.unmatched),
            received_at=received_at,
        )
        with self._session_factory.begin() as db:
            insert_gateway_event(db, event)
