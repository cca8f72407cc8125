"""Modelo de dominio para lecturas de temperatura."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..timeutils import isoformat, utcnow
from .channels import EquipmentChannel


class ReadingSource(str, Enum):
    DIRECT_API = "direct-api"
    GATEWAY = "gateway"


@dataclass(frozen=True)
class ReadingCandidate:
    """Fila ya normalizada pero aún sin canal resuelto.

    Sale del normalizador; el pipeline resuelve el canal (explícito o vía
    registro de dispositivos) y la convierte en ``Reading``.
    """
    sensor_id: str
    temperature: float
    recorded_at: datetime
    source: ReadingSource
    gateway_id: Optional[str] = None
    channel_hint: Optional[str] = None
    hardware_model: Optional[str] = None
    humidity: Optional[float] = None
    signal_strength: Optional[float] = None


@dataclass(frozen=True)
class Reading:
    """Lectura canónica. Inmutable, historial append-only.

    Este es el contrato que fluye por el pipeline:
    Normalizer → evaluación → Broadcaster → AlarmStateTracker
    """
    channel: EquipmentChannel
    temperature: float
    recorded_at: datetime
    source: ReadingSource
    sensor_id: str
    gateway_id: Optional[str] = None
    humidity: Optional[float] = None
    signal_strength: Optional[float] = None
    received_at: datetime = field(default_factory=utcnow)
    id: Optional[int] = None

    @classmethod
    def from_candidate(cls, candidate: ReadingCandidate, channel: EquipmentChannel) -> "Reading":
        return cls(
            channel=channel,
            temperature=candidate.temperature,
            recorded_at=candidate.recorded_at,
            source=candidate.source,
            sensor_id=candidate.sensor_id,
            gateway_id=candidate.gateway_id,
            humidity=candidate.humidity,
            signal_strength=candidate.signal_strength,
        )

    def to_payload(self) -> dict:
        """Formato JSON para API y stream en vivo."""
        return {
            "id": self.id,
            "channel": self.channel.value,
            "temperature": self.temperature,
            "recordedAt": isoformat(self.recorded_at),
            "receivedAt": isoformat(self.received_at),
            "source": self.source.value,
            "sensorId": self.sensor_id,
            "gatewayId": self.gateway_id,
            "humidity": self.humidity,
            "signalStrength": self.signal_strength,
        }
