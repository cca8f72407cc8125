"""Modelos del estado de alarma por canal."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from ..timeutils import isoformat
from .channels import EquipmentChannel
from .thresholds import ThresholdConfig


class Direction(str, Enum):
    NORMAL = "normal"
    LOW = "low"
    HIGH = "high"


class AlarmPhase(str, Enum):
    """Resultado de procesar una lectura en el tracker."""
    NORMAL = "normal"          # dentro de banda
    PENDING = "pending"        # fuera de banda, aún dentro de warningDelay
    ALERTED = "alerted"        # se emitió una alerta en esta llamada
    SUPPRESSED = "suppressed"  # pasado el delay pero dentro de repeatInterval


def evaluate_range(temperature: float, config: ThresholdConfig) -> Direction:
    if temperature < config.min_temp:
        return Direction.LOW
    if temperature > config.max_temp:
        return Direction.HIGH
    return Direction.NORMAL


@dataclass(frozen=True)
class AlarmState:
    """Estado persistente de un canal. Solo el tracker lo escribe."""
    channel: EquipmentChannel
    out_of_range_since: Optional[datetime] = None
    last_direction: Direction = Direction.NORMAL
    last_alert_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_payload(self) -> dict:
        return {
            "channel": self.channel.value,
            "outOfRangeSince": isoformat(self.out_of_range_since),
            "lastDirection": self.last_direction.value,
            "lastAlertAt": isoformat(self.last_alert_at),
            "updatedAt": isoformat(self.updated_at),
        }


@dataclass(frozen=True)
class AlertEvent:
    """Alerta emitida. Append-only; una por alerta emitida, no por lectura."""
    channel: EquipmentChannel
    direction: Direction
    temperature: float
    min_temp: float
    max_temp: float
    minutes_out_of_range: float
    message: str
    source: str
    created_at: datetime
    id: Optional[int] = None

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "channel": self.channel.value,
            "direction": self.direction.value,
            "temperature": self.temperature,
            "band": {"min": self.min_temp, "max": self.max_temp},
            "minutesOutOfRange": round(self.minutes_out_of_range, 1),
            "message": self.message,
            "source": self.source,
            "createdAt": isoformat(self.created_at),
        }


@dataclass(frozen=True)
class AlarmOutcome:
    """Lo que el tracker decidió para una lectura."""
    channel: EquipmentChannel
    direction: Direction
    phase: AlarmPhase
    minutes_out_of_range: float
    state: AlarmState
    alert: Optional[AlertEvent] = None
