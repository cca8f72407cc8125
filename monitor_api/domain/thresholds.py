"""Configuración de umbrales por canal."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Mapping, Optional

from ..errors import ValidationError
from ..timeutils import isoformat
from .channels import DEFAULT_THRESHOLDS, EquipmentChannel

MIN_REPEAT_INTERVAL_MINUTES = 1.0

# Campos que acepta una actualización parcial.
MUTABLE_FIELDS = ("min_temp", "max_temp", "warning_delay", "repeat_interval", "notifications_enabled")


@dataclass(frozen=True)
class ThresholdConfig:
    """Banda aceptable y tiempos de alarma de un canal.

    Duraciones en minutos.
    """
    channel: EquipmentChannel
    min_temp: float
    max_temp: float
    warning_delay: float
    repeat_interval: float
    notifications_enabled: bool = True
    updated_at: Optional[datetime] = None

    @classmethod
    def defaults(cls, channel: EquipmentChannel) -> "ThresholdConfig":
        return cls(channel=channel, **DEFAULT_THRESHOLDS[channel])

    def merged(self, partial: Mapping[str, Any]) -> "ThresholdConfig":
        """Nueva config con los campos de ``partial`` aplicados (sin validar)."""
        changes: dict[str, Any] = {}
        for key, value in partial.items():
            if key not in MUTABLE_FIELDS:
                raise ValidationError(f"Unknown config field '{key}'")
            if value is None:
                continue
            if key == "notifications_enabled":
                if not isinstance(value, bool):
                    raise ValidationError("notificationsEnabled must be a boolean")
                changes[key] = value
                continue
            if isinstance(value, bool):
                raise ValidationError(f"{_camel(key)} must be a number")
            try:
                changes[key] = float(value)
            except (TypeError, ValueError):
                raise ValidationError(f"{_camel(key)} must be a number")
        return replace(self, **changes)

    def validate(self) -> None:
        """Valida la config completa. Lanza ValidationError con el motivo."""
        if not math.isfinite(self.min_temp):
            raise ValidationError("minTemp must be a finite number")
        if not math.isfinite(self.max_temp):
            raise ValidationError("maxTemp must be a finite number")
        if self.min_temp >= self.max_temp:
            raise ValidationError(
                f"minTemp ({self.min_temp:g}) must be lower than maxTemp ({self.max_temp:g})"
            )
        if not math.isfinite(self.warning_delay) or self.warning_delay < 0:
            raise ValidationError("warningDelay must be >= 0 minutes")
        if not math.isfinite(self.repeat_interval) or self.repeat_interval < MIN_REPEAT_INTERVAL_MINUTES:
            raise ValidationError("repeatInterval must be >= 1 minute")

    def to_payload(self) -> dict:
        return {
            "channel": self.channel.value,
            "minTemp": self.min_temp,
            "maxTemp": self.max_temp,
            "warningDelay": self.warning_delay,
            "repeatInterval": self.repeat_interval,
            "notificationsEnabled": self.notifications_enabled,
            "updatedAt": isoformat(self.updated_at),
        }


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p.title() for p in rest)
