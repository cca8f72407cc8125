"""Canales lógicos de equipo monitoreado y sus umbrales por defecto."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from ..errors import ValidationError


class EquipmentChannel(str, Enum):
    """Punto de equipo monitoreado (distinto del sensor físico)."""
    CHILLER = "chiller"
    FREEZER = "freezer"
    FOOD_WARMER = "food-warmer"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    EquipmentChannel.CHILLER: "Chiller",
    EquipmentChannel.FREEZER: "Freezer",
    EquipmentChannel.FOOD_WARMER: "Food warmer",
}


# Umbrales por canal. Duraciones en minutos.
DEFAULT_THRESHOLDS: Dict[EquipmentChannel, Dict[str, Any]] = {
    EquipmentChannel.CHILLER: {
        "min_temp": 0.0,
        "max_temp": 5.0,
        "warning_delay": 15.0,
        "repeat_interval": 30.0,
        "notifications_enabled": True,
    },
    EquipmentChannel.FREEZER: {
        "min_temp": -25.0,
        "max_temp": -15.0,
        "warning_delay": 20.0,
        "repeat_interval": 60.0,
        "notifications_enabled": True,
    },
    EquipmentChannel.FOOD_WARMER: {
        "min_temp": 63.0,
        "max_temp": 90.0,
        "warning_delay": 10.0,
        "repeat_interval": 30.0,
        "notifications_enabled": True,
    },
}


def parse_channel(value: Any) -> EquipmentChannel:
    """Convierte texto a canal o lanza ValidationError.

    Tolera mayúsculas y guión bajo (``FOOD_WARMER`` → ``food-warmer``).
    """
    if isinstance(value, EquipmentChannel):
        return value
    if value is None:
        raise ValidationError("channel is required")

    raw = str(value).strip().lower().replace("_", "-")
    try:
        return EquipmentChannel(raw)
    except ValueError:
        allowed = ", ".join(c.value for c in EquipmentChannel)
        raise ValidationError(f"Invalid channel '{value}' (expected one of: {allowed})")
