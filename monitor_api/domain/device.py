"""Mapeo sensor físico → canal lógico."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..timeutils import isoformat
from .channels import EquipmentChannel

# Modelos de hardware aceptados en el registro.
SUPPORTED_MODELS = frozenset({"LHT65N", "LHT52", "LSN50V2-D20", "EM300-TH", "ERS"})

# Alias de vendor → modelo canónico. Claves en mayúsculas y sin espacios.
MODEL_ALIASES = {
    "LHT65": "LHT65N",
    "LHT65N-E1": "LHT65N",
    "LHT65N-E31": "LHT65N",
    "DRAGINO-LHT65N": "LHT65N",
    "DRAGINOLHT65N": "LHT65N",
    "LHT52-E": "LHT52",
    "LSN50V2": "LSN50V2-D20",
    "LSN50-V2-D20": "LSN50V2-D20",
    "LSN50V2D20": "LSN50V2-D20",
    "D20": "LSN50V2-D20",
    "EM300TH": "EM300-TH",
    "EM300-TH-868": "EM300-TH",
    "EM300-TH-915": "EM300-TH",
    "MILESIGHT-EM300-TH": "EM300-TH",
    "ELSYS-ERS": "ERS",
    "ERS-LITE": "ERS",
    "ERSLITE": "ERS",
}

_SENSOR_ID_SEPARATORS = re.compile(r"[\s:\-]")


def normalize_sensor_id(value: Any) -> str:
    """Forma canónica de un sensor id: sin separadores y en mayúsculas.

    ``a8:40:41-1c`` y ``A840411C`` identifican al mismo sensor.
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return _SENSOR_ID_SEPARATORS.sub("", str(value)).upper()


def normalize_model(value: Any) -> Optional[str]:
    """Mapea alias conocidos al modelo canónico.

    Modelos desconocidos pasan sin cambios (solo trim) para que un
    administrador pueda verlos y registrarlos.
    """
    if value is None:
        return None
    raw = str(value).strip()
    if not raw:
        return None
    key = re.sub(r"[\s_]+", "-", raw.upper())
    if key in SUPPORTED_MODELS:
        return key
    return MODEL_ALIASES.get(key, raw)


@dataclass(frozen=True)
class DeviceMapping:
    sensor_id: str
    hardware_model: str
    channel: EquipmentChannel
    alias: str = ""
    enabled: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_payload(self) -> dict:
        return {
            "sensorId": self.sensor_id,
            "hardwareModel": self.hardware_model,
            "channel": self.channel.value,
            "alias": self.alias,
            "enabled": self.enabled,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
