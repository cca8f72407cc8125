"""Modelos de dominio del pipeline de temperaturas."""

from .alarm import AlarmOutcome, AlarmPhase, AlarmState, AlertEvent, Direction, evaluate_range
from .channels import DEFAULT_THRESHOLDS, EquipmentChannel, parse_channel
from .device import DeviceMapping, SUPPORTED_MODELS, normalize_model, normalize_sensor_id
from .reading import Reading, ReadingCandidate, ReadingSource
from .thresholds import ThresholdConfig

__all__ = [
    "AlarmOutcome",
    "AlarmPhase",
    "AlarmState",
    "AlertEvent",
    "Direction",
    "evaluate_range",
    "DEFAULT_THRESHOLDS",
    "EquipmentChannel",
    "parse_channel",
    "DeviceMapping",
    "SUPPORTED_MODELS",
    "normalize_model",
    "normalize_sensor_id",
    "Reading",
    "ReadingCandidate",
    "ReadingSource",
    "ThresholdConfig",
]
