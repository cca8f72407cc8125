"""Errores de dominio del servicio de monitoreo.

Los endpoints los traducen a respuestas HTTP; el resto del código solo
los lanza.
"""

from __future__ import annotations


class MonitorError(Exception):
    """Base de los errores de dominio."""


class ValidationError(MonitorError):
    """Datos inválidos en una operación administrativa o de ingesta.

    Fatal para la llamada; nunca deja mutaciones parciales.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class NormalizationError(ValidationError):
    """El payload no tiene ninguna forma reconocible."""


class DeviceNotFoundError(MonitorError):
    def __init__(self, sensor_id: str) -> None:
        super().__init__(f"Device mapping not found: {sensor_id}")
        self.sensor_id = sensor_id
