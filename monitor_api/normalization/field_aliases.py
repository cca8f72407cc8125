"""Alias de campos por vendor.

Cada campo lógico tiene una lista ordenada de claves candidatas; gana la
primera presente con valor no vacío. Para soportar un vendor nuevo basta
con agregar su clave a la lista correspondiente.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

SENSOR_ID_KEYS: Sequence[str] = (
    "sensorId", "sensor_id", "SensorId", "SensorID",
    "devEUI", "DevEUI", "dev_eui", "deviceId", "device_id",
    "mac", "MAC", "Mac", "id", "ID",
)

TEMPERATURE_KEYS: Sequence[str] = (
    "temperature", "Temperature", "temp", "Temp", "tempC", "TempC",
    "TempC_SHT", "TempC_DS", "temperature_c", "value",
)

HUMIDITY_KEYS: Sequence[str] = (
    "humidity", "Humidity", "hum", "Hum", "Hum_SHT", "rh", "RH",
)

SIGNAL_KEYS: Sequence[str] = (
    "signalStrength", "signal_strength", "rssi", "RSSI", "Rssi", "signal",
)

TIMESTAMP_KEYS: Sequence[str] = (
    "recordedAt", "recorded_at", "timestamp", "Timestamp", "ts", "time", "Time",
    "datetime", "receivedAt", "received_at",
)

MODEL_KEYS: Sequence[str] = (
    "hardwareModel", "hardware_model", "model", "Model", "type", "Type", "sensorType",
)

CHANNEL_KEYS: Sequence[str] = ("channel", "equipment", "Channel")

GATEWAY_ID_KEYS: Sequence[str] = ("gatewayId", "gateway_id", "GatewayId", "GatewayID", "gateway")

# Listas de sensores en los sobres de gateway, en orden de preferencia.
SENSOR_LIST_KEYS: Sequence[str] = ("sensors", "SensorList", "data", "items")


def first_value(row: Mapping[str, Any], keys: Sequence[str]) -> Optional[Any]:
    for key in keys:
        value = row.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None
