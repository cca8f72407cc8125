"""Normalizador de payloads de lecturas.

Convierte los payloads entrantes (lectura suelta, lote ``readings``,
sobre de gateway con lista de sensores) en ``ReadingCandidate``.

Reglas:
- Fila sin sensor id o con temperatura no numérica/no finita: se descarta
  (cuenta como ``malformed``), el resto del lote sigue.
- Timestamp ilegible o ausente: se usa "ahora". Nunca se descarta una
  fila por su timestamp.
- Nombres de campo permisivos a propósito: cada vendor usa los suyos.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence

from ..domain import ReadingCandidate, ReadingSource, normalize_model, normalize_sensor_id
from ..errors import NormalizationError
from ..timeutils import as_utc, utcnow
from . import field_aliases as fa

logger = logging.getLogger(__name__)

# Por debajo de este valor un epoch se interpreta en segundos, por encima en ms.
EPOCH_MS_THRESHOLD = 1e12

_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
)


@dataclass
class NormalizedBatch:
    """Resultado de normalizar un payload."""
    candidates: List[ReadingCandidate] = field(default_factory=list)
    gateway_id: Optional[str] = None
    received: int = 0
    malformed: int = 0


def parse_temperature(value: Any) -> Optional[float]:
    """Temperatura finita o None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        raw = value.strip().replace(",", ".")
        for suffix in ("°C", "ºC", "C", "c"):
            if raw.endswith(suffix):
                raw = raw[: -len(suffix)].strip()
                break
        try:
            number = float(raw)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _optional_float(value: Any) -> Optional[float]:
    # humedad / RSSI: opcionales, nunca invalidan la fila
    return parse_temperature(value)


def _from_epoch(number: float, now: datetime) -> datetime:
    if not math.isfinite(number) or number <= 0:
        return now
    if number >= EPOCH_MS_THRESHOLD:
        number = number / 1000.0
    try:
        return datetime.fromtimestamp(number, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return now


def parse_timestamp(value: Any, now: Optional[datetime] = None) -> datetime:
    """Epoch en s o ms, ISO-8601 o formatos comunes; si no, ``now``."""
    now = now or utcnow()
    if value is None or isinstance(value, bool):
        return now
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, (int, float)):
        return _from_epoch(float(value), now)
    if not isinstance(value, str):
        return now

    raw = value.strip()
    if not raw:
        return now
    try:
        return _from_epoch(float(raw), now)
    except ValueError:
        pass

    iso = raw[:-1] + "+00:00" if raw.endswith(("Z", "z")) else raw
    try:
        return as_utc(datetime.fromisoformat(iso))
    except ValueError:
        pass
    for fmt in _DATETIME_FORMATS:
        try:
            return as_utc(datetime.strptime(raw, fmt))
        except ValueError:
            continue

    logger.debug("[NORMALIZE] Timestamp ilegible %r, usando ingestión", value)
    return now


def extract_row(
    row: Any,
    *,
    source: ReadingSource,
    gateway_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[ReadingCandidate]:
    """Extrae una fila. None si la fila es inválida."""
    if not isinstance(row, Mapping):
        return None
    now = now or utcnow()

    channel_hint = fa.first_value(row, fa.CHANNEL_KEYS)
    channel_hint = str(channel_hint).strip() if channel_hint is not None else None

    sensor_id = normalize_sensor_id(fa.first_value(row, fa.SENSOR_ID_KEYS))
    if not sensor_id and source == ReadingSource.DIRECT_API and channel_hint:
        # Lecturas directas pueden identificarse solo por canal.
        sensor_id = channel_hint.lower()
    if not sensor_id:
        return None

    temperature = parse_temperature(fa.first_value(row, fa.TEMPERATURE_KEYS))
    if temperature is None:
        return None

    row_gateway = fa.first_value(row, fa.GATEWAY_ID_KEYS)
    return ReadingCandidate(
        sensor_id=sensor_id,
        temperature=temperature,
        recorded_at=parse_timestamp(fa.first_value(row, fa.TIMESTAMP_KEYS), now),
        source=source,
        gateway_id=gateway_id or (str(row_gateway).strip() if row_gateway is not None else None),
        channel_hint=channel_hint,
        hardware_model=normalize_model(fa.first_value(row, fa.MODEL_KEYS)),
        humidity=_optional_float(fa.first_value(row, fa.HUMIDITY_KEYS)),
        signal_strength=_optional_float(fa.first_value(row, fa.SIGNAL_KEYS)),
    )


def _extract_rows(
    rows: Sequence[Any],
    *,
    source: ReadingSource,
    gateway_id: Optional[str],
    now: datetime,
) -> NormalizedBatch:
    batch = NormalizedBatch(gateway_id=gateway_id, received=len(rows))
    for row in rows:
        candidate = extract_row(row, source=source, gateway_id=gateway_id, now=now)
        if candidate is None:
            batch.malformed += 1
            continue
        batch.candidates.append(candidate)
    return batch


def normalize_direct(payload: Any, now: Optional[datetime] = None) -> NormalizedBatch:
    """Payload de la API directa: lectura suelta, ``{readings: [...]}`` o array."""
    now = now or utcnow()
    if isinstance(payload, list):
        rows: Sequence[Any] = payload
    elif isinstance(payload, Mapping):
        readings = payload.get("readings")
        if readings is not None:
            if not isinstance(readings, list):
                raise NormalizationError("'readings' must be an array")
            rows = readings
        else:
            rows = [payload]
    else:
        raise NormalizationError("Body must be a reading object or an array of readings")

    return _extract_rows(rows, source=ReadingSource.DIRECT_API, gateway_id=None, now=now)


def normalize_gateway(payload: Any, now: Optional[datetime] = None) -> NormalizedBatch:
    """Sobre de gateway: lista de sensores bajo ``sensors``/``SensorList``/``data``/``items``."""
    now = now or utcnow()
    gateway_id: Optional[str] = None

    if isinstance(payload, list):
        rows: Sequence[Any] = payload
    elif isinstance(payload, Mapping):
        raw_gateway = fa.first_value(payload, fa.GATEWAY_ID_KEYS)
        gateway_id = str(raw_gateway).strip() if raw_gateway is not None else None
        rows = _find_sensor_list(payload)
    else:
        raise NormalizationError("Gateway body must be a JSON object or array")

    return _extract_rows(rows, source=ReadingSource.GATEWAY, gateway_id=gateway_id, now=now)


def _find_sensor_list(payload: Mapping[str, Any]) -> Sequence[Any]:
    for key in fa.SENSOR_LIST_KEYS:
        value = payload.get(key)
        if isinstance(value, list):
            return value
        # Algunos gateways anidan un único sensor como objeto.
        if isinstance(value, Mapping):
            return [value]
    readings = payload.get("readings")
    if isinstance(readings, list):
        return readings
    # Sobre de un solo sensor sin lista.
    return [payload]
