"""Registro de dispositivos: sensor físico → canal lógico.

Mantiene un caché LRU en memoria para ``resolve`` (hot path del gateway)
que se invalida en cada escritura.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import replace
from datetime import datetime, timedelta
from threading import Lock, RLock
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ..domain import (
    DeviceMapping,
    EquipmentChannel,
    SUPPORTED_MODELS,
    normalize_model,
    normalize_sensor_id,
    parse_channel,
)
from ..errors import DeviceNotFoundError, ValidationError
from ..persistence.tables import device_mappings
from ..timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

MAX_CACHE_SIZE = 10000

_UPDATABLE_FIELDS = ("hardware_model", "channel", "alias", "enabled")


def build_mapping(
    sensor_id: Any,
    hardware_model: Any,
    channel: Any,
    alias: Any = "",
    enabled: Any = True,
) -> DeviceMapping:
    """Valida los campos y construye el mapeo.

    Validación estricta: el registro es un acto administrativo explícito.
    """
    normalized_id = normalize_sensor_id(sensor_id)
    if not normalized_id:
        raise ValidationError("sensorId is required")

    model = normalize_model(hardware_model)
    if model not in SUPPORTED_MODELS:
        allowed = ", ".join(sorted(SUPPORTED_MODELS))
        raise ValidationError(f"Unsupported hardwareModel '{hardware_model}' (expected one of: {allowed})")

    if not isinstance(enabled, bool):
        raise ValidationError("enabled must be a boolean")

    return DeviceMapping(
        sensor_id=normalized_id,
        hardware_model=model,
        channel=parse_channel(channel),
        alias=str(alias or "").strip(),
        enabled=enabled,
    )


class DeviceRegistry:
    def __init__(self, session_factory: sessionmaker, cache_ttl_seconds: int = 60) -> None:
        self._session_factory = session_factory
        self._cache_ttl = timedelta(seconds=cache_ttl_seconds)
        self._cache: "OrderedDict[str, Tuple[Optional[DeviceMapping], datetime]]" = OrderedDict()
        self._cache_lock = Lock()
        # Se incrementa en cada escritura; un resolve que cargó antes no cachea.
        self._generations: Dict[str, int] = {}
        self._write_lock = RLock()

    def resolve(self, sensor_id: Any) -> Optional[DeviceMapping]:
        """Mapeo habilitado para el sensor, o None (no encontrado / deshabilitado)."""
        key = normalize_sensor_id(sensor_id)
        if not key:
            return None

        now = utcnow()
        with self._cache_lock:
            cached = self._cache.get(key)
            if cached is not None:
                mapping, expires_at = cached
                if expires_at > now:
                    self._cache.move_to_end(key)
                    return mapping if mapping is not None and mapping.enabled else None
                self._cache.pop(key, None)
            generation = self._generations.get(key, 0)

        mapping = self._fetch(key)

        with self._cache_lock:
            if self._generations.get(key, 0) != generation:
                # Hubo una escritura durante la carga: el resultado puede estar viejo.
                return mapping if mapping is not None and mapping.enabled else None
            # Evitar memory leak: eliminar entradas más antiguas si excede límite
            while len(self._cache) >= MAX_CACHE_SIZE:
                self._cache.popitem(last=False)
            self._cache[key] = (mapping, now + self._cache_ttl)

        if mapping is None or not mapping.enabled:
            return None
        return mapping

    def get(self, sensor_id: Any) -> DeviceMapping:
        key = normalize_sensor_id(sensor_id)
        mapping = self._fetch(key) if key else None
        if mapping is None:
            raise DeviceNotFoundError(str(sensor_id))
        return mapping

    def list(self) -> List[DeviceMapping]:
        with self._session_factory() as db:
            rows = db.execute(select(device_mappings).order_by(device_mappings.c.sensor_id)).fetchall()
        return [self._row_to_mapping(r) for r in rows]

    def register(self, mapping: DeviceMapping) -> DeviceMapping:
        """Upsert por sensorId: registrar dos veces actualiza, no duplica."""
        with self._write_lock:
            try:
                stored, action = self._upsert(mapping)
            except IntegrityError:
                # Otro proceso insertó el mismo sensorId entre el select y el insert.
                logger.info("[DEVICES] Alta concurrente sensor_id=%s, reintento como update", mapping.sensor_id)
                stored, action = self._upsert(mapping)
            self._invalidate(mapping.sensor_id)
        logger.info(
            "[DEVICES] Sensor %s sensor_id=%s model=%s channel=%s enabled=%s",
            action,
            stored.sensor_id,
            stored.hardware_model,
            stored.channel.value,
            stored.enabled,
        )
        return stored

    def update(self, sensor_id: Any, partial: Mapping[str, Any]) -> DeviceMapping:
        """Actualización parcial; valida el mapeo resultante completo."""
        unknown = set(partial) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown device field(s): {', '.join(sorted(unknown))}")

        with self._write_lock:
            current = self.get(sensor_id)
            merged = {
                "hardware_model": current.hardware_model,
                "channel": current.channel,
                "alias": current.alias,
                "enabled": current.enabled,
            }
            merged.update({k: v for k, v in partial.items() if v is not None})
            candidate = build_mapping(sensor_id=current.sensor_id, **merged)
            return self.register(candidate)

    def remove(self, sensor_id: Any) -> None:
        key = normalize_sensor_id(sensor_id)
        with self._write_lock:
            with self._session_factory.begin() as db:
                result = db.execute(delete(device_mappings).where(device_mappings.c.sensor_id == key))
                removed = int(result.rowcount or 0)
            if not key or removed == 0:
                raise DeviceNotFoundError(str(sensor_id))
            self._invalidate(key)
        logger.info("[DEVICES] Sensor eliminado sensor_id=%s", key)

    def cache_stats(self) -> dict:
        with self._cache_lock:
            size = len(self._cache)
        return {
            "size": size,
            "max_size": MAX_CACHE_SIZE,
            "ttl_seconds": int(self._cache_ttl.total_seconds()),
        }

    def _upsert(self, mapping: DeviceMapping) -> Tuple[DeviceMapping, str]:
        now = utcnow()
        with self._session_factory.begin() as db:
            existing = self._load(db, mapping.sensor_id)
            if existing is None:
                stored = replace(mapping, created_at=now, updated_at=now)
                db.execute(insert(device_mappings).values(**self._values(stored), created_at=now))
                return stored, "registrado"
            stored = replace(mapping, created_at=existing.created_at, updated_at=now)
            db.execute(
                update(device_mappings)
                .where(device_mappings.c.sensor_id == mapping.sensor_id)
                .values(**self._values(stored))
            )
            return stored, "actualizado"

    def _fetch(self, key: str) -> Optional[DeviceMapping]:
        with self._session_factory() as db:
            return self._load(db, key)

    def _invalidate(self, key: str) -> None:
        with self._cache_lock:
            self._cache.pop(key, None)
            self._generations[key] = self._generations.get(key, 0) + 1

    @classmethod
    def _load(cls, db: Session, key: str) -> Optional[DeviceMapping]:
        row = db.execute(
            select(device_mappings).where(device_mappings.c.sensor_id == key)
        ).fetchone()
        return cls._row_to_mapping(row) if row else None

    @staticmethod
    def _row_to_mapping(row) -> DeviceMapping:
        return DeviceMapping(
            sensor_id=row.sensor_id,
            hardware_model=row.hardware_model,
            channel=EquipmentChannel(row.channel),
            alias=row.alias or "",
            enabled=bool(row.enabled),
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )

    @staticmethod
    def _values(mapping: DeviceMapping) -> dict:
        return {
            "sensor_id": mapping.sensor_id,
            "hardware_model": mapping.hardware_model,
            "channel": mapping.channel.value,
            "alias": mapping.alias,
            "enabled": mapping.enabled,
            "updated_at": mapping.updated_at,
        }
