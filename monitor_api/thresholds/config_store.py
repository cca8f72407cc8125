"""Gestión de umbrales por canal.

Cada canal tiene exactamente una config. Se crea a partir de los
defaults del canal en el primer acceso, solo cambia vía ``set`` y nunca
se borra: ``reset`` vuelve a los defaults.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from threading import RLock
from typing import Any, Dict, List, Mapping

from sqlalchemy import insert, select, update
from sqlalchemy.orm import Session, sessionmaker

from ..domain import EquipmentChannel, ThresholdConfig
from ..persistence.tables import threshold_configs
from ..timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)


class ThresholdConfigStore:
    """Gestiona umbrales desde la BD con cache en proceso."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory
        self._lock = RLock()
        self._cache: Dict[EquipmentChannel, ThresholdConfig] = {}

    def get(self, channel: EquipmentChannel) -> ThresholdConfig:
        """Siempre devuelve una config (defaults si nunca se configuró)."""
        cached = self._cache.get(channel)
        if cached is not None:
            return cached

        with self._lock:
            with self._session_factory.begin() as db:
                config = self._load(db, channel)
                if config is None:
                    config = replace(ThresholdConfig.defaults(channel), updated_at=utcnow())
                    self._write(db, config, exists=False)
                    logger.info("[CONFIG] Defaults creados channel=%s", channel.value)
            self._cache[channel] = config
            return config

    def list(self) -> List[ThresholdConfig]:
        return [self.get(channel) for channel in EquipmentChannel]

    def set(self, channel: EquipmentChannel, partial: Mapping[str, Any]) -> ThresholdConfig:
        """Aplica una actualización parcial.

        Se valida la config resultante completa, no solo los campos
        enviados. Si no es válida lanza ValidationError y no muta nada.
        Lectura, merge, validación y escritura ocurren bajo el mismo lock.
        """
        with self._lock:
            candidate = self.get(channel).merged(partial)
            candidate.validate()
            candidate = replace(candidate, updated_at=utcnow())
            with self._session_factory.begin() as db:
                self._write(db, candidate, exists=True)
            self._cache[channel] = candidate

        logger.info(
            "[CONFIG] Actualizada channel=%s min=%s max=%s delay=%s repeat=%s notify=%s",
            channel.value,
            candidate.min_temp,
            candidate.max_temp,
            candidate.warning_delay,
            candidate.repeat_interval,
            candidate.notifications_enabled,
        )
        return candidate

    def reset(self, channel: EquipmentChannel) -> ThresholdConfig:
        config = replace(ThresholdConfig.defaults(channel), updated_at=utcnow())
        with self._lock:
            self.get(channel)
            with self._session_factory.begin() as db:
                self._write(db, config, exists=True)
            self._cache[channel] = config
        logger.info("[CONFIG] Reset a defaults channel=%s", channel.value)
        return config

    @staticmethod
    def _load(db: Session, channel: EquipmentChannel) -> ThresholdConfig | None:
        row = db.execute(
            select(threshold_configs).where(threshold_configs.c.channel == channel.value)
        ).fetchone()
        if not row:
            return None
        return ThresholdConfig(
            channel=channel,
            min_temp=float(row.min_temp),
            max_temp=float(row.max_temp),
            warning_delay=float(row.warning_delay),
            repeat_interval=float(row.repeat_interval),
            notifications_enabled=bool(row.notifications_enabled),
            updated_at=as_utc(row.updated_at),
        )

    @staticmethod
    def _write(db: Session, config: ThresholdConfig, *, exists: bool) -> None:
        values = {
            "min_temp": config.min_temp,
            "max_temp": config.max_temp,
            "warning_delay": config.warning_delay,
            "repeat_interval": config.repeat_interval,
            "notifications_enabled": config.notifications_enabled,
            "updated_at": config.updated_at,
        }
        if exists:
            db.execute(
                update(threshold_configs)
                .where(threshold_configs.c.channel == config.channel.value)
                .values(**values)
            )
        else:
            db.execute(insert(threshold_configs).values(channel=config.channel.value, **values))
