"""Repositorio de lecturas - operaciones de persistencia."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, func, insert, select
from sqlalchemy.orm import Session

from ..domain import EquipmentChannel, Reading, ReadingSource
from ..timeutils import as_utc
from .tables import readings


def insert_reading(db: Session, reading: Reading) -> Reading:
    """Inserta la lectura y devuelve la copia con id asignado."""
    result = db.execute(
        insert(readings).values(
            channel=reading.channel.value,
            temperature=reading.temperature,
            recorded_at=reading.recorded_at,
            received_at=reading.received_at,
            source=reading.source.value,
            sensor_id=reading.sensor_id,
            gateway_id=reading.gateway_id,
            humidity=reading.humidity,
            signal_strength=reading.signal_strength,
        )
    )
    new_id = result.inserted_primary_key[0] if result.inserted_primary_key else None
    return replace(reading, id=new_id)


def _row_to_reading(row) -> Reading:
    return Reading(
        id=int(row.id),
        channel=EquipmentChannel(row.channel),
        temperature=float(row.temperature),
        recorded_at=as_utc(row.recorded_at),
        received_at=as_utc(row.received_at),
        source=ReadingSource(row.source),
        sensor_id=str(row.sensor_id),
        gateway_id=row.gateway_id,
        humidity=row.humidity,
        signal_strength=row.signal_strength,
    )


def recent_readings(
    db: Session,
    channel: EquipmentChannel,
    since: datetime,
    limit: int,
) -> List[Reading]:
    """Lecturas del canal desde ``since``, en orden cronológico.

    Si hay más de ``limit`` se devuelven las más recientes.
    """
    rows = db.execute(
        select(readings)
        .where(readings.c.channel == channel.value, readings.c.recorded_at >= since)
        .order_by(readings.c.recorded_at.desc(), readings.c.id.desc())
        .limit(limit)
    ).fetchall()
    return [_row_to_reading(r) for r in reversed(rows)]


def latest_reading(db: Session, channel: EquipmentChannel) -> Optional[Reading]:
    row = db.execute(
        select(readings)
        .where(readings.c.channel == channel.value)
        .order_by(readings.c.recorded_at.desc(), readings.c.id.desc())
        .limit(1)
    ).fetchone()
    return _row_to_reading(row) if row else None


def count_readings(db: Session, channel: Optional[EquipmentChannel] = None) -> int:
    query = select(func.count()).select_from(readings)
    if channel is not None:
        query = query.where(readings.c.channel == channel.value)
    return int(db.execute(query).scalar_one())


def purge_before(db: Session, cutoff: datetime) -> int:
    result = db.execute(delete(readings).where(readings.c.recorded_at < cutoff))
    return int(result.rowcount or 0)
