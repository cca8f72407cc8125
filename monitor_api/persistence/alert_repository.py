"""Repositorio de alertas y estado de alarma.

``alarm_states`` solo debe escribirse desde AlarmStateTracker.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.orm import Session

from ..domain import AlarmState, AlertEvent, Direction, EquipmentChannel
from ..timeutils import as_utc
from .tables import alarm_states, alert_events


def get_alarm_state(db: Session, channel: EquipmentChannel) -> Optional[AlarmState]:
    row = db.execute(
        select(alarm_states).where(alarm_states.c.channel == channel.value)
    ).fetchone()
    if not row:
        return None
    return AlarmState(
        channel=channel,
        out_of_range_since=as_utc(row.out_of_range_since),
        last_direction=Direction(row.last_direction),
        last_alert_at=as_utc(row.last_alert_at),
        updated_at=as_utc(row.updated_at),
    )


def save_alarm_state(db: Session, state: AlarmState, *, exists: bool) -> None:
    values = {
        "out_of_range_since": state.out_of_range_since,
        "last_direction": state.last_direction.value,
        "last_alert_at": state.last_alert_at,
        "updated_at": state.updated_at,
    }
    if exists:
        db.execute(
            update(alarm_states)
            .where(alarm_states.c.channel == state.channel.value)
            .values(**values)
        )
    else:
        db.execute(insert(alarm_states).values(channel=state.channel.value, **values))


def insert_alert(db: Session, alert: AlertEvent) -> AlertEvent:
    result = db.execute(
        insert(alert_events).values(
            channel=alert.channel.value,
            direction=alert.direction.value,
            temperature=alert.temperature,
            min_temp=alert.min_temp,
            max_temp=alert.max_temp,
            minutes_out_of_range=alert.minutes_out_of_range,
            message=alert.message,
            source=alert.source,
            created_at=alert.created_at,
        )
    )
    new_id = result.inserted_primary_key[0] if result.inserted_primary_key else None
    return replace(alert, id=new_id)


def list_alerts(
    db: Session,
    channel: Optional[EquipmentChannel] = None,
    limit: int = 50,
) -> List[AlertEvent]:
    """Alertas más recientes primero."""
    query = select(alert_events)
    if channel is not None:
        query = query.where(alert_events.c.channel == channel.value)
    rows = db.execute(
        query.order_by(alert_events.c.created_at.desc(), alert_events.c.id.desc()).limit(limit)
    ).fetchall()
    return [
        AlertEvent(
            id=int(r.id),
            channel=EquipmentChannel(r.channel),
            direction=Direction(r.direction),
            temperature=float(r.temperature),
            min_temp=float(r.min_temp),
            max_temp=float(r.max_temp),
            minutes_out_of_range=float(r.minutes_out_of_range),
            message=r.message,
            source=r.source,
            created_at=as_utc(r.created_at),
        )
        for r in rows
    ]


def purge_before(db: Session, cutoff: datetime) -> int:
    result = db.execute(delete(alert_events).where(alert_events.c.created_at < cutoff))
    return int(result.rowcount or 0)
