"""Esquema de tablas (SQLAlchemy Core).

``ensure_schema`` es idempotente: crea lo que falta y no toca lo existente.
"""

from __future__ import annotations

import logging

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

metadata = MetaData()

readings = Table(
    "temperature_readings",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("channel", String(32), nullable=False),
    Column("temperature", Float, nullable=False),
    Column("recorded_at", DateTime(timezone=True), nullable=False),
    Column("received_at", DateTime(timezone=True), nullable=False),
    Column("source", String(16), nullable=False),
    Column("sensor_id", String(64), nullable=False),
    Column("gateway_id", String(64), nullable=True),
    Column("humidity", Float, nullable=True),
    Column("signal_strength", Float, nullable=True),
)
Index("ix_temperature_readings_channel_recorded", readings.c.channel, readings.c.recorded_at)

alert_events = Table(
    "alert_events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("channel", String(32), nullable=False),
    Column("direction", String(8), nullable=False),
    Column("temperature", Float, nullable=False),
    Column("min_temp", Float, nullable=False),
    Column("max_temp", Float, nullable=False),
    Column("minutes_out_of_range", Float, nullable=False),
    Column("message", Text, nullable=False),
    Column("source", String(16), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)
Index("ix_alert_events_channel_created", alert_events.c.channel, alert_events.c.created_at)

alarm_states = Table(
    "alarm_states",
    metadata,
    Column("channel", String(32), primary_key=True),
    Column("out_of_range_since", DateTime(timezone=True), nullable=True),
    Column("last_direction", String(8), nullable=False, default="normal"),
    Column("last_alert_at", DateTime(timezone=True), nullable=True),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

threshold_configs = Table(
    "threshold_configs",
    metadata,
    Column("channel", String(32), primary_key=True),
    Column("min_temp", Float, nullable=False),
    Column("max_temp", Float, nullable=False),
    Column("warning_delay", Float, nullable=False),
    Column("repeat_interval", Float, nullable=False),
    Column("notifications_enabled", Boolean, nullable=False, default=True),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

device_mappings = Table(
    "device_mappings",
    metadata,
    Column("sensor_id", String(64), primary_key=True),
    Column("hardware_model", String(32), nullable=False),
    Column("channel", String(32), nullable=False),
    Column("alias", String(128), nullable=False, default=""),
    Column("enabled", Boolean, nullable=False, default=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

gateway_events = Table(
    "gateway_events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("gateway_id", String(64), nullable=True),
    Column("raw_payload", Text, nullable=False),
    Column("received", Integer, nullable=False),
    Column("parsed", Integer, nullable=False),
    Column("matched", Integer, nullable=False),
    Column("ingested", Integer, nullable=False),
    Column("malformed", Integer, nullable=False),
    Column("unmatched", Text, nullable=False),
    Column("received_at", DateTime(timezone=True), nullable=False),
)


def ensure_schema(engine: Engine) -> None:
    logger.info("[DB] Verificando esquema")
    metadata.create_all(engine)
