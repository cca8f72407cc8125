"""Métricas Prometheus del pipeline de temperaturas."""

from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

READINGS_INGESTED = Counter(
    "equipment_temps_readings_ingested_total",
    "Readings persisted by the ingestion pipeline",
    ["source", "channel", "status"],  # status: normal, low, high
)
ROWS_REJECTED = Counter(
    "equipment_temps_rows_rejected_total",
    "Rows dropped before ingestion",
    ["source", "reason"],  # malformed, unmatched, invalid_channel
)
ALERTS_EMITTED = Counter(
    "equipment_temps_alerts_emitted_total",
    "Alert events emitted by the alarm tracker",
    ["channel", "direction"],
)
INGEST_LATENCY = Histogram(
    "equipment_temps_ingest_seconds",
    "Per-request ingestion latency",
    ["source"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)
STREAM_SUBSCRIBERS = Gauge(
    "equipment_temps_stream_subscribers",
    "Connected live-stream subscribers",
)


def render_latest() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
