"""Consultas: historial reciente, últimos valores y alertas."""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from common.db import get_db
from ..domain import evaluate_range, parse_channel
from ..persistence import alert_repository, readings_repository
from ..queries import latest_status
from ..services import Services, get_services
from ..timeutils import utcnow

router = APIRouter(tags=["readings"])

DEFAULT_LOOKBACK_MINUTES = 60
MAX_LOOKBACK_MINUTES = 7 * 24 * 60
DEFAULT_READINGS_LIMIT = 500
MAX_READINGS_LIMIT = 5000


@router.get("/readings")
def get_readings(
    channel: str = Query(...),
    minutes: int = Query(default=DEFAULT_LOOKBACK_MINUTES, ge=1, le=MAX_LOOKBACK_MINUTES),
    limit: int = Query(default=DEFAULT_READINGS_LIMIT, ge=1, le=MAX_READINGS_LIMIT),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Lecturas del canal en orden cronológico, con su estado y la config activa."""
    equipment = parse_channel(channel)
    config = services.config_store.get(equipment)
    since = utcnow() - timedelta(minutes=minutes)
    rows = readings_repository.recent_readings(db, equipment, since, limit)
    return {
        "channel": equipment.value,
        "config": config.to_payload(),
        "readings": [
            {**r.to_payload(), "status": evaluate_range(r.temperature, config).value}
            for r in rows
        ],
    }


@router.get("/latest")
def get_latest(services: Services = Depends(get_services)):
    return latest_status(services.session_factory, services.config_store, services.tracker)


@router.get("/alerts")
def get_alerts(
    channel: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    equipment = parse_channel(channel) if channel is not None else None
    return [a.to_payload() for a in alert_repository.list_alerts(db, equipment, limit)]
