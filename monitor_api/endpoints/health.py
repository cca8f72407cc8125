"""Health and readiness endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import text

from common.db import get_engine
from ..metrics import render_latest
from ..services import Services, get_services

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health():
    """Liveness probe: ok mientras el proceso esté vivo."""
    return {"status": "ok"}


@router.get("/ready")
def ready():
    """Readiness probe: verifica conectividad con la BD."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "ready"}
    except Exception:
        logger.exception("[DB] Readiness check failed")
        raise HTTPException(status_code=503, detail="not ready")


@router.get("/metrics")
def metrics(services: Services = Depends(get_services)):
    """Contadores en memoria de notificaciones, stream y caché de dispositivos."""
    return {
        "notifications": services.dispatcher.metrics,
        "stream": services.broadcaster.stats,
        "device_cache": services.registry.cache_stats(),
    }


@router.get("/metrics/prometheus")
def prometheus_metrics():
    body, content_type = render_latest()
    return Response(content=body, media_type=content_type)
