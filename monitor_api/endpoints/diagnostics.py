"""Diagnóstico del relay de gateway para operadores."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from common.db import get_db
from ..persistence.gateway_event_repository import list_gateway_events

router = APIRouter(tags=["diagnostics"])


@router.get("/gateway-events")
def get_gateway_events(
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Llamadas recientes del gateway, más recientes primero.

    Sirve para encontrar sensores que llegan sin mapeo (``unmatched``).
    """
    return [e.to_payload() for e in list_gateway_events(db, limit)]
