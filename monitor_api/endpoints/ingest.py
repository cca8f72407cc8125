"""Endpoints de ingesta: API directa y relay de gateway LoRa."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Header, Query

from ..auth import check_gateway_token, extract_body_token
from ..schemas import GatewayIngestResult, IngestResult
from ..services import Services, get_services

router = APIRouter(tags=["ingest"])
logger = logging.getLogger(__name__)


@router.post("/readings", response_model=IngestResult)
def ingest_readings(
    payload: Any = Body(...),
    services: Services = Depends(get_services),
):
    """Una lectura, ``{readings: [...]}`` o un array de lecturas.

    Las filas inválidas se descartan; 400 solo si no queda ninguna válida.
    """
    result = services.pipeline.ingest_direct(payload)
    return IngestResult(count=result.count)


@router.post("/gateway", response_model=GatewayIngestResult)
def ingest_gateway(
    payload: Any = Body(...),
    token: Optional[str] = Query(default=None),
    x_gateway_token: Optional[str] = Header(default=None, alias="X-Gateway-Token"),
    services: Services = Depends(get_services),
):
    check_gateway_token(
        services.settings,
        header_token=x_gateway_token,
        query_token=token,
        body_token=extract_body_token(payload),
    )
    if isinstance(payload, dict) and "token" in payload:
        # El secreto no se guarda en el registro de auditoría.
        payload = {k: v for k, v in payload.items() if k != "token"}

    result = services.pipeline.ingest_gateway(payload)
    return GatewayIngestResult(
        gateway_id=result.gateway_id,
        received=result.received,
        ingested=result.ingested,
        malformed=result.malformed,
        unmatched=result.unmatched,
    )
