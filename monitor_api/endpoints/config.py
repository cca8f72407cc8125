"""Endpoints de configuración de umbrales por canal."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..domain import parse_channel
from ..schemas import ThresholdConfigUpdate
from ..services import Services, get_services

router = APIRouter(tags=["config"])


@router.get("/config")
def get_config(
    channel: Optional[str] = Query(default=None),
    services: Services = Depends(get_services),
):
    """Config de un canal, o de todos si no se indica ``channel``."""
    if channel is not None:
        return services.config_store.get(parse_channel(channel)).to_payload()
    return [config.to_payload() for config in services.config_store.list()]


@router.put("/config/{channel}")
def update_config(
    channel: str,
    body: ThresholdConfigUpdate,
    services: Services = Depends(get_services),
):
    """Actualización parcial. 400 con el motivo si la config resultante no es válida."""
    partial = body.model_dump(exclude_unset=True)
    return services.config_store.set(parse_channel(channel), partial).to_payload()


@router.delete("/config/{channel}")
def reset_config(channel: str, services: Services = Depends(get_services)):
    return services.config_store.reset(parse_channel(channel)).to_payload()
