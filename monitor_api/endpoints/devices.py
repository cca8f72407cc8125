"""Administración del registro de dispositivos (sensor → canal)."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..registry import build_mapping
from ..schemas import DeviceMappingIn, DeviceMappingUpdate
from ..services import Services, get_services

router = APIRouter(tags=["devices"])


@router.get("/devices")
def list_devices(services: Services = Depends(get_services)):
    return [m.to_payload() for m in services.registry.list()]


@router.post("/devices")
def register_device(body: DeviceMappingIn, services: Services = Depends(get_services)):
    """Upsert por sensorId: registrar dos veces actualiza el mapeo existente."""
    mapping = build_mapping(
        sensor_id=body.sensor_id,
        hardware_model=body.hardware_model,
        channel=body.channel,
        alias=body.alias,
        enabled=body.enabled,
    )
    return services.registry.register(mapping).to_payload()


@router.get("/devices/{sensor_id}")
def get_device(sensor_id: str, services: Services = Depends(get_services)):
    return services.registry.get(sensor_id).to_payload()


@router.put("/devices/{sensor_id}")
def update_device(
    sensor_id: str,
    body: DeviceMappingUpdate,
    services: Services = Depends(get_services),
):
    partial = body.model_dump(exclude_unset=True)
    return services.registry.update(sensor_id, partial).to_payload()


@router.delete("/devices/{sensor_id}")
def delete_device(sensor_id: str, services: Services = Depends(get_services)):
    services.registry.remove(sensor_id)
    return {"ok": True}
