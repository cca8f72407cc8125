from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    # Acepta camelCase (clientes web) y snake_case.
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class ThresholdConfigUpdate(_CamelModel):
    min_temp: Optional[float] = Field(default=None, alias="minTemp")
    max_temp: Optional[float] = Field(default=None, alias="maxTemp")
    warning_delay: Optional[float] = Field(default=None, alias="warningDelay")
    repeat_interval: Optional[float] = Field(default=None, alias="repeatInterval")
    notifications_enabled: Optional[bool] = Field(default=None, alias="notificationsEnabled")


class DeviceMappingIn(_CamelModel):
    sensor_id: str = Field(..., min_length=1, alias="sensorId")
    hardware_model: str = Field(..., min_length=1, alias="hardwareModel")
    channel: str
    alias: str = ""
    enabled: bool = True


class DeviceMappingUpdate(_CamelModel):
    hardware_model: Optional[str] = Field(default=None, alias="hardwareModel")
    channel: Optional[str] = None
    alias: Optional[str] = None
    enabled: Optional[bool] = None


class IngestResult(BaseModel):
    ok: bool = True
    count: int


class GatewayIngestResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    gateway_id: Optional[str] = Field(default=None, alias="gatewayId")
    received: int
    ingested: int
    malformed: int = 0
    unmatched: List[str] = Field(default_factory=list)
