from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    # .env junto al directorio de trabajo del proceso (uvicorn / jobs).
    return str(Path.cwd() / ".env")


@dataclass(frozen=True)
class Settings:
    database_url: str

    gateway_token: str | None

    notify_webhook_url: str | None
    notify_recipient_group: str
    notify_timeout_seconds: float
    notify_queue_size: int
    notify_workers: int

    stream_heartbeat_seconds: float
    stream_queue_size: int

    device_cache_ttl_seconds: int
    readings_retention_days: int

    log_level: str

    @property
    def gateway_auth_enabled(self) -> bool:
        return bool(self.gateway_token)


def get_settings() -> Settings:
    # Carga el .env (si existe) pero las variables reales del entorno tienen prioridad.
    env_file = os.getenv("MONITOR_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    database_url = os.getenv("DATABASE_URL", "sqlite:///./equipment_temps.db")

    # Vacío = autenticación del gateway deshabilitada (modo desarrollo).
    gateway_token = os.getenv("GATEWAY_TOKEN", "").strip() or None

    notify_webhook_url = os.getenv("NOTIFY_WEBHOOK_URL", "").strip() or None

    return Settings(
        database_url=database_url,
        gateway_token=gateway_token,
        notify_webhook_url=notify_webhook_url,
        notify_recipient_group=os.getenv("NOTIFY_RECIPIENT_GROUP", "kitchen-managers"),
        notify_timeout_seconds=float(os.getenv("NOTIFY_TIMEOUT_SECONDS", "5")),
        notify_queue_size=int(os.getenv("NOTIFY_QUEUE_SIZE", "200")),
        notify_workers=int(os.getenv("NOTIFY_WORKERS", "2")),
        stream_heartbeat_seconds=float(os.getenv("STREAM_HEARTBEAT_SECONDS", "25")),
        stream_queue_size=int(os.getenv("STREAM_QUEUE_SIZE", "100")),
        device_cache_ttl_seconds=int(os.getenv("DEVICE_CACHE_TTL_SECONDS", "60")),
        readings_retention_days=int(os.getenv("READINGS_RETENTION_DAYS", "30")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
