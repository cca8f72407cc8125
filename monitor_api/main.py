"""App FastAPI del monitoreo de temperaturas de equipos.

Arranque: ``uvicorn monitor_api.main:app``
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from common.config import get_settings
from common.db import get_engine
from common.log_config import configure_logging

from .endpoints import (
    config_router,
    devices_router,
    diagnostics_router,
    health_router,
    ingest_router,
    readings_router,
    stream_router,
)
from .errors import DeviceNotFoundError, ValidationError
from .persistence import ensure_schema
from .services import get_services

logger = logging.getLogger(__name__)

API_PREFIX = "/api/equipment-temps"


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    ensure_schema(get_engine(settings))

    services = get_services()
    services.dispatcher.start()
    logger.info(
        "[CONFIG] Servicio iniciado gateway_auth=%s webhook=%s",
        settings.gateway_auth_enabled,
        bool(settings.notify_webhook_url),
    )
    try:
        yield
    finally:
        services.dispatcher.stop(drain=True)


def _validation_reason(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def create_app() -> FastAPI:
    app = FastAPI(title="Equipment Temperature Monitor", version="1.0.0", lifespan=lifespan)

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"detail": exc.reason})

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": _validation_reason(exc)})

    @app.exception_handler(DeviceNotFoundError)
    async def _device_not_found(request: Request, exc: DeviceNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(SQLAlchemyError)
    async def _storage_error(request: Request, exc: SQLAlchemyError):
        logger.exception("[DB] Storage error path=%s", request.url.path)
        return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})

    for router in (
        ingest_router,
        config_router,
        readings_router,
        stream_router,
        devices_router,
        diagnostics_router,
        health_router,
    ):
        app.include_router(router, prefix=API_PREFIX)

    return app


app = create_app()
