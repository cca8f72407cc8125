"""Módulo de endpoints HTTP.

Contiene todos los endpoints de la API de temperaturas organizados por función.
"""

from .config import router as config_router
from .devices import router as devices_router
from .diagnostics import router as diagnostics_router
from .health import router as health_router
from .ingest import router as ingest_router
from .readings import router as readings_router
from .stream import router as stream_router

__all__ = [
    "config_router",
    "devices_router",
    "diagnostics_router",
    "health_router",
    "ingest_router",
    "readings_router",
    "stream_router",
]
