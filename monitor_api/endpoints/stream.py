"""Stream en vivo (Server-Sent Events) para dashboards."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from ..live import SSE_HEADERS, event_stream
from ..queries import latest_status
from ..services import Services, get_services

router = APIRouter(tags=["stream"])


@router.get("/stream")
async def stream(request: Request, services: Services = Depends(get_services)):
    """Primero un evento ``snapshot`` con el estado por canal, luego
    ``reading``/``alert`` a medida que ocurren y ``heartbeat`` en reposo.
    """
    snapshot = await run_in_threadpool(
        latest_status, services.session_factory, services.config_store, services.tracker
    )
    return StreamingResponse(
        event_stream(
            services.broadcaster,
            snapshot,
            request.is_disconnected,
            services.settings.stream_heartbeat_seconds,
        ),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
