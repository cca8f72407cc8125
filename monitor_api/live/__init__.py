"""Fan-out en vivo de lecturas y alertas (SSE)."""

from .broadcaster import LiveBroadcaster, LiveEvent, Subscription
from .sse import SSE_HEADERS, event_stream, format_sse

__all__ = [
    "LiveBroadcaster",
    "LiveEvent",
    "Subscription",
    "SSE_HEADERS",
    "event_stream",
    "format_sse",
]
