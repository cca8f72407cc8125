from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Normaliza a UTC aware. SQLite devuelve datetimes naive (en UTC)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def minutes_between(start: datetime, end: datetime) -> float:
    """Minutos de start a end, nunca negativo (lecturas fuera de orden)."""
    delta = (as_utc(end) - as_utc(start)).total_seconds() / 60.0
    return max(0.0, delta)


def isoformat(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return as_utc(dt).isoformat().replace("+00:00", "Z")
