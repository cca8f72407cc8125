"""Registro de auditoría de llamadas del gateway."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import delete, insert, select
from sqlalchemy.orm import Session

from ..timeutils import as_utc, isoformat
from .tables import gateway_events

# El payload crudo se guarda truncado para no inflar la tabla.
MAX_RAW_PAYLOAD_CHARS = 20_000


@dataclass(frozen=True)
class GatewayEvent:
    gateway_id: Optional[str]
    raw_payload: str
    received: int
    parsed: int
    matched: int
    ingested: int
    malformed: int
    received_at: datetime
    unmatched: List[str] = field(default_factory=list)
    id: Optional[int] = None

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "gatewayId": self.gateway_id,
            "received": self.received,
            "parsed": self.parsed,
            "matched": self.matched,
            "ingested": self.ingested,
            "malformed": self.malformed,
            "unmatched": list(self.unmatched),
            "receivedAt": isoformat(self.received_at),
            "rawPayload": self.raw_payload,
        }


def serialize_payload(payload: Any) -> str:
    try:
        text = json.dumps(payload, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        text = repr(payload)
    return text[:MAX_RAW_PAYLOAD_CHARS]


def insert_gateway_event(db: Session, event: GatewayEvent) -> None:
    db.execute(
        insert(gateway_events).values(
            gateway_id=event.gateway_id,
            raw_payload=event.raw_payload,
            received=event.received,
            parsed=event.parsed,
            matched=event.matched,
            ingested=event.ingested,
            malformed=event.malformed,
            unmatched=json.dumps(list(event.unmatched)),
            received_at=event.received_at,
        )
    )


def list_gateway_events(db: Session, limit: int = 50) -> List[GatewayEvent]:
    rows = db.execute(
        select(gateway_events)
        .order_by(gateway_events.c.received_at.desc(), gateway_events.c.id.desc())
        .limit(limit)
    ).fetchall()
    return [
        GatewayEvent(
            id=int(r.id),
            gateway_id=r.gateway_id,
            raw_payload=r.raw_payload,
            received=int(r.received),
            parsed=int(r.parsed),
            matched=int(r.matched),
            ingested=int(r.ingested),
            malformed=int(r.malformed),
            unmatched=json.loads(r.unmatched or "[]"),
            received_at=as_utc(r.received_at),
        )
        for r in rows
    ]


def purge_before(db: Session, cutoff: datetime) -> int:
    result = db.execute(delete(gateway_events).where(gateway_events.c.received_at < cutoff))
    return int(result.rowcount or 0)
