"""Purga de lecturas, alertas y eventos de gateway fuera de la ventana de retención.

Uso: ``python -m jobs.purge_readings [--days N] [--dry-run]``
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from sqlalchemy.orm import sessionmaker

from common.config import get_settings
from common.db import get_engine, get_session_factory
from common.log_config import configure_logging
from monitor_api.persistence import alert_repository, ensure_schema, gateway_event_repository, readings_repository
from monitor_api.timeutils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurgeResult:
    cutoff: datetime
    readings: int
    alerts: int
    gateway_events: int
    dry_run: bool


def purge(
    session_factory: sessionmaker,
    days: int,
    *,
    dry_run: bool = False,
    now: Optional[datetime] = None,
) -> PurgeResult:
    """Borra todo lo anterior a ``now - days``.

    Con ``dry_run`` los deletes se ejecutan y se hace rollback, así los
    contadores son exactos sin modificar nada.
    """
    if days < 1:
        raise ValueError("days must be >= 1")

    cutoff = (now or utcnow()) - timedelta(days=days)
    with session_factory() as db:
        readings = readings_repository.purge_before(db, cutoff)
        alerts = alert_repository.purge_before(db, cutoff)
        gateway_events = gateway_event_repository.purge_before(db, cutoff)
        if dry_run:
            db.rollback()
        else:
            db.commit()

    return PurgeResult(cutoff, readings, alerts, gateway_events, dry_run)


def main(argv: Optional[Sequence[str]] = None) -> int:
    settings = get_settings()
    configure_logging(settings.log_level)

    p = argparse.ArgumentParser(description="Purge temperature history older than the retention window")
    p.add_argument("--days", type=int, default=settings.readings_retention_days)
    p.add_argument("--dry-run", action="store_true", help="report counts without deleting")
    args = p.parse_args(argv)

    ensure_schema(get_engine(settings))

    logger.info("[DB] Purga iniciada days=%d dry_run=%s", args.days, args.dry_run)
    try:
        result = purge(get_session_factory(), args.days, dry_run=args.dry_run)
    except Exception as e:
        logger.error("[DB] Purga fallida: %s", e)
        raise

    logger.info(
        "[DB] Purga %s cutoff=%s readings=%d alerts=%d gateway_events=%d",
        "simulada" if result.dry_run else "completada",
        result.cutoff.isoformat(),
        result.readings,
        result.alerts,
        result.gateway_events,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
