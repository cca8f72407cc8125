"""Tracker de estado de alarma por canal.

FUENTE ÚNICA DE VERDAD para ``alarm_states``: ningún otro componente
escribe esa tabla.

Máquina de estados por canal:
- NORMAL: lectura dentro de banda. Limpia ``out_of_range_since``.
- PENDING: fuera de banda pero aún no pasó ``warning_delay``.
- ALERTED: pasó el delay; se emite alerta salvo que la última sea más
  reciente que ``repeat_interval`` (rate limit).

Concurrencia: un lock por canal. La lectura-modificación-escritura del
estado y el insert de la alerta ocurren dentro del lock en una sola
transacción. La notificación se encola después de soltar el lock.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from threading import Lock
from typing import Dict, Optional

from sqlalchemy.orm import sessionmaker

from ..domain import (
    AlarmOutcome,
    AlarmPhase,
    AlarmState,
    AlertEvent,
    Direction,
    EquipmentChannel,
    Reading,
    ThresholdConfig,
    evaluate_range,
)
from ..metrics import ALERTS_EMITTED
from ..notifications import Notification, NotificationDispatcher
from ..persistence import alert_repository as repo
from ..timeutils import minutes_between, utcnow

logger = logging.getLogger(__name__)


def format_alert_message(
    channel: EquipmentChannel,
    direction: Direction,
    temperature: float,
    config: ThresholdConfig,
    minutes_out_of_range: float,
) -> str:
    return (
        f"{channel.label} temperature {direction.value.upper()}: {temperature:.1f}°C "
        f"(limit {config.min_temp:.1f} to {config.max_temp:.1f}°C) "
        f"for {int(round(minutes_out_of_range))} min"
    )


class AlarmStateTracker:
    """Decide cuándo un fuera-de-rango pasa de observado a alerta."""

    def __init__(
        self,
        session_factory: sessionmaker,
        dispatcher: Optional[NotificationDispatcher] = None,
        recipient_group: str = "kitchen-managers",
    ) -> None:
        self._session_factory = session_factory
        self._dispatcher = dispatcher
        self._recipient_group = recipient_group
        # Conjunto cerrado de canales: locks creados de antemano.
        self._locks: Dict[EquipmentChannel, Lock] = {channel: Lock() for channel in EquipmentChannel}

    def process(self, reading: Reading, config: ThresholdConfig) -> AlarmOutcome:
        """Procesa una lectura evaluada y devuelve la decisión tomada."""
        with self._locks[reading.channel]:
            with self._session_factory.begin() as db:
                current = repo.get_alarm_state(db, reading.channel)
                outcome = self._transition(current, reading, config)
                repo.save_alarm_state(db, outcome.state, exists=current is not None)
                if outcome.alert is not None:
                    outcome = replace(outcome, alert=repo.insert_alert(db, outcome.alert))

        if outcome.alert is not None:
            ALERTS_EMITTED.labels(channel=reading.channel.value, direction=outcome.direction.value).inc()
            logger.warning(
                "[ALARM] Alerta emitida channel=%s direction=%s temp=%.2f minutes=%.1f",
                reading.channel.value,
                outcome.direction.value,
                reading.temperature,
                outcome.minutes_out_of_range,
            )
            if config.notifications_enabled:
                self._dispatch(outcome.alert)
        elif outcome.phase != AlarmPhase.NORMAL:
            logger.debug(
                "[ALARM] %s channel=%s direction=%s minutes=%.1f",
                outcome.phase.value,
                reading.channel.value,
                outcome.direction.value,
                outcome.minutes_out_of_range,
            )
        return outcome

    def _transition(
        self,
        current: Optional[AlarmState],
        reading: Reading,
        config: ThresholdConfig,
    ) -> AlarmOutcome:
        channel = reading.channel
        state = current or AlarmState(channel=channel)
        now = utcnow()
        direction = evaluate_range(reading.temperature, config)

        if direction == Direction.NORMAL:
            # Recuperación: el próximo fuera-de-rango arranca un timer nuevo.
            new_state = replace(
                state, out_of_range_since=None, last_direction=Direction.NORMAL, updated_at=now
            )
            return AlarmOutcome(channel, direction, AlarmPhase.NORMAL, 0.0, new_state)

        since = state.out_of_range_since or reading.recorded_at
        elapsed = minutes_between(since, reading.recorded_at)
        new_state = replace(state, out_of_range_since=since, last_direction=direction, updated_at=now)

        if elapsed < config.warning_delay:
            return AlarmOutcome(channel, direction, AlarmPhase.PENDING, elapsed, new_state)

        if (
            state.last_alert_at is not None
            and minutes_between(state.last_alert_at, reading.recorded_at) < config.repeat_interval
        ):
            return AlarmOutcome(channel, direction, AlarmPhase.SUPPRESSED, elapsed, new_state)

        alert = AlertEvent(
            channel=channel,
            direction=direction,
            temperature=reading.temperature,
            min_temp=config.min_temp,
            max_temp=config.max_temp,
            minutes_out_of_range=elapsed,
            message=format_alert_message(channel, direction, reading.temperature, config, elapsed),
            source=reading.source.value,
            created_at=now,
        )
        new_state = replace(new_state, last_alert_at=reading.recorded_at)
        return AlarmOutcome(channel, direction, AlarmPhase.ALERTED, elapsed, new_state, alert)

    def _dispatch(self, alert: AlertEvent) -> None:
        if self._dispatcher is None:
            return
        notification = Notification(
            recipient_group=self._recipient_group,
            title=f"🚨 {alert.channel.label} temperature {alert.direction.value.upper()}",
            message=alert.message,
            data=alert.to_payload(),
        )
        try:
            self._dispatcher.submit(notification)
        except Exception:
            # La alerta ya está confirmada; un fallo de entrega no la deshace.
            logger.exception("[PUSH] No se pudo encolar la notificación channel=%s", alert.channel.value)

    def get_state(self, channel: EquipmentChannel) -> AlarmState:
        with self._session_factory() as db:
            state = repo.get_alarm_state(db, channel)
        return state or AlarmState(channel=channel)
