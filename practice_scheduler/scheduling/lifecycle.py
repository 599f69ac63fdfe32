"""
Appointment Lifecycle State Machine

Validates and applies status transitions. Completing the final session of a
treatment series also completes the series. That cascade is a two-step
saga: the appointment write is committed first, then the series write is
attempted and its outcome is reported on its own so a failed series update
can be retried without re-running the transition.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from practice_scheduler.scheduling.errors import InvalidTransitionError, SchedulingError, ValidationError

logger = logging.getLogger(__name__)


class AppointmentStatus(str, Enum):
    REQUESTED = 'requested'
    CONFIRMED = 'confirmed'
    CHECKED_IN = 'checked_in'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    NO_SHOW = 'no_show'


class SeriesStatus(str, Enum):
    ACTIVE = 'active'
    COMPLETED = 'completed'


TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.REQUESTED: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.CHECKED_IN, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.CHECKED_IN: frozenset({AppointmentStatus.COMPLETED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)
RESCHEDULABLE_STATUSES = frozenset(
    {AppointmentStatus.REQUESTED, AppointmentStatus.CONFIRMED, AppointmentStatus.CHECKED_IN}
)
# Statuses that still hold their time on the calendar.
OCCUPYING_STATUSES = frozenset(set(AppointmentStatus) - {AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW})


def parse_status(value: str | AppointmentStatus) -> AppointmentStatus:
    if isinstance(value, AppointmentStatus):
        return value
    try:
        return AppointmentStatus((value or '').strip().lower())
    except ValueError as exc:
        raise ValidationError(f'Unknown appointment status "{value}".') from exc


def allowed_transitions(current: str | AppointmentStatus) -> list[AppointmentStatus]:
    ordered = list(AppointmentStatus)
    return sorted(TRANSITIONS[parse_status(current)], key=ordered.index)


def is_terminal(current: str | AppointmentStatus) -> bool:
    return parse_status(current) in TERMINAL_STATUSES


def validate_transition(current: str | AppointmentStatus, target: str | AppointmentStatus) -> AppointmentStatus:
    source = parse_status(current)
    destination = parse_status(target)
    if destination not in TRANSITIONS[source]:
        raise InvalidTransitionError(source.value, destination.value)
    return destination


def ensure_reschedulable(current: str | AppointmentStatus) -> None:
    source = parse_status(current)
    if source not in RESCHEDULABLE_STATUSES:
        raise InvalidTransitionError(
            source.value,
            detail=f'Cannot reschedule appointment with status "{source.value}".',
        )


class SeriesOutcome(str, Enum):
    NOT_APPLICABLE = 'not_applicable'
    COMPLETED = 'completed'
    FAILED = 'failed'


@dataclass
class TransitionResult:
    appointment: Any
    series_outcome: SeriesOutcome = SeriesOutcome.NOT_APPLICABLE
    series_error: SchedulingError | None = None

    @property
    def series_failed(self) -> bool:
        return self.series_outcome is SeriesOutcome.FAILED


class LifecycleStore(Protocol):
    def get_appointment(self, appointment_id: int) -> Any: ...

    def update_appointment_status(
        self, appointment_id: int, status: str, expected_status: str | None = None
    ) -> Any: ...

    def get_series(self, series_id: int) -> Any: ...

    def update_series(self, series_id: int, fields: dict) -> Any: ...


def completes_series(series: Any, session_number: int | None) -> bool:
    return session_number is not None and session_number == series.total_sessions


def complete_series(store: LifecycleStore, series_id: int, now: datetime | None = None) -> Any:
    """Mark a series completed. Safe to call again after a failed cascade."""
    series = store.get_series(series_id)
    return store.update_series(
        series.id,
        {
            'status': SeriesStatus.COMPLETED.value,
            'current_session': series.total_sessions,
            'completed_at': now or datetime.now(),
        },
    )


def transition_appointment(
    store: LifecycleStore,
    appointment_id: int,
    target: str | AppointmentStatus,
    now: datetime | None = None,
) -> TransitionResult:
    appointment = store.get_appointment(appointment_id)
    previous = appointment.status
    destination = validate_transition(previous, target)

    updated = store.update_appointment_status(appointment_id, destination.value, expected_status=previous)
    logger.info('Appointment %s moved from %s to %s', appointment_id, previous, destination.value)

    if destination is not AppointmentStatus.COMPLETED or updated.series_id is None:
        return TransitionResult(appointment=updated)

    try:
        series = store.get_series(updated.series_id)
        if not completes_series(series, updated.session_number):
            return TransitionResult(appointment=updated)
        complete_series(store, series.id, now)
    except SchedulingError as exc:
        logger.exception(
            'Appointment %s completed but series %s could not be completed',
            appointment_id,
            updated.series_id,
        )
        return TransitionResult(appointment=updated, series_outcome=SeriesOutcome.FAILED, series_error=exc)

    logger.info('Series %s completed by appointment %s', updated.series_id, appointment_id)
    return TransitionResult(appointment=updated, series_outcome=SeriesOutcome.COMPLETED)
