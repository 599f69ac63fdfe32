"""
Booking Service

Control flow between the HTTP surface, the pure scheduling core and the
storage collaborator:

    availability query -> generate_slots over the day's bookings
    booking            -> horizon + working-hours check, then a
                          conflict-checked insert (fails safely on a race)
    reschedule         -> status gate, then a conflict-checked update
    transition         -> lifecycle state machine with the series cascade
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from practice_scheduler.scheduling import lifecycle
from practice_scheduler.scheduling.availability import WeeklyAvailability
from practice_scheduler.scheduling.calendar_range import CalendarRange, resolve_range
from practice_scheduler.scheduling.errors import ConflictError, NotFoundError, ValidationError
from practice_scheduler.scheduling.slots import generate_slots, is_bookable
from practice_scheduler.scheduling.timegrid import format_clock, parse_clock
from practice_scheduler.services.notifications import LoggingNotificationSink, NotificationSink, build_calendar_event
from practice_scheduler.storage import SqlAlchemyStorage

logger = logging.getLogger(__name__)

ALL_DAY_END = time(23, 59)


@dataclass
class BookingRequest:
    practitioner_id: int
    session_type_id: int
    date: date
    time: str
    client_first_name: str
    client_last_name: str
    client_email: str
    client_phone: str | None = None
    notes: str | None = None
    series_id: int | None = None
    session_number: int | None = None


@dataclass
class CalendarPage:
    range: CalendarRange
    appointments: list
    time_blocks: list


def _day_window(target_date: date, buffer_minutes: int) -> tuple[datetime, datetime]:
    buffer = timedelta(minutes=buffer_minutes)
    midnight = datetime.combine(target_date, time())
    return midnight - buffer, midnight + timedelta(days=1) + buffer


def _session_type_for(storage: SqlAlchemyStorage, practitioner_id: int, session_type_id: int):
    session_type = storage.get_session_type(session_type_id)
    if session_type.practitioner_id is not None and session_type.practitioner_id != practitioner_id:
        raise NotFoundError('Session type not found.')
    return session_type


def get_available_slots(
    storage: SqlAlchemyStorage,
    practitioner_id: int,
    target_date: date,
    session_type_id: int,
    now: datetime | None = None,
) -> list[str]:
    """Bookable ``HH:MM`` start times for one day.

    Days in the past or beyond the booking horizon have no slots. On today's
    date, start times that have already passed are dropped.
    """
    now = now or datetime.now()
    availability = storage.get_availability(practitioner_id)
    session_type = _session_type_for(storage, practitioner_id, session_type_id)

    if not availability.is_within_horizon(target_date, now.date()):
        return []

    window_start, window_end = _day_window(target_date, availability.buffer_minutes)
    booked, blocked = storage.list_intervals(practitioner_id, window_start, window_end)

    starts = generate_slots(availability, target_date, booked, session_type.duration_minutes, blocked)
    if target_date == now.date():
        current_minute = now.hour * 60 + now.minute
        starts = [start for start in starts if start > current_minute]
    return [format_clock(start) for start in starts]


def _check_bookable(
    storage: SqlAlchemyStorage,
    availability: WeeklyAvailability,
    practitioner_id: int,
    starts_at: datetime,
    duration_minutes: int,
    now: datetime,
) -> None:
    if starts_at <= now:
        raise ValidationError('Appointments must be scheduled in the future.')
    if not availability.is_within_horizon(starts_at.date(), now.date()):
        raise ValidationError(
            f'Appointments can only be booked within the next {availability.booking_window_days} days.'
        )

    window_start, window_end = _day_window(starts_at.date(), availability.buffer_minutes)
    booked, blocked = storage.list_intervals(practitioner_id, window_start, window_end)
    if not is_bookable(availability, starts_at, duration_minutes, booked, blocked):
        raise ConflictError('This time is not available.')


def book_appointment(
    storage: SqlAlchemyStorage,
    request: BookingRequest,
    now: datetime | None = None,
    notifier: NotificationSink | None = None,
):
    now = now or datetime.now()
    notifier = notifier or LoggingNotificationSink()

    availability = storage.get_availability(request.practitioner_id)
    session_type = _session_type_for(storage, request.practitioner_id, request.session_type_id)

    start_minute = parse_clock(request.time)
    starts_at = datetime.combine(request.date, time()) + timedelta(minutes=start_minute)
    ends_at = starts_at + timedelta(minutes=session_type.duration_minutes)

    if request.series_id is not None:
        series = storage.get_series(request.series_id)
        if request.session_number is not None and not 1 <= request.session_number <= series.total_sessions:
            raise ValidationError(f'Session number must be between 1 and {series.total_sessions}.')

    _check_bookable(storage, availability, request.practitioner_id, starts_at, session_type.duration_minutes, now)

    client = storage.find_or_create_client(
        request.practitioner_id,
        request.client_first_name,
        request.client_last_name,
        request.client_email,
        request.client_phone,
    )
    appointment = storage.create_appointment(
        {
            'practitioner_id': request.practitioner_id,
            'client_id': client.id,
            'session_type_id': session_type.id,
            'starts_at': starts_at,
            'ends_at': ends_at,
            'status': lifecycle.AppointmentStatus.REQUESTED.value,
            'series_id': request.series_id,
            'session_number': request.session_number,
            'notes': request.notes,
        },
        availability.buffer_minutes,
    )
    logger.info(
        'Booked appointment %s for practitioner %s at %s',
        appointment.id,
        request.practitioner_id,
        starts_at.isoformat(),
    )

    _notify(
        notifier.appointment_booked,
        appointment,
        lambda: build_calendar_event(
            client_name=f'{client.first_name} {client.last_name}',
            session_type=session_type.name or 'Session',
            starts_at=appointment.starts_at,
            ends_at=appointment.ends_at,
            client_email=client.email,
            notes=appointment.notes,
        ),
    )
    return appointment


def _notify(send, appointment, build_event) -> None:
    """Deliver a notification after the write has committed; failures are only logged."""
    try:
        send(appointment, build_event())
    except Exception:
        logger.exception('Notification for appointment %s failed', appointment.id)


def _event_for(storage: SqlAlchemyStorage, appointment) -> dict:
    client = storage.get_client(appointment.client_id) if appointment.client_id else None
    session_type = storage.get_session_type(appointment.session_type_id) if appointment.session_type_id else None
    return build_calendar_event(
        client_name=f'{client.first_name} {client.last_name}' if client else 'Client',
        session_type=session_type.name if session_type and session_type.name else 'Session',
        starts_at=appointment.starts_at,
        ends_at=appointment.ends_at,
        client_email=client.email if client else None,
        notes=appointment.notes,
    )


def reschedule_appointment(
    storage: SqlAlchemyStorage,
    appointment_id: int,
    starts_at: datetime,
    ends_at: datetime,
    notifier: NotificationSink | None = None,
):
    notifier = notifier or LoggingNotificationSink()
    if starts_at >= ends_at:
        raise ValidationError('starts_at must be before ends_at.')

    appointment = storage.get_appointment(appointment_id)
    lifecycle.ensure_reschedulable(appointment.status)

    availability = storage.get_availability(appointment.practitioner_id)
    updated = storage.reschedule_appointment(appointment_id, starts_at, ends_at, availability.buffer_minutes)
    logger.info('Rescheduled appointment %s to %s', appointment_id, starts_at.isoformat())
    _notify(notifier.appointment_changed, updated, lambda: _event_for(storage, updated))
    return updated


def change_status(
    storage: SqlAlchemyStorage,
    appointment_id: int,
    status: str,
    now: datetime | None = None,
    notifier: NotificationSink | None = None,
) -> lifecycle.TransitionResult:
    notifier = notifier or LoggingNotificationSink()
    result = lifecycle.transition_appointment(storage, appointment_id, status, now=now)
    _notify(notifier.appointment_changed, result.appointment, lambda: _event_for(storage, result.appointment))
    return result


def retry_series_completion(storage: SqlAlchemyStorage, appointment_id: int, now: datetime | None = None):
    """Re-run only the series step of a completed final session."""
    appointment = storage.get_appointment(appointment_id)
    if appointment.series_id is None:
        raise ValidationError('Appointment is not part of a series.')
    if lifecycle.parse_status(appointment.status) is not lifecycle.AppointmentStatus.COMPLETED:
        raise ConflictError('Only a completed appointment can complete its series.')

    series = storage.get_series(appointment.series_id)
    if not lifecycle.completes_series(series, appointment.session_number):
        raise ConflictError('Appointment is not the final session of its series.')
    return lifecycle.complete_series(storage, series.id, now)


def update_availability(storage: SqlAlchemyStorage, practitioner_id: int, data: dict) -> WeeklyAvailability:
    availability = WeeklyAvailability.from_config(data)
    return storage.save_availability(practitioner_id, availability)


def expand_time_block(
    start_date: date,
    end_date: date | None = None,
    start_time: str | None = None,
    end_time: str | None = None,
    all_day: bool = False,
) -> list[tuple[datetime, datetime]]:
    """One ``(starts_at, ends_at)`` span per day in ``[start_date, end_date]``."""
    last_date = end_date or start_date
    if last_date < start_date:
        raise ValidationError('End date must be on or after the start date.')

    if all_day:
        start_offset, end_offset = time(), ALL_DAY_END
    else:
        if start_time is None or end_time is None:
            raise ValidationError('Start and end times are required unless the block is all day.')
        start_minute, end_minute = parse_clock(start_time), parse_clock(end_time)
        if end_minute <= start_minute:
            raise ValidationError('End time must be after start time.')
        start_offset, end_offset = start_minute, end_minute

    spans = []
    current = start_date
    while current <= last_date:
        midnight = datetime.combine(current, time())
        if all_day:
            spans.append((midnight, datetime.combine(current, end_offset)))
        else:
            spans.append((midnight + timedelta(minutes=start_offset), midnight + timedelta(minutes=end_offset)))
        current += timedelta(days=1)
    return spans


def list_calendar(
    storage: SqlAlchemyStorage,
    practitioner_id: int,
    view: str | None,
    anchor: date,
    status: str | None = None,
) -> CalendarPage:
    storage.get_practitioner(practitioner_id)
    resolved = resolve_range(view, anchor)
    if status:
        status = lifecycle.parse_status(status).value

    bounds = resolved.datetime_bounds()
    if bounds is None:
        appointments = storage.list_appointments(practitioner_id, status=status, limit=resolved.limit)
        return CalendarPage(range=resolved, appointments=appointments, time_blocks=[])

    start, end = bounds
    appointments = storage.list_appointments(practitioner_id, start, end, status=status)
    time_blocks = storage.list_time_blocks(practitioner_id, start, end)
    return CalendarPage(range=resolved, appointments=appointments, time_blocks=time_blocks)
