from datetime import date, datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.orm import Session

from practice_scheduler.core import config
from practice_scheduler.routes.common import (
    ensure_database_ready,
    get_db,
    parse_iso_date,
    storage_for,
    to_http_exception,
)
from practice_scheduler.scheduling import lifecycle
from practice_scheduler.scheduling.errors import SchedulingError
from practice_scheduler.services import booking

router = APIRouter(tags=['appointments'])

BOOKING_REQUESTED_MESSAGE = 'Booking request submitted. You will receive a confirmation email.'


class CreateBookingRequest(BaseModel):
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

    @field_validator('client_first_name', 'client_last_name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Client name is required.')
        return normalized

    @field_validator('client_email')
    @classmethod
    def validate_client_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized or '@' not in normalized:
            raise ValueError('A valid client email is required.')
        return normalized

    @field_validator('client_phone')
    @classmethod
    def validate_client_phone(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > config.MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {config.MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

        return normalized

    @model_validator(mode='after')
    def validate_series(self) -> 'CreateBookingRequest':
        if self.session_number is not None and self.series_id is None:
            raise ValueError('session_number requires series_id.')
        return self


class BookingResponse(BaseModel):
    appointment_id: int
    status: str
    starts_at: datetime
    ends_at: datetime
    message: str


class UpdateAppointmentRequest(BaseModel):
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    status: str | None = None

    @model_validator(mode='after')
    def validate_change(self) -> 'UpdateAppointmentRequest':
        reschedule = self.starts_at is not None or self.ends_at is not None
        if reschedule and self.status is not None:
            raise ValueError('Send either new times or a new status, not both.')
        if reschedule and (self.starts_at is None or self.ends_at is None):
            raise ValueError('starts_at and ends_at are required.')
        if not reschedule and self.status is None:
            raise ValueError('Nothing to update.')
        return self


class AppointmentResponse(BaseModel):
    id: int
    practitioner_id: int
    client_id: int | None = None
    session_type_id: int | None = None
    starts_at: datetime
    ends_at: datetime
    status: str
    series_id: int | None = None
    session_number: int | None = None
    notes: str | None = None

    class Config:
        from_attributes = True


class AppointmentUpdateResponse(BaseModel):
    appointment: AppointmentResponse
    series_outcome: str
    series_error: str | None = None


class TransitionOptionsResponse(BaseModel):
    appointment_id: int
    status: str
    allowed: list[str]


class SeriesResponse(BaseModel):
    id: int
    total_sessions: int
    current_session: int | None = None
    status: str
    completed_at: datetime | None = None

    class Config:
        from_attributes = True


class TimeBlockSummary(BaseModel):
    id: int
    title: str | None = None
    starts_at: datetime
    ends_at: datetime

    class Config:
        from_attributes = True


class CalendarResponse(BaseModel):
    view: str
    anchor: date
    range_start: date | None = None
    range_end: date | None = None
    prev_date: date | None = None
    next_date: date | None = None
    label: str
    appointments: list[AppointmentResponse]
    time_blocks: list[TimeBlockSummary]


@router.post('/book', response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(data: CreateBookingRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        appointment = booking.book_appointment(storage_for(db), booking.BookingRequest(**data.model_dump()))
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    return BookingResponse(
        appointment_id=appointment.id,
        status=appointment.status,
        starts_at=appointment.starts_at,
        ends_at=appointment.ends_at,
        message=BOOKING_REQUESTED_MESSAGE,
    )


@router.get('/calendar', response_model=CalendarResponse)
def get_calendar(
    practitioner_id: int = Query(...),
    view: str = Query(default='week'),
    date: str | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias='status'),
    db: Session = Depends(get_db),
):
    anchor = parse_iso_date(date) if date else datetime.now().date()
    ensure_database_ready()

    try:
        page = booking.list_calendar(
            storage_for(db),
            practitioner_id,
            view,
            anchor,
            status=None if status_filter in (None, '', 'all') else status_filter,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    resolved = page.range
    return CalendarResponse(
        view=resolved.view.value,
        anchor=resolved.anchor,
        range_start=resolved.start,
        range_end=resolved.end,
        prev_date=resolved.prev_anchor,
        next_date=resolved.next_anchor,
        label=resolved.label,
        appointments=[AppointmentResponse.model_validate(item) for item in page.appointments],
        time_blocks=[TimeBlockSummary.model_validate(item) for item in page.time_blocks],
    )


@router.patch('/{appointment_id}', response_model=AppointmentUpdateResponse)
def update_appointment(appointment_id: int, data: UpdateAppointmentRequest, db: Session = Depends(get_db)):
    ensure_database_ready()
    storage = storage_for(db)

    try:
        if data.status is not None:
            result = booking.change_status(storage, appointment_id, data.status)
            return AppointmentUpdateResponse(
                appointment=AppointmentResponse.model_validate(result.appointment),
                series_outcome=result.series_outcome.value,
                series_error=result.series_error.detail if result.series_error else None,
            )

        appointment = booking.reschedule_appointment(storage, appointment_id, data.starts_at, data.ends_at)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    return AppointmentUpdateResponse(
        appointment=AppointmentResponse.model_validate(appointment),
        series_outcome=lifecycle.SeriesOutcome.NOT_APPLICABLE.value,
    )


@router.get('/{appointment_id}/transitions', response_model=TransitionOptionsResponse)
def list_transitions(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        appointment = storage_for(db).get_appointment(appointment_id)
        allowed = lifecycle.allowed_transitions(appointment.status)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    return TransitionOptionsResponse(
        appointment_id=appointment.id,
        status=appointment.status,
        allowed=[item.value for item in allowed],
    )


@router.post('/{appointment_id}/series/complete', response_model=SeriesResponse)
def complete_appointment_series(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return booking.retry_series_completion(storage_for(db), appointment_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
