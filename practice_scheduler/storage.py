"""SQLAlchemy-backed storage collaborator for the scheduling core.

Every database failure is rolled back and re-raised as ``DependencyError``;
nothing here retries. Inserts and reschedules re-check the buffered
overlap rule inside the same transaction that writes, with the practitioner
row locked, so two concurrent bookings for the same time cannot both land.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from practice_scheduler.models.appointment import Appointment
from practice_scheduler.models.client import Client
from practice_scheduler.models.practitioner import Practitioner
from practice_scheduler.models.series import TreatmentSeries
from practice_scheduler.models.session_type import SessionType
from practice_scheduler.models.time_block import TimeBlock
from practice_scheduler.scheduling.availability import WeeklyAvailability
from practice_scheduler.scheduling.errors import (
    ConflictError,
    DependencyError,
    InvalidTransitionError,
    NotFoundError,
)
from practice_scheduler.scheduling.lifecycle import OCCUPYING_STATUSES
from practice_scheduler.scheduling.timegrid import Interval

logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE = 'Database unavailable. Verify DATABASE_URL and database credentials.'
OCCUPYING_STATUS_VALUES = sorted(status.value for status in OCCUPYING_STATUSES)


class SqlAlchemyStorage:
    def __init__(self, db: Session):
        self.db = db

    def _unavailable(self, exc: SQLAlchemyError) -> DependencyError:
        self.db.rollback()
        logger.error('Storage operation failed: %s', exc)
        return DependencyError(DATABASE_UNAVAILABLE)

    def _get(self, model, entity_id: int, label: str):
        try:
            entity = self.db.get(model, entity_id)
        except SQLAlchemyError as exc:
            raise self._unavailable(exc) from exc
        if entity is None:
            raise NotFoundError(f'{label} not found.')
        return entity

    def get_practitioner(self, practitioner_id: int) -> Practitioner:
        return self._get(Practitioner, practitioner_id, 'Practitioner')

    def get_session_type(self, session_type_id: int) -> SessionType:
        return self._get(SessionType, session_type_id, 'Session type')

    def get_appointment(self, appointment_id: int) -> Appointment:
        return self._get(Appointment, appointment_id, 'Appointment')

    def get_series(self, series_id: int) -> TreatmentSeries:
        return self._get(TreatmentSeries, series_id, 'Series')

    def get_client(self, client_id: int) -> Client:
        return self._get(Client, client_id, 'Client')

    def get_availability(self, practitioner_id: int) -> WeeklyAvailability:
        practitioner = self.get_practitioner(practitioner_id)
        return WeeklyAvailability.from_config(practitioner.schedule_config)

    def save_availability(self, practitioner_id: int, availability: WeeklyAvailability) -> WeeklyAvailability:
        practitioner = self.get_practitioner(practitioner_id)
        try:
            practitioner.schedule_config = availability.to_config()
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._unavailable(exc) from exc
        return availability

    def _occupying_appointments(self, practitioner_id: int, start: datetime, end: datetime, exclude_id=None):
        query = self.db.query(Appointment).filter(
            Appointment.practitioner_id == practitioner_id,
            Appointment.status.in_(OCCUPYING_STATUS_VALUES),
            Appointment.starts_at < end,
            Appointment.ends_at > start,
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query

    def _time_blocks(self, practitioner_id: int, start: datetime, end: datetime):
        return self.db.query(TimeBlock).filter(
            TimeBlock.practitioner_id == practitioner_id,
            TimeBlock.starts_at < end,
            TimeBlock.ends_at > start,
        )

    def list_intervals(
        self,
        practitioner_id: int,
        start: datetime,
        end: datetime,
        exclude_appointment_id: int | None = None,
    ) -> tuple[list[Interval], list[Interval]]:
        """Return ``(booked, blocked)`` intervals touching ``[start, end)``."""
        try:
            appointments = self._occupying_appointments(
                practitioner_id, start, end, exclude_appointment_id
            ).order_by(Appointment.starts_at.asc()).all()
            blocks = self._time_blocks(practitioner_id, start, end).order_by(TimeBlock.starts_at.asc()).all()
        except SQLAlchemyError as exc:
            raise self._unavailable(exc) from exc

        booked = [Interval(item.starts_at, item.ends_at) for item in appointments]
        blocked = [Interval(item.starts_at, item.ends_at) for item in blocks]
        return booked, blocked

    def _lock_practitioner(self, practitioner_id: int) -> None:
        locked = self.db.query(Practitioner.id).filter(
            Practitioner.id == practitioner_id
        ).with_for_update().first()
        if locked is None:
            raise NotFoundError('Practitioner not found.')

    def _find_conflict(
        self,
        practitioner_id: int,
        starts_at: datetime,
        ends_at: datetime,
        buffer_minutes: int,
        exclude_id: int | None = None,
    ) -> str | None:
        buffer = timedelta(minutes=buffer_minutes)
        if self._occupying_appointments(
            practitioner_id, starts_at - buffer, ends_at + buffer, exclude_id
        ).first() is not None:
            return 'This time is already booked.'
        if self._time_blocks(practitioner_id, starts_at, ends_at).first() is not None:
            return 'This time is blocked.'
        return None

    def create_appointment(self, record: dict, buffer_minutes: int) -> Appointment:
        practitioner_id = record['practitioner_id']
        try:
            self._lock_practitioner(practitioner_id)
            conflict = self._find_conflict(
                practitioner_id, record['starts_at'], record['ends_at'], buffer_minutes
            )
            if conflict:
                self.db.rollback()
                logger.warning(
                    'Rejected booking for practitioner %s at %s: %s',
                    practitioner_id,
                    record['starts_at'],
                    conflict,
                )
                raise ConflictError(conflict)

            appointment = Appointment(**record)
            self.db.add(appointment)
            self.db.commit()
            self.db.refresh(appointment)
            return appointment
        except NotFoundError:
            self.db.rollback()
            raise
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError('This time is already booked.') from exc
        except SQLAlchemyError as exc:
            raise self._unavailable(exc) from exc

    def reschedule_appointment(
        self,
        appointment_id: int,
        starts_at: datetime,
        ends_at: datetime,
        buffer_minutes: int,
    ) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        try:
            self._lock_practitioner(appointment.practitioner_id)
            conflict = self._find_conflict(
                appointment.practitioner_id, starts_at, ends_at, buffer_minutes, exclude_id=appointment.id
            )
            if conflict:
                self.db.rollback()
                raise ConflictError(conflict)

            appointment.starts_at = starts_at
            appointment.ends_at = ends_at
            self.db.commit()
            self.db.refresh(appointment)
            return appointment
        except NotFoundError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            raise self._unavailable(exc) from exc

    def update_appointment_status(
        self,
        appointment_id: int,
        status: str,
        expected_status: str | None = None,
    ) -> Appointment:
        """Write ``status``, only if the stored status still equals ``expected_status``.

        A mismatch means another request moved the appointment after it was
        read; the write is refused with ``InvalidTransitionError``.
        """
        appointment = self.get_appointment(appointment_id)
        try:
            query = self.db.query(Appointment).filter(Appointment.id == appointment_id)
            if expected_status is not None:
                query = query.filter(Appointment.status == expected_status)
            matched = query.update({Appointment.status: status}, synchronize_session=False)
            if matched == 0:
                self.db.rollback()
                self.db.refresh(appointment)
                logger.warning(
                    'Refused status change of appointment %s to %s: stored status is %s',
                    appointment_id,
                    status,
                    appointment.status,
                )
                raise InvalidTransitionError(appointment.status, status)
            self.db.commit()
            self.db.refresh(appointment)
        except SQLAlchemyError as exc:
            raise self._unavailable(exc) from exc
        return appointment

    def update_series(self, series_id: int, fields: dict) -> TreatmentSeries:
        series = self.get_series(series_id)
        try:
            for name, value in fields.items():
                setattr(series, name, value)
            self.db.commit()
            self.db.refresh(series)
        except SQLAlchemyError as exc:
            raise self._unavailable(exc) from exc
        return series

    def find_or_create_client(
        self,
        practitioner_id: int,
        first_name: str,
        last_name: str,
        email: str,
        phone: str | None = None,
    ) -> Client:
        try:
            client = self.db.query(Client).filter(
                Client.practitioner_id == practitioner_id,
                Client.email == email,
            ).first()
            if client is None:
                client = Client(
                    practitioner_id=practitioner_id,
                    first_name=first_name,
                    last_name=last_name,
                    email=email,
                    phone=phone,
                )
                self.db.add(client)
                self.db.commit()
                self.db.refresh(client)
            return client
        except SQLAlchemyError as exc:
            raise self._unavailable(exc) from exc

    def create_time_blocks(
        self,
        practitioner_id: int,
        spans: list[tuple[datetime, datetime]],
        title: str,
        notes: str | None = None,
    ) -> list[TimeBlock]:
        self.get_practitioner(practitioner_id)
        try:
            blocks = [
                TimeBlock(
                    practitioner_id=practitioner_id,
                    title=title,
                    starts_at=starts_at,
                    ends_at=ends_at,
                    notes=notes,
                )
                for starts_at, ends_at in spans
            ]
            self.db.add_all(blocks)
            self.db.commit()
            for block in blocks:
                self.db.refresh(block)
            return blocks
        except SQLAlchemyError as exc:
            raise self._unavailable(exc) from exc

    def delete_time_block(self, practitioner_id: int, block_id: int) -> None:
        try:
            block = self.db.query(TimeBlock).filter(
                TimeBlock.id == block_id,
                TimeBlock.practitioner_id == practitioner_id,
            ).first()
            if block is None:
                raise NotFoundError('Time block not found.')
            self.db.delete(block)
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._unavailable(exc) from exc

    def list_time_blocks(self, practitioner_id: int, start: datetime, end: datetime) -> list[TimeBlock]:
        try:
            return self._time_blocks(practitioner_id, start, end).order_by(TimeBlock.starts_at.asc()).all()
        except SQLAlchemyError as exc:
            raise self._unavailable(exc) from exc

    def list_appointments(
        self,
        practitioner_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
        status: str | None = None,
        limit: int | None = None,
    ) -> list[Appointment]:
        """Appointments in ``[start, end)`` ascending, or newest first when unbounded."""
        try:
            query = self.db.query(Appointment).filter(Appointment.practitioner_id == practitioner_id)
            if status:
                query = query.filter(Appointment.status == status)
            if start is not None and end is not None:
                query = query.filter(
                    Appointment.starts_at < end,
                    Appointment.ends_at > start,
                ).order_by(Appointment.starts_at.asc())
            else:
                query = query.order_by(Appointment.starts_at.desc())
            if limit is not None:
                query = query.limit(limit)
            return query.all()
        except SQLAlchemyError as exc:
            raise self._unavailable(exc) from exc
