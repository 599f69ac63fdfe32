from datetime import date, datetime

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from practice_scheduler.routes.common import (
    ensure_database_ready,
    get_db,
    parse_iso_date,
    storage_for,
    to_http_exception,
)
from practice_scheduler.scheduling.errors import SchedulingError
from practice_scheduler.services import booking

router = APIRouter(tags=['availability'])

MAX_TIME_BLOCK_TITLE_LENGTH = 120


class SlotListResponse(BaseModel):
    practitioner_id: int
    date: date
    session_type_id: int
    slots: list[str]


class CreateTimeBlockRequest(BaseModel):
    practitioner_id: int
    title: str
    date: date
    end_date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    all_day: bool = False
    notes: str | None = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Title is required.')
        if len(normalized) > MAX_TIME_BLOCK_TITLE_LENGTH:
            raise ValueError(f'Title must be {MAX_TIME_BLOCK_TITLE_LENGTH} characters or fewer.')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None


class TimeBlockResponse(BaseModel):
    id: int
    practitioner_id: int
    title: str
    starts_at: datetime
    ends_at: datetime
    notes: str | None = None

    class Config:
        from_attributes = True


@router.get('/slots', response_model=SlotListResponse)
def list_available_slots(
    practitioner_id: int = Query(...),
    date: str = Query(...),
    session_type_id: int = Query(...),
    db: Session = Depends(get_db),
):
    target_date = parse_iso_date(date)
    ensure_database_ready()

    try:
        slots = booking.get_available_slots(storage_for(db), practitioner_id, target_date, session_type_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    return SlotListResponse(
        practitioner_id=practitioner_id,
        date=target_date,
        session_type_id=session_type_id,
        slots=slots,
    )


@router.get('/schedule/{practitioner_id}')
def get_weekly_schedule(practitioner_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return storage_for(db).get_availability(practitioner_id).to_config()
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc


@router.put('/schedule/{practitioner_id}')
def update_weekly_schedule(
    practitioner_id: int,
    data: dict = Body(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return booking.update_availability(storage_for(db), practitioner_id, data).to_config()
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc


@router.post('/time-blocks', response_model=list[TimeBlockResponse], status_code=status.HTTP_201_CREATED)
def create_time_blocks(data: CreateTimeBlockRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        spans = booking.expand_time_block(
            data.date,
            end_date=data.end_date,
            start_time=data.start_time,
            end_time=data.end_time,
            all_day=data.all_day,
        )
        return storage_for(db).create_time_blocks(data.practitioner_id, spans, data.title, data.notes)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc


@router.delete('/time-blocks/{block_id}', status_code=status.HTTP_204_NO_CONTENT)
def remove_time_block(
    block_id: int,
    practitioner_id: int = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        storage_for(db).delete_time_block(practitioner_id, block_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
