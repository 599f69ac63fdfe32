from datetime import date

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from practice_scheduler.database import SessionLocal, ensure_scheduling_schema
from practice_scheduler.scheduling.errors import SchedulingError
from practice_scheduler.storage import DATABASE_UNAVAILABLE, SqlAlchemyStorage


def ensure_database_ready() -> None:
    try:
        ensure_scheduling_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=DATABASE_UNAVAILABLE,
        ) from exc


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def to_http_exception(exc: SchedulingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.detail)


def storage_for(db) -> SqlAlchemyStorage:
    return SqlAlchemyStorage(db)


def parse_iso_date(value: str, field_name: str = 'date') -> date:
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Invalid {field_name} "{value}". Use YYYY-MM-DD.',
        ) from exc
