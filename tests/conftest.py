import os
from datetime import date, timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')

from practice_scheduler.database import Base  # noqa: E402
from practice_scheduler.models.practitioner import Practitioner  # noqa: E402
from practice_scheduler.models.series import TreatmentSeries  # noqa: E402
from practice_scheduler.models.session_type import SessionType  # noqa: E402
from practice_scheduler.scheduling.availability import default_availability  # noqa: E402
from practice_scheduler.storage import SqlAlchemyStorage  # noqa: E402


@pytest.fixture
def upcoming_weekday():
    def upcoming(weekday: int, min_days_ahead: int = 7) -> date:
        """First date at least ``min_days_ahead`` out that falls on ``weekday`` (0=Monday)."""
        candidate = date.today() + timedelta(days=min_days_ahead)
        return candidate + timedelta(days=(weekday - candidate.weekday()) % 7)

    return upcoming


@pytest.fixture
def appointment_db():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def storage(appointment_db) -> SqlAlchemyStorage:
    return SqlAlchemyStorage(appointment_db)


@pytest.fixture
def practice(appointment_db):
    """A practitioner on the default week (Mon-Fri 09:00-18:00, lunch 12-13, 15 min buffer)."""
    practitioner = Practitioner(
        email='rolfer@example.com',
        full_name='Sam Rivera',
        business_name='Rivera Bodywork',
        schedule_config=default_availability().to_config(),
    )
    appointment_db.add(practitioner)
    appointment_db.commit()
    appointment_db.refresh(practitioner)

    session_type = SessionType(
        practitioner_id=practitioner.id,
        name='Structural Integration',
        duration_minutes=60,
        price_cents=15000,
    )
    appointment_db.add(session_type)
    appointment_db.commit()
    appointment_db.refresh(session_type)

    return SimpleNamespace(practitioner_id=practitioner.id, session_type_id=session_type.id)


@pytest.fixture
def series_factory(appointment_db, practice):
    def create(total_sessions: int = 10, current_session: int = 0) -> TreatmentSeries:
        series = TreatmentSeries(
            practitioner_id=practice.practitioner_id,
            total_sessions=total_sessions,
            current_session=current_session,
            status='active',
        )
        appointment_db.add(series)
        appointment_db.commit()
        appointment_db.refresh(series)
        return series

    return create
