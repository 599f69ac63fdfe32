from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from practice_scheduler.routes.availability_routes import (
    CreateTimeBlockRequest,
    create_time_blocks,
    get_weekly_schedule,
    list_available_slots,
    remove_time_block,
    update_weekly_schedule,
)
from practice_scheduler.scheduling.availability import default_availability
from practice_scheduler.scheduling.errors import DependencyError
from practice_scheduler.services import booking

ROUTES = 'practice_scheduler.routes.availability_routes'


@pytest.fixture(autouse=True)
def database_ready(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(f'{ROUTES}.ensure_database_ready', lambda: None)


def test_list_available_slots_rejects_malformed_date() -> None:
    with pytest.raises(HTTPException) as exception_info:
        list_available_slots(practitioner_id=1, date='05/01/2026', session_type_id=1, db=None)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Invalid date "05/01/2026". Use YYYY-MM-DD.'


def test_list_available_slots_returns_open_times(appointment_db, practice, upcoming_weekday) -> None:
    monday = upcoming_weekday(0)

    response = list_available_slots(
        practitioner_id=practice.practitioner_id,
        date=monday.isoformat(),
        session_type_id=practice.session_type_id,
        db=appointment_db,
    )

    assert response.date == monday
    assert response.slots[:5] == ['09:00', '09:30', '10:00', '10:30', '11:00']
    assert '12:00' not in response.slots
    assert response.slots[-1] == '17:00'


def test_list_available_slots_for_weekend_is_empty(appointment_db, practice, upcoming_weekday) -> None:
    response = list_available_slots(
        practitioner_id=practice.practitioner_id,
        date=upcoming_weekday(6).isoformat(),
        session_type_id=practice.session_type_id,
        db=appointment_db,
    )

    assert response.slots == []


def test_list_available_slots_unknown_practitioner_is_not_found(appointment_db, practice, upcoming_weekday) -> None:
    with pytest.raises(HTTPException) as exception_info:
        list_available_slots(
            practitioner_id=999,
            date=upcoming_weekday(0).isoformat(),
            session_type_id=practice.session_type_id,
            db=appointment_db,
        )

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Practitioner not found.'


def test_storage_failure_is_a_server_error_not_an_empty_list(
    appointment_db,
    practice,
    upcoming_weekday,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def unavailable(*args, **kwargs):
        raise DependencyError('Database unavailable.')

    monkeypatch.setattr(booking, 'get_available_slots', unavailable)

    with pytest.raises(HTTPException) as exception_info:
        list_available_slots(
            practitioner_id=practice.practitioner_id,
            date=upcoming_weekday(0).isoformat(),
            session_type_id=practice.session_type_id,
            db=appointment_db,
        )

    assert exception_info.value.status_code == 500


def test_weekly_schedule_round_trips(appointment_db, practice) -> None:
    current = get_weekly_schedule(practitioner_id=practice.practitioner_id, db=appointment_db)
    assert current == default_availability().to_config()

    current['days'][6]['enabled'] = True
    current['buffer_minutes'] = 0
    updated = update_weekly_schedule(practitioner_id=practice.practitioner_id, data=current, db=appointment_db)

    assert updated['days'][6]['enabled'] is True
    assert get_weekly_schedule(practitioner_id=practice.practitioner_id, db=appointment_db)['buffer_minutes'] == 0


def test_update_weekly_schedule_rejects_overlapping_breaks(appointment_db, practice) -> None:
    config = default_availability().to_config()
    config['days'][2]['breaks'] = [{'start': '12:00', 'end': '13:00'}, {'start': '12:30', 'end': '13:30'}]

    with pytest.raises(HTTPException) as exception_info:
        update_weekly_schedule(practitioner_id=practice.practitioner_id, data=config, db=appointment_db)

    assert exception_info.value.status_code == 400


def test_create_time_block_request_normalizes_title(upcoming_weekday) -> None:
    request = CreateTimeBlockRequest(
        practitioner_id=1,
        title='  Vacation ',
        date=upcoming_weekday(0),
        all_day=True,
        notes='   ',
    )

    assert request.title == 'Vacation'
    assert request.notes is None


@pytest.mark.parametrize('title', ['   ', 'x' * 121])
def test_create_time_block_request_rejects_bad_title(title: str, upcoming_weekday) -> None:
    with pytest.raises(ValidationError):
        CreateTimeBlockRequest(practitioner_id=1, title=title, date=upcoming_weekday(0), all_day=True)


def test_multi_day_block_hides_slots_on_each_day(appointment_db, practice, upcoming_weekday) -> None:
    monday = upcoming_weekday(0)
    request = CreateTimeBlockRequest(
        practitioner_id=practice.practitioner_id,
        title='Workshop',
        date=monday,
        end_date=monday + timedelta(days=2),
        start_time='09:00',
        end_time='12:00',
    )

    blocks = create_time_blocks(data=request, db=appointment_db)

    assert [block.starts_at for block in blocks] == [
        datetime.combine(monday + timedelta(days=offset), datetime.min.time()) + timedelta(hours=9)
        for offset in range(3)
    ]
    slots = list_available_slots(
        practitioner_id=practice.practitioner_id,
        date=(monday + timedelta(days=1)).isoformat(),
        session_type_id=practice.session_type_id,
        db=appointment_db,
    ).slots
    assert slots[0] == '13:00'


def test_create_time_block_without_times_is_rejected(appointment_db, practice, upcoming_weekday) -> None:
    request = CreateTimeBlockRequest(practitioner_id=practice.practitioner_id, title='Errand', date=upcoming_weekday(0))

    with pytest.raises(HTTPException) as exception_info:
        create_time_blocks(data=request, db=appointment_db)

    assert exception_info.value.status_code == 400


def test_remove_time_block_deletes_once(appointment_db, practice, upcoming_weekday) -> None:
    request = CreateTimeBlockRequest(
        practitioner_id=practice.practitioner_id,
        title='Errand',
        date=upcoming_weekday(1),
        all_day=True,
    )
    block = create_time_blocks(data=request, db=appointment_db)[0]

    remove_time_block(block_id=block.id, practitioner_id=practice.practitioner_id, db=appointment_db)

    with pytest.raises(HTTPException) as exception_info:
        remove_time_block(block_id=block.id, practitioner_id=practice.practitioner_id, db=appointment_db)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Time block not found.'
