from datetime import date, datetime

import pytest

from practice_scheduler.core import config
from practice_scheduler.scheduling.calendar_range import CalendarView, parse_view, resolve_range
from practice_scheduler.scheduling.errors import ValidationError


def test_day_view_spans_the_anchor() -> None:
    resolved = resolve_range('day', date(2026, 1, 7))

    assert (resolved.start, resolved.end) == (date(2026, 1, 7), date(2026, 1, 7))
    assert resolved.prev_anchor == date(2026, 1, 6)
    assert resolved.next_anchor == date(2026, 1, 8)
    assert resolved.label == 'Wednesday, January 7, 2026'


def test_week_view_starts_on_monday() -> None:
    resolved = resolve_range('week', date(2026, 1, 7))

    assert (resolved.start, resolved.end) == (date(2026, 1, 5), date(2026, 1, 11))
    assert resolved.prev_anchor == date(2025, 12, 31)
    assert resolved.next_anchor == date(2026, 1, 14)
    assert resolved.label == 'Jan 5 - Jan 11, 2026'


def test_week_on_a_sunday_belongs_to_the_preceding_monday() -> None:
    resolved = resolve_range('week', date(2026, 1, 11))

    assert resolved.start == date(2026, 1, 5)


def test_week_spanning_new_year_is_labelled_with_the_closing_year() -> None:
    resolved = resolve_range('week', date(2025, 12, 31))

    assert (resolved.start, resolved.end) == (date(2025, 12, 29), date(2026, 1, 4))
    assert resolved.label == 'Dec 29 - Jan 4, 2026'


def test_month_view_covers_the_whole_month() -> None:
    resolved = resolve_range('month', date(2026, 1, 31))

    assert (resolved.start, resolved.end) == (date(2026, 1, 1), date(2026, 1, 31))
    assert resolved.next_anchor == date(2026, 2, 28)
    assert resolved.prev_anchor == date(2025, 12, 31)
    assert resolved.label == 'January 2026'


def test_month_view_handles_leap_february() -> None:
    resolved = resolve_range('month', date(2024, 2, 10))

    assert resolved.end == date(2024, 2, 29)


def test_list_view_is_unbounded_and_paged() -> None:
    resolved = resolve_range('list', date(2026, 1, 7))

    assert not resolved.is_bounded
    assert resolved.newest_first
    assert (resolved.start, resolved.end, resolved.prev_anchor, resolved.next_anchor) == (None, None, None, None)
    assert resolved.limit == config.LIST_PAGE_SIZE
    assert resolved.datetime_bounds() is None


@pytest.mark.parametrize('view', ['day', 'week', 'month'])
@pytest.mark.parametrize(
    'anchor',
    [date(2026, 1, 7), date(2025, 12, 31), date(2026, 1, 31), date(2024, 2, 29), date(2026, 3, 1)],
)
def test_stepping_forward_then_back_returns_to_the_same_range(view: str, anchor: date) -> None:
    current = resolve_range(view, anchor)

    forward = resolve_range(view, current.next_anchor)
    back = resolve_range(view, forward.prev_anchor)

    assert (back.start, back.end, back.label) == (current.start, current.end, current.label)
    assert forward.start > current.end


@pytest.mark.parametrize('view', ['day', 'week'])
def test_fixed_length_views_step_back_to_the_exact_anchor(view: str) -> None:
    anchor = date(2026, 1, 7)

    assert resolve_range(view, resolve_range(view, anchor).next_anchor).prev_anchor == anchor


def test_datetime_bounds_are_half_open() -> None:
    resolved = resolve_range('week', date(2026, 1, 7))

    assert resolved.datetime_bounds() == (datetime(2026, 1, 5), datetime(2026, 1, 12))


@pytest.mark.parametrize('value', [None, ''])
def test_missing_view_defaults_to_week(value) -> None:
    assert parse_view(value) is CalendarView.WEEK


def test_view_names_are_case_insensitive() -> None:
    assert parse_view(' Month ') is CalendarView.MONTH


def test_unknown_view_is_rejected() -> None:
    with pytest.raises(ValidationError):
        resolve_range('year', date(2026, 1, 7))
