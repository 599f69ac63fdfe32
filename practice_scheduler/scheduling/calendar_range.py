"""Resolve a calendar view and anchor date into a query range and navigation."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum

from dateutil.relativedelta import relativedelta

from practice_scheduler.core import config
from practice_scheduler.scheduling.errors import ValidationError


class CalendarView(str, Enum):
    DAY = 'day'
    WEEK = 'week'
    MONTH = 'month'
    LIST = 'list'


DEFAULT_VIEW = CalendarView.WEEK


@dataclass(frozen=True)
class CalendarRange:
    view: CalendarView
    anchor: date
    start: date | None
    end: date | None
    prev_anchor: date | None
    next_anchor: date | None
    label: str
    limit: int | None = None

    @property
    def is_bounded(self) -> bool:
        return self.start is not None

    @property
    def newest_first(self) -> bool:
        return self.view is CalendarView.LIST

    def datetime_bounds(self) -> tuple[datetime, datetime] | None:
        """Inclusive range as ``[start 00:00, day after end 00:00)``."""
        if not self.is_bounded:
            return None
        return datetime.combine(self.start, time()), datetime.combine(self.end + timedelta(days=1), time())


def parse_view(value: str | CalendarView | None) -> CalendarView:
    if value is None or value == '':
        return DEFAULT_VIEW
    if isinstance(value, CalendarView):
        return value
    try:
        return CalendarView(value.strip().lower())
    except ValueError as exc:
        raise ValidationError(f'Unknown calendar view "{value}".') from exc


def _short(day: date) -> str:
    return f'{day:%b} {day.day}'


def resolve_range(view: str | CalendarView | None, anchor: date) -> CalendarRange:
    kind = parse_view(view)

    if kind is CalendarView.DAY:
        return CalendarRange(
            view=kind,
            anchor=anchor,
            start=anchor,
            end=anchor,
            prev_anchor=anchor - timedelta(days=1),
            next_anchor=anchor + timedelta(days=1),
            label=f'{anchor:%A}, {anchor:%B} {anchor.day}, {anchor.year}',
        )

    if kind is CalendarView.WEEK:
        start = anchor - timedelta(days=anchor.weekday())
        end = start + timedelta(days=6)
        return CalendarRange(
            view=kind,
            anchor=anchor,
            start=start,
            end=end,
            prev_anchor=anchor - timedelta(weeks=1),
            next_anchor=anchor + timedelta(weeks=1),
            label=f'{_short(start)} - {_short(end)}, {end.year}',
        )

    if kind is CalendarView.MONTH:
        start = anchor.replace(day=1)
        end = start + relativedelta(months=1) - timedelta(days=1)
        return CalendarRange(
            view=kind,
            anchor=anchor,
            start=start,
            end=end,
            prev_anchor=anchor - relativedelta(months=1),
            next_anchor=anchor + relativedelta(months=1),
            label=f'{anchor:%B} {anchor.year}',
        )

    return CalendarRange(
        view=kind,
        anchor=anchor,
        start=None,
        end=None,
        prev_anchor=None,
        next_anchor=None,
        label='',
        limit=config.LIST_PAGE_SIZE,
    )
