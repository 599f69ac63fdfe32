"""
Weekly Availability Model

A practitioner's recurring week: one DaySchedule per weekday (0=Sunday),
plus the buffer enforced around bookings and the booking horizon.

Configuration is validated when it is built or written, never during slot
generation, so the generator can assume a well-formed week.
"""

from datetime import date, timedelta

import pydantic
from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

from practice_scheduler.core import config
from practice_scheduler.scheduling.errors import ValidationError
from practice_scheduler.scheduling.timegrid import MINUTES_PER_DAY, day_of_week, format_clock, parse_clock

DAYS_PER_WEEK = 7


class Break(BaseModel):
    start: int
    end: int

    @field_validator('start', 'end', mode='before')
    @classmethod
    def parse_minutes(cls, value):
        return parse_clock(value)

    @model_validator(mode='after')
    def check_order(self) -> 'Break':
        if self.start >= self.end:
            raise ValueError(f'Break {format_clock(self.start)}-{format_clock(self.end)} must end after it starts.')
        return self

    @field_serializer('start', 'end')
    def serialize_minutes(self, value: int) -> str:
        return format_clock(value)


class DaySchedule(BaseModel):
    day_of_week: int = Field(alias='day', ge=0, le=6)
    enabled: bool = False
    start_time: int = 9 * 60
    end_time: int = 17 * 60
    breaks: list[Break] = Field(default_factory=list)

    model_config = {'populate_by_name': True}

    @field_validator('start_time', 'end_time', mode='before')
    @classmethod
    def parse_minutes(cls, value):
        return parse_clock(value)

    @field_validator('breaks')
    @classmethod
    def sort_breaks(cls, value: list[Break]) -> list[Break]:
        return sorted(value, key=lambda item: (item.start, item.end))

    @model_validator(mode='after')
    def check_window(self) -> 'DaySchedule':
        if not 0 <= self.start_time < self.end_time <= MINUTES_PER_DAY:
            raise ValueError('Working hours must start before they end.')

        previous_end = None
        for item in self.breaks:
            if item.start < self.start_time or item.end > self.end_time:
                raise ValueError(
                    f'Break {format_clock(item.start)}-{format_clock(item.end)} is outside working hours.'
                )
            if previous_end is not None and item.start < previous_end:
                raise ValueError('Breaks must not overlap.')
            previous_end = item.end
        return self

    @field_serializer('start_time', 'end_time')
    def serialize_minutes(self, value: int) -> str:
        return format_clock(value)

    @property
    def window_minutes(self) -> int:
        return self.end_time - self.start_time


class WeeklyAvailability(BaseModel):
    days: list[DaySchedule]
    buffer_minutes: int = Field(default=config.DEFAULT_BUFFER_MINUTES, ge=0)
    booking_window_days: int = Field(default=config.DEFAULT_BOOKING_WINDOW_DAYS, gt=0)

    @field_validator('days')
    @classmethod
    def check_week(cls, value: list[DaySchedule]) -> list[DaySchedule]:
        if len(value) != DAYS_PER_WEEK:
            raise ValueError('A weekly schedule needs exactly 7 days.')
        seen = {day.day_of_week for day in value}
        if len(seen) != DAYS_PER_WEEK:
            raise ValueError('Each weekday must appear exactly once.')
        return sorted(value, key=lambda day: day.day_of_week)

    def day_for(self, target: date) -> DaySchedule:
        return self.days[day_of_week(target)]

    def horizon_end(self, today: date) -> date:
        return today + timedelta(days=self.booking_window_days)

    def is_within_horizon(self, target: date, today: date) -> bool:
        return today <= target <= self.horizon_end(today)

    def to_config(self) -> dict:
        return self.model_dump(by_alias=True)

    @classmethod
    def from_config(cls, data: dict | None) -> 'WeeklyAvailability':
        if data is None:
            return default_availability()
        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as exc:
            raise ValidationError(_summarize(exc)) from exc


def _summarize(exc: pydantic.ValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = '.'.join(str(part) for part in error.get('loc', ()))
        message = error.get('msg', 'Invalid value')
        messages.append(f'{location}: {message}' if location else message)
    return '; '.join(messages) or 'Invalid schedule configuration.'


def default_availability() -> WeeklyAvailability:
    """Monday to Friday 09:00-18:00 with a lunch break, weekends off."""
    days = [
        DaySchedule(
            day=weekday,
            enabled=1 <= weekday <= 5,
            start_time='09:00',
            end_time='18:00',
            breaks=[Break(start='12:00', end='13:00')] if 1 <= weekday <= 5 else [],
        )
        for weekday in range(DAYS_PER_WEEK)
    ]
    return WeeklyAvailability(days=days)
