"""
Slot Generation Engine

Produces the bookable start times for one calendar date. Pure: the caller
reads existing bookings and time blocks from storage and passes them in.

Algorithm:
    1. Look up the DaySchedule for the date's weekday (0=Sunday)
    2. Disabled day -> no slots
    3. Walk candidates from start_time at a fixed stride while
       candidate + duration <= end_time
    4. Drop candidates that overlap a break
    5. Drop candidates that conflict with a booking dilated by the buffer,
       or with a time block (no buffer)
"""

from datetime import date, datetime
from typing import Iterable

from practice_scheduler.core import config
from practice_scheduler.scheduling.availability import WeeklyAvailability
from practice_scheduler.scheduling.errors import ValidationError
from practice_scheduler.scheduling.timegrid import Interval, minutes_since_midnight, overlaps


def _as_minutes(intervals: Iterable[Interval], target_date: date) -> list[Interval]:
    result = []
    for interval in intervals:
        if isinstance(interval.start, datetime):
            result.append(interval.to_minutes(target_date))
        else:
            result.append(interval)
    return result


def _check_duration(duration_minutes: int) -> None:
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
        raise ValidationError('Session duration must be a positive number of minutes.')


def _check_stride(stride_minutes: int) -> None:
    if isinstance(stride_minutes, bool) or not isinstance(stride_minutes, int) or stride_minutes <= 0:
        raise ValidationError('Slot stride must be a positive number of minutes.')


def conflicts(
    start: int,
    duration_minutes: int,
    buffer_minutes: int,
    booked: Iterable[Interval],
    blocked: Iterable[Interval] = (),
) -> bool:
    end = start + duration_minutes
    for existing in booked:
        if start < existing.end + buffer_minutes and end + buffer_minutes > existing.start:
            return True
    for existing in blocked:
        if overlaps(start, end, existing.start, existing.end):
            return True
    return False


def generate_slots(
    availability: WeeklyAvailability,
    target_date: date,
    existing_intervals: Iterable[Interval],
    duration_minutes: int,
    blocked_intervals: Iterable[Interval] = (),
    stride_minutes: int | None = None,
) -> list[int]:
    """
    Return bookable start times for ``target_date`` as minutes since midnight.

    ``existing_intervals`` are bookings; each is dilated by the practitioner's
    buffer on both ends. ``blocked_intervals`` are time blocks and obstruct
    with zero buffer. Intervals may be given in minutes of the target day or
    as datetimes.

    Candidates are not spaced against each other, so two returned slots can
    sit back to back.
    """
    _check_duration(duration_minutes)
    stride = config.SLOT_STRIDE_MINUTES if stride_minutes is None else stride_minutes
    _check_stride(stride)

    day = availability.day_for(target_date)
    if not day.enabled:
        return []

    booked = _as_minutes(existing_intervals, target_date)
    blocked = _as_minutes(blocked_intervals, target_date)
    buffer_minutes = availability.buffer_minutes

    slots: list[int] = []
    candidate = day.start_time
    while candidate + duration_minutes <= day.end_time:
        in_break = any(
            overlaps(candidate, candidate + duration_minutes, item.start, item.end)
            for item in day.breaks
        )
        if not in_break and not conflicts(candidate, duration_minutes, buffer_minutes, booked, blocked):
            slots.append(candidate)
        candidate += stride

    return slots


def is_bookable(
    availability: WeeklyAvailability,
    starts_at: datetime,
    duration_minutes: int,
    existing_intervals: Iterable[Interval],
    blocked_intervals: Iterable[Interval] = (),
) -> bool:
    """Check an arbitrary start time, not only the ones on the stride grid.

    The appointment must fit inside the working window of a single enabled
    day, miss every break and clear every buffered booking and time block.
    """
    _check_duration(duration_minutes)
    target_date = starts_at.date()
    day = availability.day_for(target_date)
    if not day.enabled:
        return False

    start = minutes_since_midnight(starts_at)
    end = start + duration_minutes
    if start < day.start_time or end > day.end_time:
        return False
    if any(overlaps(start, end, item.start, item.end) for item in day.breaks):
        return False

    booked = _as_minutes(existing_intervals, target_date)
    blocked = _as_minutes(blocked_intervals, target_date)
    return not conflicts(start, duration_minutes, availability.buffer_minutes, booked, blocked)

