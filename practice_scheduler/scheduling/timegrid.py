"""Minute-resolution time arithmetic shared by the scheduling core."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from practice_scheduler.scheduling.errors import ValidationError

MINUTES_PER_DAY = 24 * 60


def parse_clock(value: str | int | time) -> int:
    """Convert ``"HH:MM"``, a ``time`` or an int into minutes since midnight.

    ``"24:00"`` is accepted so a working window can run to the end of the day.
    """
    if isinstance(value, bool):
        raise ValidationError(f'Invalid time value: {value!r}.')
    if isinstance(value, int):
        minutes = value
    elif isinstance(value, time):
        minutes = value.hour * 60 + value.minute
    elif isinstance(value, str):
        parts = value.strip().split(':')
        if len(parts) not in (2, 3) or not all(part.isdigit() for part in parts):
            raise ValidationError(f'Invalid time "{value}". Use HH:MM.')
        hours, mins = int(parts[0]), int(parts[1])
        if mins >= 60:
            raise ValidationError(f'Invalid time "{value}". Use HH:MM.')
        minutes = hours * 60 + mins
    else:
        raise ValidationError(f'Invalid time value: {value!r}.')

    if minutes < 0 or minutes > MINUTES_PER_DAY:
        raise ValidationError(f'Time {value!r} is outside the day.')
    return minutes


def format_clock(minutes: int) -> str:
    return f'{minutes // 60:02d}:{minutes % 60:02d}'


def minutes_since_midnight(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def at_minute(day: date, minutes: int) -> datetime:
    return datetime.combine(day, time()) + timedelta(minutes=minutes)


def day_of_week(day: date) -> int:
    # 0=Sunday .. 6=Saturday; date.weekday() is 0=Monday
    return (day.weekday() + 1) % 7


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    return a_start < b_end and a_end > b_start


@dataclass(frozen=True)
class Interval:
    """Half-open ``[start, end)`` span of minutes or datetimes."""
    start: object
    end: object

    def overlaps(self, other: 'Interval') -> bool:
        return overlaps(self.start, self.end, other.start, other.end)

    def dilate(self, amount) -> 'Interval':
        if isinstance(self.start, datetime) and isinstance(amount, int):
            amount = timedelta(minutes=amount)
        return Interval(self.start - amount, self.end + amount)

    def to_minutes(self, day: date) -> 'Interval':
        """Project a datetime interval onto minutes relative to ``day``'s midnight.

        Spans that begin before or end after ``day`` fall outside ``[0, 1440]``,
        which keeps overlap tests against same-day candidates exact.
        """
        midnight = datetime.combine(day, time())
        start = int((self.start - midnight).total_seconds() // 60)
        end = -int(-(self.end - midnight).total_seconds() // 60)
        return Interval(start, end)
