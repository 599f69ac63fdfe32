"""
Interactive Time-Range Selector

Interprets pointer gestures over a vertical time axis (one day column of the
practitioner calendar). A quick, still press is a tap and opens the booking
dialog at that instant; anything else is a drag and yields a time range.

States: idle -> tracking -> dragging -> idle. A tap resolves straight from
tracking. Only one gesture is in flight at a time and it belongs to the
pointer that started it until that pointer is released.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from practice_scheduler.core import config
from practice_scheduler.scheduling.errors import ValidationError
from practice_scheduler.scheduling.timegrid import at_minute, format_clock

TAP_MAX_ELAPSED_MS = 150
TAP_MAX_DISPLACEMENT_PX = 5
PRIMARY_BUTTON = 0


@dataclass(frozen=True)
class TimeAxis:
    start_hour: int
    end_hour: int
    top: float
    height: float
    snap_minutes: int = config.SELECTOR_SNAP_MINUTES

    def __post_init__(self):
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValidationError('Axis hours must satisfy 0 <= start_hour < end_hour <= 24.')
        if self.height <= 0:
            raise ValidationError('Axis height must be positive.')

    @property
    def min_minute(self) -> int:
        return self.start_hour * 60

    @property
    def max_minute(self) -> int:
        return self.end_hour * 60

    def minutes_at(self, y: float) -> int:
        fraction = (y - self.top) / self.height
        raw = self.min_minute + fraction * (self.max_minute - self.min_minute)
        snapped = round(raw / self.snap_minutes) * self.snap_minutes
        return max(self.min_minute, min(self.max_minute, snapped))


@dataclass(frozen=True)
class PointerEvent:
    pointer_id: int
    y: float
    timestamp_ms: float
    button: int = PRIMARY_BUTTON
    on_interactive: bool = False  # appointment block, button, link


@dataclass(frozen=True)
class TapSelection:
    day: date
    minute: int

    @property
    def time_label(self) -> str:
        return format_clock(self.minute)

    @property
    def starts_at(self) -> datetime:
        return at_minute(self.day, self.minute)


@dataclass(frozen=True)
class RangeSelection:
    day: date
    start: int
    end: int

    @property
    def start_label(self) -> str:
        return format_clock(self.start)

    @property
    def end_label(self) -> str:
        return format_clock(self.end)

    @property
    def starts_at(self) -> datetime:
        return at_minute(self.day, self.start)

    @property
    def ends_at(self) -> datetime:
        return at_minute(self.day, self.end)

    @property
    def duration_minutes(self) -> int:
        return self.end - self.start


class GesturePhase(str, Enum):
    IDLE = 'idle'
    TRACKING = 'tracking'
    DRAGGING = 'dragging'


@dataclass
class _Gesture:
    pointer_id: int
    start_y: float
    start_minute: int
    started_ms: float
    phase: GesturePhase = GesturePhase.TRACKING


class TimeRangeSelector:
    def __init__(self, axis: TimeAxis, day: date):
        self.axis = axis
        self.day = day
        self._gesture: _Gesture | None = None
        self._preview: RangeSelection | None = None

    @property
    def phase(self) -> GesturePhase:
        return self._gesture.phase if self._gesture else GesturePhase.IDLE

    @property
    def preview(self) -> RangeSelection | None:
        return self._preview

    def _owns(self, event: PointerEvent) -> bool:
        return self._gesture is not None and self._gesture.pointer_id == event.pointer_id

    def _range(self, a: int, b: int) -> RangeSelection:
        return RangeSelection(day=self.day, start=min(a, b), end=max(a, b))

    def pointer_down(self, event: PointerEvent) -> bool:
        """Start tracking. Returns False when the press is not ours to handle."""
        if self._gesture is not None:
            return False
        if event.button != PRIMARY_BUTTON or event.on_interactive:
            return False

        self._gesture = _Gesture(
            pointer_id=event.pointer_id,
            start_y=event.y,
            start_minute=self.axis.minutes_at(event.y),
            started_ms=event.timestamp_ms,
        )
        self._preview = None
        return True

    def pointer_move(self, event: PointerEvent) -> RangeSelection | None:
        if not self._owns(event):
            return self._preview

        gesture = self._gesture
        if abs(event.y - gesture.start_y) < TAP_MAX_DISPLACEMENT_PX:
            return self._preview

        gesture.phase = GesturePhase.DRAGGING
        self._preview = self._range(gesture.start_minute, self.axis.minutes_at(event.y))
        return self._preview

    def pointer_up(self, event: PointerEvent) -> TapSelection | RangeSelection | None:
        if not self._owns(event):
            return None

        gesture = self._gesture
        self._gesture = None
        self._preview = None

        elapsed = event.timestamp_ms - gesture.started_ms
        displacement = abs(event.y - gesture.start_y)
        if elapsed < TAP_MAX_ELAPSED_MS and displacement < TAP_MAX_DISPLACEMENT_PX:
            return TapSelection(day=self.day, minute=gesture.start_minute)

        selection = self._range(gesture.start_minute, self.axis.minutes_at(event.y))
        if selection.start == selection.end:
            return None
        return selection

    def abort(self) -> None:
        self._gesture = None
        self._preview = None
