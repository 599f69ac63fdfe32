from datetime import date, datetime

import pytest

from practice_scheduler.scheduling.errors import ValidationError
from practice_scheduler.scheduling.selector import (
    GesturePhase,
    PointerEvent,
    RangeSelection,
    TapSelection,
    TimeAxis,
    TimeRangeSelector,
)

DAY = date(2026, 1, 5)


@pytest.fixture
def selector() -> TimeRangeSelector:
    # 08:00-20:00 over 720px, one pixel per minute.
    return TimeRangeSelector(TimeAxis(start_hour=8, end_hour=20, top=0, height=720), DAY)


def press(y: float, at: float = 0, pointer_id: int = 1, **kwargs) -> PointerEvent:
    return PointerEvent(pointer_id=pointer_id, y=y, timestamp_ms=at, **kwargs)


def test_axis_snaps_and_clamps() -> None:
    axis = TimeAxis(start_hour=8, end_hour=20, top=100, height=720)

    assert axis.minutes_at(100) == 480
    assert axis.minutes_at(107) == 480
    assert axis.minutes_at(108) == 495
    assert axis.minutes_at(0) == 480
    assert axis.minutes_at(2000) == 1200


@pytest.mark.parametrize(
    'kwargs',
    [
        {'start_hour': 10, 'end_hour': 10, 'top': 0, 'height': 100},
        {'start_hour': -1, 'end_hour': 10, 'top': 0, 'height': 100},
        {'start_hour': 8, 'end_hour': 25, 'top': 0, 'height': 100},
        {'start_hour': 8, 'end_hour': 20, 'top': 0, 'height': 0},
    ],
)
def test_axis_rejects_invalid_bounds(kwargs) -> None:
    with pytest.raises(ValidationError):
        TimeAxis(**kwargs)


def test_quick_still_press_is_a_tap(selector: TimeRangeSelector) -> None:
    assert selector.pointer_down(press(120, at=0))
    assert selector.phase is GesturePhase.TRACKING

    result = selector.pointer_up(press(122, at=100))

    assert result == TapSelection(day=DAY, minute=600)
    assert result.time_label == '10:00'
    assert result.starts_at == datetime(2026, 1, 5, 10, 0)
    assert selector.phase is GesturePhase.IDLE
    assert selector.preview is None


def test_drag_down_yields_a_snapped_range(selector: TimeRangeSelector) -> None:
    selector.pointer_down(press(120, at=0))

    preview = selector.pointer_move(press(160, at=50))
    assert selector.phase is GesturePhase.DRAGGING
    assert preview == RangeSelection(day=DAY, start=600, end=645)

    result = selector.pointer_up(press(160, at=400))

    assert result == RangeSelection(day=DAY, start=600, end=645)
    assert (result.start_label, result.end_label) == ('10:00', '10:45')
    assert result.duration_minutes == 45
    assert selector.preview is None


def test_drag_upward_is_normalized(selector: TimeRangeSelector) -> None:
    selector.pointer_down(press(160, at=0))
    selector.pointer_move(press(120, at=50))

    result = selector.pointer_up(press(120, at=400))

    assert (result.start, result.end) == (600, 645)


def test_small_moves_do_not_start_a_drag(selector: TimeRangeSelector) -> None:
    selector.pointer_down(press(120, at=0))

    assert selector.pointer_move(press(124, at=30)) is None
    assert selector.phase is GesturePhase.TRACKING
    assert selector.preview is None


def test_fast_but_long_move_is_a_drag(selector: TimeRangeSelector) -> None:
    selector.pointer_down(press(120, at=0))

    result = selector.pointer_up(press(180, at=60))

    assert isinstance(result, RangeSelection)
    assert (result.start, result.end) == (600, 660)


def test_slow_still_press_selects_nothing(selector: TimeRangeSelector) -> None:
    selector.pointer_down(press(120, at=0))

    assert selector.pointer_up(press(121, at=500)) is None
    assert selector.phase is GesturePhase.IDLE


def test_press_on_interactive_element_is_not_tracked(selector: TimeRangeSelector) -> None:
    assert not selector.pointer_down(press(120, on_interactive=True))
    assert selector.phase is GesturePhase.IDLE
    assert selector.pointer_up(press(120, at=50)) is None


def test_secondary_button_is_ignored(selector: TimeRangeSelector) -> None:
    assert not selector.pointer_down(press(120, button=2))
    assert selector.phase is GesturePhase.IDLE


def test_gesture_belongs_to_the_first_pointer(selector: TimeRangeSelector) -> None:
    selector.pointer_down(press(120, pointer_id=1))

    assert not selector.pointer_down(press(300, pointer_id=2))
    assert selector.pointer_move(press(400, at=20, pointer_id=2)) is None
    assert selector.pointer_up(press(400, at=30, pointer_id=2)) is None
    assert selector.phase is GesturePhase.TRACKING

    assert selector.pointer_up(press(120, at=60, pointer_id=1)) == TapSelection(day=DAY, minute=600)


def test_abort_clears_preview(selector: TimeRangeSelector) -> None:
    selector.pointer_down(press(120, at=0))
    selector.pointer_move(press(200, at=50))
    assert selector.preview is not None

    selector.abort()

    assert selector.preview is None
    assert selector.phase is GesturePhase.IDLE
    assert selector.pointer_up(press(200, at=100)) is None


def test_selector_can_be_reused_after_release(selector: TimeRangeSelector) -> None:
    selector.pointer_down(press(120, at=0))
    selector.pointer_up(press(240, at=300))

    assert selector.pointer_down(press(300, at=1000, pointer_id=2))
    assert selector.pointer_up(press(300, at=1050, pointer_id=2)) == TapSelection(day=DAY, minute=780)
