"""
Interval Algebra

Set operations over minute-of-day windows. Every operation returns a
merged list: sorted by start, non-overlapping, touching windows fused.
"""

from dataclasses import dataclass
from typing import Iterable, List

from shared.domain.base import ValueObject
from shared.domain.exceptions import ValidationError

MINUTES_PER_DAY = 24 * 60
DAILY_START = 6 * 60    # 06:00 local
DAILY_END = 22 * 60     # 22:00 local


@dataclass(frozen=True)
class TimeWindow(ValueObject):
    """Half-open [start, end) interval of minutes since local midnight."""
    start: int
    end: int

    @property
    def minutes(self) -> int:
        return self.end - self.start

    def __str__(self):
        return f"{format_minute(self.start)}-{format_minute(self.end)}"


def format_minute(minute: int) -> str:
    """540 -> '09:00'"""
    return f"{minute // 60:02d}:{minute % 60:02d}"


def ensure_within_daily_bounds(window: TimeWindow) -> TimeWindow:
    """
    Single bounds gate for every window entering the algebra.

    Raises:
        ValidationError: window is empty, inverted or outside 06:00-22:00
    """
    if window.start < DAILY_START or window.end > DAILY_END or window.start >= window.end:
        raise ValidationError("Availability windows must be within 06:00 and 22:00 local time")
    return window


def merge_windows(windows: Iterable[TimeWindow]) -> List[TimeWindow]:
    """Sort by start and fold overlapping or touching windows together"""
    merged: List[TimeWindow] = []
    for window in sorted(windows, key=lambda w: (w.start, w.end)):
        if not merged or window.start > merged[-1].end:
            merged.append(window)
            continue
        last = merged[-1]
        if window.end > last.end:
            merged[-1] = TimeWindow(last.start, window.end)
    return merged


def subtract_interval(windows: Iterable[TimeWindow], start: int, end: int) -> List[TimeWindow]:
    """Remove [start, end) from every window, then re-merge"""
    result: List[TimeWindow] = []
    for window in windows:
        # no overlap
        if end <= window.start or start >= window.end:
            result.append(window)
        # fully covered
        elif start <= window.start and end >= window.end:
            continue
        # left trim
        elif start <= window.start:
            result.append(TimeWindow(end, window.end))
        # right trim
        elif end >= window.end:
            result.append(TimeWindow(window.start, start))
        # split
        else:
            result.append(TimeWindow(window.start, start))
            result.append(TimeWindow(end, window.end))
    return merge_windows(result)


def add_interval(windows: Iterable[TimeWindow], start: int, end: int) -> List[TimeWindow]:
    """Union [start, end) into the windows"""
    return merge_windows([*windows, TimeWindow(start, end)])
