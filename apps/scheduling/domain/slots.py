"""
Slot Generator

Turns a host's weekly availability rules plus per-date exceptions into
the bookable viewing slots of one local calendar date.

Weekdays follow the 0 = Sunday ... 6 = Saturday convention used by the
availability settings collaborator.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Iterator, List, Sequence
from zoneinfo import ZoneInfo

from shared.domain.base import ValueObject
from shared.domain.exceptions import ValidationError

from .intervals import (
    DAILY_END,
    DAILY_START,
    MINUTES_PER_DAY,
    TimeWindow,
    add_interval,
    ensure_within_daily_bounds,
    merge_windows,
    subtract_interval,
)
from .timezones import (
    format_local_time,
    parse_local_date,
    to_iso_z,
    validate_timezone,
    zoned_time_to_utc,
)

DEFAULT_TIMEZONE = 'Africa/Lagos'
DEFAULT_SLOT_MINUTES = 30


class ExceptionType(Enum):
    BLACKOUT = 'blackout'
    ADD_WINDOW = 'add_window'


@dataclass(frozen=True)
class WeeklyRule(ValueObject):
    """Recurring local-time availability window on one weekday"""
    day_of_week: int
    start_minute: int
    end_minute: int

    def to_window(self) -> TimeWindow:
        if (
            self.start_minute < 0
            or self.end_minute > MINUTES_PER_DAY
            or self.start_minute >= self.end_minute
        ):
            raise ValidationError("Invalid availability window")
        return ensure_within_daily_bounds(TimeWindow(self.start_minute, self.end_minute))


@dataclass(frozen=True)
class AvailabilityException(ValueObject):
    """
    One-off override for a single local date.

    A blackout without bounds clears the whole date; with bounds it
    removes only that interval. An add_window adds its interval.
    """
    local_date: str
    exception_type: ExceptionType
    start_minute: int | None = None
    end_minute: int | None = None

    def __post_init__(self):
        if not isinstance(self.exception_type, ExceptionType):
            try:
                object.__setattr__(self, 'exception_type', ExceptionType(self.exception_type))
            except ValueError:
                raise ValidationError(f"Unknown exception type: {self.exception_type}")

    @property
    def has_bounds(self) -> bool:
        return self.start_minute is not None and self.end_minute is not None


@dataclass(frozen=True)
class Slot(ValueObject):
    utc: datetime
    local: str

    @property
    def utc_iso(self) -> str:
        return to_iso_z(self.utc)


@dataclass(frozen=True)
class SlotSchedule(ValueObject):
    slots: List[Slot] = field(default_factory=list)
    windows: List[TimeWindow] = field(default_factory=list)
    timezone: str = DEFAULT_TIMEZONE

    @property
    def instants(self) -> set:
        return {slot.utc for slot in self.slots}


def day_of_week(day: date) -> int:
    """0 = Sunday ... 6 = Saturday"""
    return day.isoweekday() % 7


def windows_for_rules(rules: Iterable[WeeklyRule]) -> List[TimeWindow]:
    """Validated windows for the rules, or the full default day when none apply"""
    windows = [rule.to_window() for rule in rules]
    if not windows:
        return [TimeWindow(DAILY_START, DAILY_END)]
    return windows


def apply_exceptions(
    windows: Sequence[TimeWindow],
    exceptions: Iterable[AvailabilityException],
) -> List[TimeWindow]:
    """Apply exceptions one after another in the order given"""
    result = list(windows)
    for exception in exceptions:
        if exception.exception_type is ExceptionType.BLACKOUT:
            if not exception.has_bounds:
                result = []
                continue
            window = ensure_within_daily_bounds(
                TimeWindow(exception.start_minute, exception.end_minute)
            )
            result = subtract_interval(result, window.start, window.end)
        elif exception.exception_type is ExceptionType.ADD_WINDOW:
            if not exception.has_bounds:
                continue
            window = ensure_within_daily_bounds(
                TimeWindow(exception.start_minute, exception.end_minute)
            )
            result = add_interval(result, window.start, window.end)
    return merge_windows(result)


def resolve_windows(
    local_date,
    rules: Iterable[WeeklyRule],
    exceptions: Iterable[AvailabilityException],
) -> List[TimeWindow]:
    """Final merged windows of a date after rules and exceptions"""
    day = parse_local_date(local_date)
    weekday = day_of_week(day)
    day_key = day.isoformat()

    day_rules = [rule for rule in rules if rule.day_of_week == weekday]
    day_exceptions = [ex for ex in exceptions if ex.local_date == day_key]
    return apply_exceptions(windows_for_rules(day_rules), day_exceptions)


def iter_slots(
    local_date,
    windows: Iterable[TimeWindow],
    tz: ZoneInfo,
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> Iterator[Slot]:
    """Yield one slot per step; no slot starts at or after its window's end"""
    if not isinstance(slot_minutes, int) or slot_minutes <= 0:
        raise ValidationError("Slot length must be a positive number of minutes")

    for window in windows:
        for minute in range(window.start, window.end, slot_minutes):
            instant = zoned_time_to_utc(local_date, minute, tz)
            yield Slot(utc=instant, local=format_local_time(instant, tz))


def generate_slots_for_date(
    local_date,
    timezone: str | None,
    rules: Iterable[WeeklyRule],
    exceptions: Iterable[AvailabilityException],
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> SlotSchedule:
    """
    Bookable slots for one local date.

    Recomputed on every call; nothing is cached between calls.

    Raises:
        ValidationError: invalid timezone, date, window or slot length
    """
    tz_name = timezone or DEFAULT_TIMEZONE
    tz = validate_timezone(tz_name)
    day = parse_local_date(local_date)

    windows = resolve_windows(day, rules, exceptions)
    slots = list(iter_slots(day, windows, tz, slot_minutes))
    return SlotSchedule(slots=slots, windows=windows, timezone=tz_name)
