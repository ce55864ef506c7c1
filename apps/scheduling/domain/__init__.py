"""Pure scheduling domain: interval algebra, timezones, slots and validation."""

from .intervals import (
    DAILY_END,
    DAILY_START,
    TimeWindow,
    add_interval,
    ensure_within_daily_bounds,
    merge_windows,
    subtract_interval,
)
from .slots import (
    AvailabilityException,
    ExceptionType,
    Slot,
    SlotSchedule,
    WeeklyRule,
    generate_slots_for_date,
)
from .timezones import iso_to_local_date, validate_timezone, zoned_time_to_utc
from .validator import assert_preferred_times_in_availability

__all__ = [
    'DAILY_END',
    'DAILY_START',
    'AvailabilityException',
    'ExceptionType',
    'Slot',
    'SlotSchedule',
    'TimeWindow',
    'WeeklyRule',
    'add_interval',
    'assert_preferred_times_in_availability',
    'ensure_within_daily_bounds',
    'generate_slots_for_date',
    'iso_to_local_date',
    'merge_windows',
    'subtract_interval',
    'validate_timezone',
    'zoned_time_to_utc',
]
