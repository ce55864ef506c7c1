"""
Availability Validator

Checks that every preferred viewing time offered by a guest is one of
the property's generated slots. All-or-nothing: one miss rejects the
whole request.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Sequence

from shared.domain.exceptions import UnavailableError, ValidationError

from .slots import (
    DEFAULT_SLOT_MINUTES,
    DEFAULT_TIMEZONE,
    AvailabilityException,
    WeeklyRule,
    generate_slots_for_date,
)
from .timezones import ensure_utc_instant, iso_to_local_date, validate_timezone

MIN_PREFERRED_TIMES = 1
MAX_PREFERRED_TIMES = 3


def normalize_preferred_times(preferred_times: Sequence) -> List[datetime]:
    if preferred_times is None or isinstance(preferred_times, (str, datetime)):
        raise ValidationError("Preferred times must include 1 to 3 entries")

    values = list(preferred_times)
    if not MIN_PREFERRED_TIMES <= len(values) <= MAX_PREFERRED_TIMES:
        raise ValidationError("Preferred times must include 1 to 3 entries")
    return [ensure_utc_instant(value) for value in values]


def assert_preferred_times_in_availability(
    preferred_times: Sequence,
    timezone: str | None,
    rules: Iterable[WeeklyRule],
    exceptions: Iterable[AvailabilityException],
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> List[datetime]:
    """
    Validate 1-3 proposed instants against generated slots.

    Returns:
        The instants normalised to aware UTC datetimes, in input order.

    Raises:
        ValidationError: bad timezone, count outside 1..3, unparseable instant
        UnavailableError: any instant is not exactly a generated slot
    """
    tz_name = timezone or DEFAULT_TIMEZONE
    tz = validate_timezone(tz_name)
    normalized = normalize_preferred_times(preferred_times)

    rules = list(rules)
    exceptions = list(exceptions)

    allowed: Dict[str, set] = {}
    for instant in normalized:
        local_date = iso_to_local_date(instant, tz)
        if local_date not in allowed:
            schedule = generate_slots_for_date(local_date, tz_name, rules, exceptions, slot_minutes)
            allowed[local_date] = schedule.instants

    for instant in normalized:
        if instant not in allowed[iso_to_local_date(instant, tz)]:
            raise UnavailableError("One or more preferred times are not available for this property")

    return normalized
