"""
Timezone Conversion

Maps a property-local calendar date plus minute-of-day to a UTC instant
and back, using the IANA database through ``zoneinfo``.
"""

from datetime import date, datetime, timedelta, timezone as dt_timezone
import re

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.utils.dateparse import parse_datetime

from shared.domain.exceptions import ValidationError

UTC = dt_timezone.utc

_DATE_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')


def validate_timezone(name: str | None) -> ZoneInfo:
    """
    Resolve an IANA zone name.

    Raises:
        ValidationError: empty or unknown zone name
    """
    if not name or not isinstance(name, str):
        raise ValidationError("Invalid timezone")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        raise ValidationError("Invalid timezone")


def parse_local_date(value) -> date:
    """'YYYY-MM-DD' (or a date) -> date; ValidationError on anything else"""
    if isinstance(value, datetime):
        raise ValidationError("Invalid date")
    if isinstance(value, date):
        return value
    match = _DATE_RE.match(str(value or ''))
    if not match:
        raise ValidationError("Invalid date")
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        raise ValidationError("Invalid date")


def _offset_at(instant: datetime, tz: ZoneInfo) -> timedelta:
    return instant.astimezone(tz).utcoffset() or timedelta(0)


def zoned_time_to_utc(local_date, minute_of_day: int, tz: ZoneInfo) -> datetime:
    """
    Local wall-clock time -> aware UTC datetime.

    Guess the instant as if the wall clock were UTC, read the zone's offset
    at that guess, then subtract it. Offsets depend on the date (DST), so
    they cannot be known before an approximate instant is chosen.
    """
    day = parse_local_date(local_date)
    guess = datetime(day.year, day.month, day.day, tzinfo=UTC) + timedelta(minutes=minute_of_day)
    return guess - _offset_at(guess, tz)


def ensure_utc_instant(value) -> datetime:
    """Aware datetime or ISO-8601 string -> aware UTC datetime"""
    if isinstance(value, str):
        try:
            parsed = parse_datetime(value.strip())
        except ValueError:
            parsed = None
    elif isinstance(value, datetime):
        parsed = value
    else:
        parsed = None

    if parsed is None or parsed.tzinfo is None or parsed.utcoffset() is None:
        raise ValidationError("Invalid preferred time")
    return parsed.astimezone(UTC)


def iso_to_local_date(instant, tz: ZoneInfo) -> str:
    """UTC instant -> 'YYYY-MM-DD' calendar date in the zone"""
    return ensure_utc_instant(instant).astimezone(tz).date().isoformat()


def format_local_time(instant: datetime, tz: ZoneInfo) -> str:
    """UTC instant -> 'HH:MM' 24h wall clock in the zone"""
    return instant.astimezone(tz).strftime('%H:%M')


def to_iso_z(instant: datetime) -> str:
    """Millisecond ISO-8601 with a 'Z' suffix, e.g. 2026-03-09T08:00:00.000Z"""
    utc = instant.astimezone(UTC)
    return utc.strftime('%Y-%m-%dT%H:%M:%S.') + f"{utc.microsecond // 1000:03d}Z"
