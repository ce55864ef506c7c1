"""Application services for viewing availability.

Load a property's rules, exceptions and timezone, then hand them to the
pure scheduling engine. Nothing is cached: every call reads fresh rows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Sequence
from uuid import UUID

from django.conf import settings  # type: ignore
from rest_framework import serializers  # type: ignore

from shared.domain.exceptions import ValidationError

from .domain.slots import AvailabilityException, SlotSchedule, WeeklyRule, generate_slots_for_date
from .domain.timezones import parse_local_date
from .domain.validator import assert_preferred_times_in_availability
from .models import PropertyAvailabilityException, PropertyAvailabilityRule, PropertyViewingSettings
from .serializers import parse_availability_exceptions, parse_weekly_rules

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PropertyAvailability:
    timezone: str
    slot_minutes: int
    rules: list[WeeklyRule]
    exceptions: list[AvailabilityException]


def _viewing_settings(property_id: UUID) -> tuple[str, int]:
    row = PropertyViewingSettings.objects.filter(property_id=property_id).first()
    if row is None:
        return settings.SCHEDULING_DEFAULT_TIMEZONE, settings.SCHEDULING_DEFAULT_SLOT_MINUTES
    return row.timezone, row.slot_minutes


def load_property_availability(
    property_id: UUID,
    local_dates: Sequence[date] | None = None,
) -> PropertyAvailability:
    """
    Read rules and exceptions for a property.

    When ``local_dates`` is given only those dates' exceptions are loaded.
    """
    timezone, slot_minutes = _viewing_settings(property_id)

    rule_rows = PropertyAvailabilityRule.objects.filter(property_id=property_id).values(
        "day_of_week", "start_minute", "end_minute"
    )
    exception_qs = PropertyAvailabilityException.objects.filter(property_id=property_id)
    if local_dates is not None:
        exception_qs = exception_qs.filter(local_date__in=list(local_dates))
    exception_rows = exception_qs.order_by("local_date", "id").values(
        "local_date", "exception_type", "start_minute", "end_minute"
    )

    try:
        rules = parse_weekly_rules(rule_rows)
        exceptions = parse_availability_exceptions(exception_rows)
    except serializers.ValidationError as e:
        logger.error(f"Malformed availability rows for property {property_id}: {e.detail}")
        raise ValidationError("Invalid availability window") from e

    return PropertyAvailability(
        timezone=timezone,
        slot_minutes=slot_minutes,
        rules=rules,
        exceptions=exceptions,
    )


def slots_for_property_date(property_id: UUID, local_date) -> SlotSchedule:
    """Bookable viewing slots of one local date for a property"""
    day = parse_local_date(local_date)
    availability = load_property_availability(property_id, local_dates=[day])
    return generate_slots_for_date(
        day,
        availability.timezone,
        availability.rules,
        availability.exceptions,
        availability.slot_minutes,
    )


def validate_viewing_request(property_id: UUID, preferred_times: Sequence) -> list:
    """
    Check a guest's proposed viewing times against the property's slots.

    Returns the normalised UTC instants; raises ValidationError or
    UnavailableError.
    """
    availability = load_property_availability(property_id)
    normalized = assert_preferred_times_in_availability(
        preferred_times,
        availability.timezone,
        availability.rules,
        availability.exceptions,
        availability.slot_minutes,
    )
    logger.info(f"Accepted {len(normalized)} preferred viewing times for property {property_id}")
    return normalized
