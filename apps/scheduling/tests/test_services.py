"""Viewing availability services against the database."""

from __future__ import annotations

import uuid
from datetime import date

from django.test import TestCase, override_settings
from rest_framework import serializers

from apps.scheduling.models import (
    PropertyAvailabilityException,
    PropertyAvailabilityRule,
    PropertyViewingSettings,
)
from apps.scheduling.serializers import parse_availability_exceptions, parse_weekly_rules
from apps.scheduling.services import (
    load_property_availability,
    slots_for_property_date,
    validate_viewing_request,
)
from shared.domain.exceptions import UnavailableError, ValidationError


class ViewingServicesTests(TestCase):
    def setUp(self) -> None:
        self.property_id = uuid.uuid4()
        PropertyViewingSettings.objects.create(
            property_id=self.property_id, timezone="Africa/Lagos", slot_minutes=60
        )
        PropertyAvailabilityRule.objects.create(
            property_id=self.property_id, day_of_week=1, start_minute=540, end_minute=1020
        )
        PropertyAvailabilityException.objects.create(
            property_id=self.property_id,
            local_date=date(2026, 3, 9),
            exception_type=PropertyAvailabilityException.ExceptionType.BLACKOUT,
            start_minute=720,
            end_minute=780,
        )

    def test_slots_for_property_date(self) -> None:
        schedule = slots_for_property_date(self.property_id, "2026-03-09")

        self.assertEqual(
            [slot.local for slot in schedule.slots],
            ["09:00", "10:00", "11:00", "13:00", "14:00", "15:00", "16:00"],
        )

    def test_exception_on_another_date_does_not_apply(self) -> None:
        schedule = slots_for_property_date(self.property_id, date(2026, 3, 16))
        self.assertEqual(len(schedule.slots), 8)

    def test_validate_viewing_request(self) -> None:
        accepted = validate_viewing_request(self.property_id, ["2026-03-09T08:00:00Z"])
        self.assertEqual(len(accepted), 1)

        with self.assertRaises(UnavailableError):
            # 12:00 local is blacked out
            validate_viewing_request(self.property_id, ["2026-03-09T11:00:00Z"])

    @override_settings(SCHEDULING_DEFAULT_TIMEZONE="America/New_York", SCHEDULING_DEFAULT_SLOT_MINUTES=45)
    def test_defaults_without_viewing_settings(self) -> None:
        availability = load_property_availability(uuid.uuid4())

        self.assertEqual(availability.timezone, "America/New_York")
        self.assertEqual(availability.slot_minutes, 45)
        self.assertEqual(availability.rules, [])

    def test_too_many_windows_per_day(self) -> None:
        for start in (360, 480, 600):
            PropertyAvailabilityRule.objects.create(
                property_id=self.property_id, day_of_week=1, start_minute=start, end_minute=start + 60
            )

        with self.assertRaises(ValidationError):
            load_property_availability(self.property_id)


class AvailabilityRowParsingTests(TestCase):
    def test_rejects_weekday_out_of_range(self) -> None:
        with self.assertRaises(serializers.ValidationError):
            parse_weekly_rules([{"day_of_week": 7, "start_minute": 540, "end_minute": 600}])

    def test_rejects_inverted_rule(self) -> None:
        with self.assertRaises(serializers.ValidationError):
            parse_weekly_rules([{"day_of_week": 1, "start_minute": 600, "end_minute": 540}])

    def test_add_window_needs_bounds(self) -> None:
        with self.assertRaises(serializers.ValidationError):
            parse_availability_exceptions([{"local_date": "2026-03-09", "exception_type": "add_window"}])

    def test_bounds_go_together(self) -> None:
        with self.assertRaises(serializers.ValidationError):
            parse_availability_exceptions(
                [{"local_date": "2026-03-09", "exception_type": "blackout", "start_minute": 600}]
            )

    def test_parses_date_objects_to_iso_strings(self) -> None:
        [exception] = parse_availability_exceptions(
            [{"local_date": date(2026, 3, 9), "exception_type": "blackout",
              "start_minute": None, "end_minute": None}]
        )
        self.assertEqual(exception.local_date, "2026-03-09")
        self.assertFalse(exception.has_bounds)
