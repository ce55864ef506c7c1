"""Slot generation from weekly rules and per-date exceptions."""

from datetime import date, datetime, timezone as dt_timezone
from zoneinfo import ZoneInfo

from django.test import SimpleTestCase

from apps.scheduling.domain.intervals import TimeWindow
from apps.scheduling.domain.slots import (
    AvailabilityException,
    ExceptionType,
    WeeklyRule,
    day_of_week,
    generate_slots_for_date,
)
from apps.scheduling.domain.timezones import iso_to_local_date
from shared.domain.exceptions import ValidationError

UTC = dt_timezone.utc
MONDAY = 1


class SlotGenerationTests(SimpleTestCase):
    def test_weekday_convention_starts_on_sunday(self):
        self.assertEqual(day_of_week(date(2026, 3, 8)), 0)
        self.assertEqual(day_of_week(date(2026, 3, 9)), MONDAY)
        self.assertEqual(day_of_week(date(2026, 3, 14)), 6)

    def test_rule_with_lunch_blackout(self):
        schedule = generate_slots_for_date(
            "2026-03-09",
            "Africa/Lagos",
            [WeeklyRule(MONDAY, 540, 1020)],
            [AvailabilityException("2026-03-09", ExceptionType.BLACKOUT, 720, 780)],
            slot_minutes=60,
        )

        self.assertEqual(
            [slot.local for slot in schedule.slots],
            ["09:00", "10:00", "11:00", "13:00", "14:00", "15:00", "16:00"],
        )
        self.assertEqual(schedule.windows, [TimeWindow(540, 720), TimeWindow(780, 1020)])
        self.assertEqual(schedule.slots[0].utc, datetime(2026, 3, 9, 8, 0, tzinfo=UTC))
        self.assertEqual(schedule.slots[0].utc_iso, "2026-03-09T08:00:00.000Z")

    def test_no_rule_for_weekday_uses_full_default_day(self):
        schedule = generate_slots_for_date("2026-03-09", "Africa/Lagos", [WeeklyRule(2, 540, 600)], [])

        self.assertEqual(len(schedule.slots), 32)
        self.assertEqual(schedule.slots[0].local, "06:00")
        self.assertEqual(schedule.slots[-1].local, "21:30")

    def test_full_day_blackout_removes_everything(self):
        schedule = generate_slots_for_date(
            "2026-03-09",
            "Africa/Lagos",
            [WeeklyRule(MONDAY, 540, 1020)],
            [AvailabilityException("2026-03-09", "blackout")],
        )
        self.assertEqual(schedule.slots, [])

    def test_exceptions_apply_in_order(self):
        rules = [WeeklyRule(MONDAY, 540, 600)]
        blackout = AvailabilityException("2026-03-09", ExceptionType.BLACKOUT)
        extra = AvailabilityException("2026-03-09", ExceptionType.ADD_WINDOW, 900, 960)

        after_extra = generate_slots_for_date("2026-03-09", "Africa/Lagos", rules, [blackout, extra], 30)
        self.assertEqual([slot.local for slot in after_extra.slots], ["15:00", "15:30"])

        after_blackout = generate_slots_for_date("2026-03-09", "Africa/Lagos", rules, [extra, blackout], 30)
        self.assertEqual(after_blackout.slots, [])

    def test_add_window_touching_rule_is_merged(self):
        schedule = generate_slots_for_date(
            "2026-03-09",
            "Africa/Lagos",
            [WeeklyRule(MONDAY, 540, 600)],
            [AvailabilityException("2026-03-09", ExceptionType.ADD_WINDOW, 600, 660)],
            slot_minutes=30,
        )
        self.assertEqual(schedule.windows, [TimeWindow(540, 660)])
        self.assertEqual([slot.local for slot in schedule.slots], ["09:00", "09:30", "10:00", "10:30"])

    def test_exceptions_for_other_dates_are_ignored(self):
        schedule = generate_slots_for_date(
            "2026-03-09",
            "Africa/Lagos",
            [WeeklyRule(MONDAY, 540, 600)],
            [AvailabilityException("2026-03-10", ExceptionType.BLACKOUT)],
            slot_minutes=30,
        )
        self.assertEqual(len(schedule.slots), 2)

    def test_slots_across_dst_start(self):
        schedule = generate_slots_for_date(
            "2026-03-08", "America/New_York", [WeeklyRule(0, 540, 600)], [], slot_minutes=30
        )
        self.assertEqual(
            [slot.utc for slot in schedule.slots],
            [datetime(2026, 3, 8, 13, 0, tzinfo=UTC), datetime(2026, 3, 8, 13, 30, tzinfo=UTC)],
        )
        self.assertEqual([slot.local for slot in schedule.slots], ["09:00", "09:30"])

    def test_window_not_a_multiple_of_slot_length(self):
        schedule = generate_slots_for_date(
            "2026-03-09", "Africa/Lagos", [WeeklyRule(MONDAY, 540, 600)], [], slot_minutes=45
        )
        self.assertEqual([slot.local for slot in schedule.slots], ["09:00", "09:45"])

    def test_every_slot_falls_on_the_requested_local_date(self):
        cases = [
            ("2026-03-08", "America/New_York"),
            ("2026-11-01", "America/New_York"),
            ("2026-03-29", "Europe/London"),
            ("2026-04-05", "Pacific/Auckland"),
            ("2026-03-09", "Asia/Kolkata"),
            ("2026-03-09", "Africa/Lagos"),
        ]
        for local_date, timezone in cases:
            with self.subTest(local_date=local_date, timezone=timezone):
                schedule = generate_slots_for_date(local_date, timezone, [], [])
                self.assertEqual(len(schedule.slots), 32)
                for slot in schedule.slots:
                    self.assertEqual(iso_to_local_date(slot.utc, ZoneInfo(timezone)), local_date)

    def test_default_timezone(self):
        schedule = generate_slots_for_date("2026-03-09", None, [WeeklyRule(MONDAY, 540, 600)], [])
        self.assertEqual(schedule.timezone, "Africa/Lagos")


class SlotGenerationErrorTests(SimpleTestCase):
    def test_add_window_outside_daily_bounds(self):
        with self.assertRaises(ValidationError):
            generate_slots_for_date(
                "2026-03-09",
                "Africa/Lagos",
                [],
                [AvailabilityException("2026-03-09", ExceptionType.ADD_WINDOW, 300, 400)],
            )

    def test_inverted_rule(self):
        with self.assertRaises(ValidationError):
            generate_slots_for_date("2026-03-09", "Africa/Lagos", [WeeklyRule(MONDAY, 600, 540)], [])

    def test_rule_outside_daily_bounds(self):
        with self.assertRaises(ValidationError):
            generate_slots_for_date("2026-03-09", "Africa/Lagos", [WeeklyRule(MONDAY, 300, 540)], [])

    def test_bad_slot_length(self):
        with self.assertRaises(ValidationError):
            generate_slots_for_date("2026-03-09", "Africa/Lagos", [], [], slot_minutes=0)

    def test_bad_timezone(self):
        with self.assertRaises(ValidationError):
            generate_slots_for_date("2026-03-09", "Nowhere/Land", [], [])

    def test_unknown_exception_type(self):
        with self.assertRaises(ValidationError):
            AvailabilityException("2026-03-09", "holiday")
