"""Booking overlap detection on half-open date ranges."""

import uuid
from datetime import date

from django.test import SimpleTestCase

from apps.bookings.domain.overlap import (
    OverlapRow,
    UnavailableRange,
    apply_prep_buffer,
    ranges_overlap,
    resolve_availability_conflicts,
    unavailable_property_ids_for_range,
)
from shared.domain.value_objects import DateRange


class RangesOverlapTests(SimpleTestCase):
    def test_overlapping_stays(self):
        self.assertTrue(ranges_overlap(date(2026, 3, 10), date(2026, 3, 13), date(2026, 3, 12), date(2026, 3, 15)))

    def test_touching_stays_do_not_overlap(self):
        self.assertFalse(ranges_overlap(date(2026, 3, 10), date(2026, 3, 13), date(2026, 3, 13), date(2026, 3, 15)))
        self.assertFalse(ranges_overlap(date(2026, 3, 13), date(2026, 3, 15), date(2026, 3, 10), date(2026, 3, 13)))

    def test_containment(self):
        self.assertTrue(ranges_overlap(date(2026, 3, 10), date(2026, 3, 20), date(2026, 3, 12), date(2026, 3, 13)))


class UnavailablePropertyIdsTests(SimpleTestCase):
    def setUp(self):
        self.free = uuid.uuid4()
        self.booked = uuid.uuid4()
        self.blocked = uuid.uuid4()
        self.candidate = DateRange(date(2026, 3, 12), date(2026, 3, 15))

    def test_collects_booked_and_blocked_properties(self):
        result = unavailable_property_ids_for_range(
            self.candidate,
            [
                OverlapRow(self.booked, date(2026, 3, 10), date(2026, 3, 13)),
                OverlapRow(self.free, date(2026, 3, 8), date(2026, 3, 12)),
            ],
            [OverlapRow(self.blocked, date(2026, 3, 14), date(2026, 3, 20))],
        )
        self.assertEqual(result, {self.booked, self.blocked})

    def test_no_rows(self):
        self.assertEqual(unavailable_property_ids_for_range(self.candidate, [], []), set())


class ConflictResolutionTests(SimpleTestCase):
    def setUp(self):
        self.candidate = DateRange(date(2026, 3, 12), date(2026, 3, 15))

    def test_lists_conflicting_nights(self):
        result = resolve_availability_conflicts(
            self.candidate,
            [UnavailableRange(date(2026, 3, 10), date(2026, 3, 13), source="booking")],
        )
        self.assertTrue(result.has_conflict)
        self.assertEqual(result.conflicting_dates, [date(2026, 3, 12)])

    def test_touching_range_is_free(self):
        result = resolve_availability_conflicts(
            self.candidate,
            [UnavailableRange(date(2026, 3, 10), date(2026, 3, 12), source="booking")],
        )
        self.assertFalse(result.has_conflict)
        self.assertEqual(result.conflicting_dates, [])

    def test_prep_buffer_extends_bookings_only(self):
        booking = UnavailableRange(date(2026, 3, 8), date(2026, 3, 11), source="booking", booking_id=uuid.uuid4())
        block = UnavailableRange(date(2026, 3, 8), date(2026, 3, 11))

        buffered = apply_prep_buffer([booking, block], 2)

        self.assertEqual(buffered[0].end, date(2026, 3, 13))
        self.assertEqual(buffered[1], block)

    def test_prep_buffer_creates_conflict(self):
        ranges = [UnavailableRange(date(2026, 3, 8), date(2026, 3, 11), source="booking")]

        self.assertFalse(resolve_availability_conflicts(self.candidate, ranges).has_conflict)
        result = resolve_availability_conflicts(self.candidate, ranges, prep_days=2)
        self.assertEqual(result.conflicting_dates, [date(2026, 3, 12)])

    def test_inverted_ranges_are_ignored(self):
        result = resolve_availability_conflicts(
            self.candidate,
            [UnavailableRange(date(2026, 3, 14), date(2026, 3, 12))],
        )
        self.assertFalse(result.has_conflict)
