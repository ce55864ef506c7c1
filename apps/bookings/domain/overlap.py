"""
Booking Overlap Detector

Decides which properties are unavailable for a candidate stay. Ranges are
half-open [check_in, check_out): a stay that ends on the day another one
starts does not conflict with it.

Layers that keep the same property from being double booked:
1. Domain check: unavailable_property_ids_for_range / resolve_availability_conflicts
2. Pessimistic locking: SELECT FOR UPDATE on the rows read for the check
3. Database constraint: PostgreSQL EXCLUDE constraint (see migrations)
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, List, Set
from uuid import UUID

from shared.domain.base import ValueObject
from shared.domain.value_objects import DateRange

from .state_machine import BLOCKING_BOOKING_STATUSES

__all__ = [
    'BLOCKING_BOOKING_STATUSES',
    'ConflictResult',
    'OverlapRow',
    'UnavailableRange',
    'apply_prep_buffer',
    'ranges_overlap',
    'resolve_availability_conflicts',
    'unavailable_property_ids_for_range',
]


@dataclass(frozen=True)
class OverlapRow(ValueObject):
    """A booked or blocked range of one property"""
    property_id: UUID
    start: date
    end: date


@dataclass(frozen=True)
class UnavailableRange(ValueObject):
    """
    Unavailable range as shown on a property calendar.

    ``booking_id`` is set for ranges produced by a booking; only those get
    the host's preparation buffer.
    """
    start: date
    end: date
    source: str = 'block'
    booking_id: UUID | None = None

    @property
    def from_booking(self) -> bool:
        return self.source == 'booking' or self.booking_id is not None


@dataclass(frozen=True)
class ConflictResult(ValueObject):
    has_conflict: bool = False
    conflicting_dates: List[date] = field(default_factory=list)
    conflicting_ranges: List[UnavailableRange] = field(default_factory=list)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Half-open overlap: touching ranges do not overlap"""
    return a_start < b_end and a_end > b_start


def unavailable_property_ids_for_range(
    candidate: DateRange,
    booked_ranges: Iterable[OverlapRow],
    blocked_ranges: Iterable[OverlapRow],
) -> Set[UUID]:
    """
    Properties with at least one booked or blocked row overlapping the
    candidate stay.

    Callers pass only bookings in BLOCKING_BOOKING_STATUSES.
    """
    unavailable: Set[UUID] = set()
    for rows in (booked_ranges, blocked_ranges):
        for row in rows:
            if row.property_id in unavailable:
                continue
            if ranges_overlap(row.start, row.end, candidate.start_date, candidate.end_date):
                unavailable.add(row.property_id)
    return unavailable


def apply_prep_buffer(ranges: Iterable[UnavailableRange], prep_days: int) -> List[UnavailableRange]:
    """Extend booking ranges by the host's preparation days; blocks are unchanged"""
    prep_days = max(0, int(prep_days or 0))
    ranges = list(ranges)
    if prep_days < 1:
        return ranges

    return [
        UnavailableRange(
            start=item.start,
            end=item.end + timedelta(days=prep_days),
            source=item.source,
            booking_id=item.booking_id,
        )
        if item.from_booking else item
        for item in ranges
    ]


def resolve_availability_conflicts(
    candidate: DateRange,
    ranges: Iterable[UnavailableRange],
    prep_days: int = 0,
) -> ConflictResult:
    """
    Nights of the candidate stay that are unavailable, after the prep
    buffer is applied. Empty or inverted ranges are ignored.
    """
    effective = [
        item for item in apply_prep_buffer(ranges, prep_days)
        if item.start < item.end
        and ranges_overlap(item.start, item.end, candidate.start_date, candidate.end_date)
    ]
    if not effective:
        return ConflictResult()

    conflicting = []
    night = candidate.start_date
    while night < candidate.end_date:
        if any(item.start <= night < item.end for item in effective):
            conflicting.append(night)
        night += timedelta(days=1)

    return ConflictResult(
        has_conflict=bool(conflicting),
        conflicting_dates=conflicting,
        conflicting_ranges=effective,
    )
