"""Domain services for booking workflows."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, Set
from uuid import UUID

from django.conf import settings  # type: ignore
from django.db.models import Q  # type: ignore

from shared.domain.exceptions import BookingConflictError, NotFoundError
from shared.domain.value_objects import DateRange

from .domain.overlap import (
    OverlapRow,
    UnavailableRange,
    resolve_availability_conflicts,
    unavailable_property_ids_for_range,
)
from .domain.polling import (
    PollingStopReason,
    is_finalising_state,
    polling_stop_reason,
    resolve_polling_action,
    resolve_return_ui_state,
    resolve_timeout_message,
)
from .domain.state_machine import BLOCKING_BOOKING_STATUSES
from .models import ShortletBlock, ShortletBooking, ShortletPayment
from .repositories import lock_queryset_if_possible

logger = logging.getLogger(__name__)

_BLOCKING_VALUES = [status.value for status in BLOCKING_BOOKING_STATUSES]


def _overlapping_bookings(check_in: date, check_out: date, prep_days: int = 0):
    # a booking's prep buffer reaches prep_days past its check-out
    reach = check_in - timedelta(days=max(0, prep_days))
    return ShortletBooking.objects.filter(
        status__in=_BLOCKING_VALUES,
    ).filter(Q(check_in__lt=check_out) & Q(check_out__gt=reach))


def _overlapping_blocks(check_in: date, check_out: date):
    return ShortletBlock.objects.filter(Q(start_date__lt=check_out) & Q(end_date__gt=check_in))


def ensure_property_is_available(
    property_id: UUID,
    check_in: date,
    check_out: date,
    *,
    exclude_booking_id: UUID | None = None,
    prep_days: int = 0,
) -> None:
    """
    Ensure the property is free for the given stay.

    Inside transaction.atomic() the rows read here are locked, so the
    check and the insert that follows see the same data.

    Raises:
        ValidationError: check_in is not before check_out
        BookingConflictError: at least one night is booked or blocked
    """
    candidate = DateRange(check_in, check_out)

    bookings_qs = _overlapping_bookings(check_in, check_out, prep_days).filter(property_id=property_id)
    if exclude_booking_id is not None:
        bookings_qs = bookings_qs.exclude(pk=exclude_booking_id)
    bookings_qs = lock_queryset_if_possible(bookings_qs)

    blocks_qs = lock_queryset_if_possible(
        _overlapping_blocks(check_in, check_out).filter(property_id=property_id)
    )

    ranges = [
        UnavailableRange(start=row.check_in, end=row.check_out, source="booking", booking_id=row.pk)
        for row in bookings_qs
    ]
    ranges.extend(
        UnavailableRange(start=row.start_date, end=row.end_date, source="block")
        for row in blocks_qs
    )

    result = resolve_availability_conflicts(candidate, ranges, prep_days)
    if result.has_conflict:
        nights = ", ".join(night.isoformat() for night in result.conflicting_dates)
        logger.info(f"Property {property_id} unavailable for {candidate}: {nights}")
        raise BookingConflictError(f"Property is not available for the selected dates ({nights}).")


def unavailable_property_ids(
    check_in: date,
    check_out: date,
    property_ids: Iterable[UUID] | None = None,
) -> Set[UUID]:
    """Properties (optionally among ``property_ids``) busy for any night of the stay"""
    candidate = DateRange(check_in, check_out)

    bookings_qs = _overlapping_bookings(check_in, check_out)
    blocks_qs = _overlapping_blocks(check_in, check_out)
    if property_ids is not None:
        property_ids = list(property_ids)
        bookings_qs = bookings_qs.filter(property_id__in=property_ids)
        blocks_qs = blocks_qs.filter(property_id__in=property_ids)

    booked = [
        OverlapRow(property_id=row[0], start=row[1], end=row[2])
        for row in bookings_qs.values_list("property_id", "check_in", "check_out")
    ]
    blocked = [
        OverlapRow(property_id=row[0], start=row[1], end=row[2])
        for row in blocks_qs.values_list("property_id", "start_date", "end_date")
    ]
    return unavailable_property_ids_for_range(candidate, booked, blocked)


def booking_return_status(
    booking_id: UUID,
    elapsed_ms: float,
    *,
    timeout_final_fetch_done: bool = False,
) -> dict:
    """
    Fresh booking and payment status plus the polling decision for the
    payment return page. Statuses are passed through as stored.

    Raises:
        NotFoundError: unknown booking
    """
    from .serializers import ReturnStatusSerializer  # Local import to prevent circular dependency

    booking_status = (
        ShortletBooking.objects.filter(pk=booking_id).values_list("status", flat=True).first()
    )
    if booking_status is None:
        raise NotFoundError(f"Booking {booking_id} not found")
    payment_status = (
        ShortletPayment.objects.filter(booking_id=booking_id).values_list("status", flat=True).first()
    )

    timeout_ms = settings.SHORTLET_STATUS_POLL_TIMEOUT_MS
    action = resolve_polling_action(
        booking_status,
        payment_status,
        elapsed_ms,
        timeout_ms=timeout_ms,
        timeout_final_fetch_done=timeout_final_fetch_done,
    )
    stop_reason = polling_stop_reason(booking_status, payment_status, elapsed_ms, timeout_ms)

    return ReturnStatusSerializer({
        "booking_id": booking_id,
        "booking_status": booking_status,
        "payment_status": payment_status,
        "ui_state": resolve_return_ui_state(booking_status, payment_status).value,
        "action": action.value,
        "stop_reason": stop_reason.value,
        "is_finalising": is_finalising_state(booking_status, payment_status),
        "timeout_message": (
            resolve_timeout_message(booking_status, payment_status)
            if stop_reason is PollingStopReason.TIMEOUT else None
        ),
    }).data
