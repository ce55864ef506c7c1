"""Builders for booking aggregates used across the test modules."""

from __future__ import annotations

import uuid
from datetime import date, timedelta

from apps.bookings.domain.entities import ShortletBooking, ShortletPayment
from apps.bookings.domain.reconciliation import VerificationResult
from apps.bookings.domain.state_machine import BookingMode, BookingStatus, PaymentStatus
from shared.domain.value_objects import DateRange, Money

TOTAL_MINOR = 5_000_000


def make_booking(
    *,
    status: BookingStatus = BookingStatus.PENDING_PAYMENT,
    mode: BookingMode = BookingMode.REQUEST,
    check_in: date = date(2026, 3, 10),
    nights: int = 3,
    total: Money | None = None,
) -> ShortletBooking:
    return ShortletBooking(
        property_id=uuid.uuid4(),
        guest_id=uuid.uuid4(),
        host_id=uuid.uuid4(),
        dates=DateRange(check_in, check_in + timedelta(days=nights)),
        total=total or Money(TOTAL_MINOR, "NGN"),
        booking_mode=mode,
        status=status,
    )


def make_payment(
    booking: ShortletBooking,
    *,
    status: PaymentStatus = PaymentStatus.INITIATED,
    reference: str = "shl_test_ref",
    amount: Money | None = None,
) -> ShortletPayment:
    return ShortletPayment(
        booking_id=booking.id,
        property_id=booking.property_id,
        reference=reference,
        amount=amount or booking.total,
        status=status,
    )


def success(amount_minor: int | None = TOTAL_MINOR, currency: str | None = "NGN") -> VerificationResult:
    return VerificationResult(
        ok=True,
        status="success",
        amount_minor=amount_minor,
        currency=currency,
        authorization_code="AUTH_test",
        customer_code="CUS_test",
        raw={"status": True, "data": {"status": "success", "amount": amount_minor}},
    )


def failure(status: str = "failed") -> VerificationResult:
    return VerificationResult(ok=False, status=status, raw={"status": True, "data": {"status": status}})


class BookingFlowMixin:
    """Drives bookings through the command handlers against the test database."""

    def create_booking(
        self,
        *,
        property_id=None,
        offset_days: int = 10,
        nights: int = 3,
        mode: str = "request",
        prep_days: int = 0,
    ):
        from django.utils import timezone

        from apps.bookings.application.command_handlers import (
            CreateShortletBookingCommand,
            CreateShortletBookingHandler,
        )

        check_in = timezone.localdate() + timedelta(days=offset_days)
        return CreateShortletBookingHandler().handle(CreateShortletBookingCommand(
            property_id=property_id or uuid.uuid4(),
            guest_id=uuid.uuid4(),
            host_id=uuid.uuid4(),
            check_in=check_in,
            check_out=check_in + timedelta(days=nights),
            total_amount_minor=TOTAL_MINOR,
            booking_mode=mode,
            prep_days=prep_days,
        ))

    def start_payment(self, booking, reference=None):
        from apps.bookings.application.command_handlers import (
            StartPaymentAttemptCommand,
            StartPaymentAttemptHandler,
        )

        return StartPaymentAttemptHandler().handle(
            StartPaymentAttemptCommand(booking_id=booking.id, reference=reference)
        )

    def reconcile(self, reference, verification):
        from unittest.mock import MagicMock

        from apps.bookings.application.command_handlers import (
            ReconcilePaymentCommand,
            ReconcilePaymentHandler,
        )

        verifier = MagicMock(return_value=verification)
        result = ReconcilePaymentHandler(verifier=verifier).handle(ReconcilePaymentCommand(reference=reference))
        return result, verifier

    def paid_booking(self, mode: str = "instant", **kwargs):
        booking = self.create_booking(mode=mode, **kwargs)
        attempt = self.start_payment(booking)
        result, _ = self.reconcile(attempt.payment.reference, success())
        return result.booking
