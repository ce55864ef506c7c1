"""
Payment Reconciliation

Applies a provider verification result to a booking and its payment.
Pure: it mutates the two aggregates in memory and leaves persistence,
provider calls and locking to the command handler.

Safe to re-run for the same reference. A payment that already succeeded
is a no-op that reports the existing state, a failed payment is not
failed twice, and a failed payment the provider later reports as paid
is reopened before it succeeds.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID

from shared.domain.base import ValueObject
from shared.domain.exceptions import MismatchError
from shared.domain.value_objects import normalize_currency

from .entities import DEFAULT_HOST_RESPONSE_WINDOW, ShortletBooking, ShortletPayment
from .state_machine import PAID_BOOKING_STATUSES, BookingMode, BookingStatus, PaymentStatus


@dataclass(frozen=True)
class VerificationResult(ValueObject):
    """What the payment provider reported for a reference"""
    ok: bool
    status: str = ''
    amount_minor: int | None = None
    currency: str | None = None
    paid_at: datetime | None = None
    authorization_code: str = ''
    customer_code: str = ''
    booking_id: UUID | None = None
    raw: dict = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class ReconciliationResult(ValueObject):
    booking: ShortletBooking
    payment: ShortletPayment
    transitioned: bool = False
    already_succeeded: bool = False
    refund_required: bool = False

    @property
    def booking_status(self) -> BookingStatus:
        return self.booking.status


def _mismatch_reason(booking: ShortletBooking, verification: VerificationResult) -> str | None:
    amount = verification.amount_minor
    if amount is None or amount <= 0:
        return "invalid_amount"
    if amount != booking.total.amount_minor:
        return "amount_mismatch"
    if normalize_currency(verification.currency) != booking.total.currency:
        return "currency_mismatch"
    return None


def reconcile_payment(
    booking: ShortletBooking,
    payment: ShortletPayment,
    verification: VerificationResult,
    booking_mode: BookingMode | None = None,
    now: datetime | None = None,
    host_response_window: timedelta = DEFAULT_HOST_RESPONSE_WINDOW,
) -> ReconciliationResult:
    """
    Reconcile one verification result.

    1. payment already succeeded (or refunded) -> no-op
    2. provider says not successful -> payment failed, booking untouched
    3. amount/currency differ from the booking -> payment failed, MismatchError
    4. otherwise the payment succeeded (reopened first if it had failed)
       and a PENDING_PAYMENT booking advances; a booking that already
       closed keeps its status and needs a refund

    Raises:
        MismatchError: carries the payment, marked failed
    """
    if payment.status in (PaymentStatus.SUCCEEDED, PaymentStatus.REFUNDED):
        return ReconciliationResult(
            booking=booking,
            payment=payment,
            already_succeeded=True,
            refund_required=booking.refund_required,
        )

    if not verification.ok:
        if payment.status is not PaymentStatus.FAILED:
            payment.mark_failed(
                f"provider_status:{verification.status or 'unknown'}", verification.raw
            )
        return ReconciliationResult(booking=booking, payment=payment)

    reason = _mismatch_reason(booking, verification)
    if reason is not None:
        if payment.status is not PaymentStatus.FAILED:
            payment.mark_failed(reason, verification.raw)
        raise MismatchError(
            f"Payment {payment.reference} flagged for review: {reason}",
            payment=payment,
            expected_amount_minor=booking.total.amount_minor,
            received_amount_minor=verification.amount_minor,
            expected_currency=booking.total.currency,
            received_currency=normalize_currency(verification.currency) or None,
        )

    if payment.status is PaymentStatus.FAILED:
        payment.reopen()
    payment.mark_succeeded(
        paid_at=verification.paid_at,
        authorization_code=verification.authorization_code,
        customer_code=verification.customer_code,
        payload=verification.raw,
    )

    if booking.status is BookingStatus.PENDING_PAYMENT:
        booking.confirm_payment(
            payment,
            booking_mode,
            now=now,
            host_response_window=host_response_window,
        )
        return ReconciliationResult(booking=booking, payment=payment, transitioned=True)

    if booking.status in PAID_BOOKING_STATUSES:
        return ReconciliationResult(booking=booking, payment=payment)

    booking.flag_refund_required()
    return ReconciliationResult(booking=booking, payment=payment, refund_required=True)
