"""
Booking Domain Entities

Core business entities for the shortlet booking domain:
- ShortletBooking: Main aggregate representing a reservation
- ShortletPayment: The single payment record correlated with a booking
- start_payment_attempt: Idempotent payment intent for a booking

Every status change goes through the state machine in
``apps.bookings.domain.state_machine``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID

from shared.domain.base import Aggregate, ValueObject, utcnow
from shared.domain.exceptions import IllegalTransitionError, MismatchError, ValidationError
from shared.domain.value_objects import DateRange, Money

from .events import (
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    BookingDeclined,
    BookingExpired,
    BookingPaymentSucceeded,
    BookingRequested,
    PaymentFailed,
)
from .state_machine import (
    BLOCKING_BOOKING_STATUSES,
    TERMINAL_BOOKING_STATUSES,
    BookingEvent,
    BookingMode,
    BookingStatus,
    PaymentEvent,
    PaymentStatus,
    next_booking_status,
    next_payment_status,
)

DEFAULT_HOST_RESPONSE_WINDOW = timedelta(hours=24)
DEFAULT_PAYMENT_WINDOW = timedelta(minutes=30)


@dataclass(kw_only=True, eq=False)
class ShortletPayment(Aggregate):
    """
    Payment record for a booking (one per booking)

    ``amount`` is what the booking expected when the intent was created;
    the provider's figures are kept in ``provider_payload``.
    """
    booking_id: UUID
    property_id: UUID
    reference: str
    amount: Money
    provider: str = 'paystack'
    status: PaymentStatus = PaymentStatus.INITIATED
    failure_reason: str = ''
    authorization_code: str = ''
    customer_code: str = ''
    provider_payload: dict = field(default_factory=dict)
    paid_at: datetime | None = None
    refunded_at: datetime | None = None

    def mark_succeeded(
        self,
        *,
        paid_at: datetime | None = None,
        authorization_code: str = '',
        customer_code: str = '',
        payload: dict | None = None,
    ):
        """INITIATED -> SUCCEEDED"""
        self.status = next_payment_status(self.status, PaymentEvent.PROVIDER_SUCCEEDED)
        self.paid_at = paid_at or utcnow()
        self.authorization_code = authorization_code or ''
        self.customer_code = customer_code or ''
        if payload is not None:
            self.provider_payload = payload
        self.failure_reason = ''
        self.updated_at = utcnow()

    def mark_failed(self, reason: str, payload: dict | None = None):
        """
        INITIATED -> FAILED

        Events: PaymentFailed
        """
        self.status = next_payment_status(self.status, PaymentEvent.PROVIDER_FAILED)
        self.failure_reason = reason
        if payload is not None:
            self.provider_payload = payload
        self.updated_at = utcnow()

        self.add_event(PaymentFailed(
            aggregate_id=self.id,
            payment_id=self.id,
            booking_id=self.booking_id,
            reason=reason,
        ))

    def reopen(self):
        """
        FAILED -> INITIATED

        The provider may still capture a reference after it was reported
        abandoned; the record is reopened so the success can be applied.
        """
        self.status = next_payment_status(self.status, PaymentEvent.REOPENED)
        self.failure_reason = ''
        self.updated_at = utcnow()

    def mark_refunded(self):
        """SUCCEEDED -> REFUNDED"""
        self.status = next_payment_status(self.status, PaymentEvent.REFUNDED)
        self.refunded_at = utcnow()
        self.updated_at = self.refunded_at

    def reissue(self, reference: str, amount: Money):
        """
        Start a new attempt on this record with a fresh provider reference.

        Allowed while the record is INITIATED or FAILED; a succeeded or
        refunded payment is never reopened. The attempt clock restarts,
        so a fresh attempt is not picked up as stuck.
        """
        if self.status not in (PaymentStatus.INITIATED, PaymentStatus.FAILED):
            raise IllegalTransitionError(
                self.status, 'reissue', f"Cannot restart a {self.status.value} payment"
            )
        self.reference = reference
        self.amount = amount
        self.status = PaymentStatus.INITIATED
        self.failure_reason = ''
        self.provider_payload = {}
        self.created_at = self.updated_at = utcnow()

    @property
    def is_succeeded(self) -> bool:
        return self.status is PaymentStatus.SUCCEEDED

    def __str__(self):
        return f"Payment {self.reference} ({self.status.value})"


@dataclass(kw_only=True, eq=False)
class ShortletBooking(Aggregate):
    """
    Shortlet Booking Aggregate Root

    Key invariants:
    - check_in < check_out (enforced by DateRange)
    - PENDING_PAYMENT, PENDING and CONFIRMED bookings hold the property's nights
    - Never CONFIRMED without a succeeded payment of the exact amount and currency
    - DECLINED, CANCELLED, EXPIRED and COMPLETED are terminal
    """

    # References
    property_id: UUID
    guest_id: UUID
    host_id: UUID

    # Stay
    dates: DateRange
    total: Money
    booking_mode: BookingMode = BookingMode.REQUEST

    # Status tracking
    status: BookingStatus = BookingStatus.PENDING_PAYMENT
    expires_at: datetime | None = None
    payment_reference: str = ''
    refund_required: bool = False

    cancellation_reason: str = ''
    confirmed_at: datetime | None = None
    responded_at: datetime | None = None
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def create(
        cls,
        *,
        property_id: UUID,
        guest_id: UUID,
        host_id: UUID,
        dates: DateRange,
        total: Money,
        booking_mode: BookingMode = BookingMode.REQUEST,
        payment_window: timedelta = DEFAULT_PAYMENT_WINDOW,
        now: datetime | None = None,
    ) -> 'ShortletBooking':
        """New booking waiting for payment, held for ``payment_window``"""
        now = now or utcnow()
        if total.amount_minor <= 0:
            raise ValidationError("Booking total must be positive")
        return cls(
            property_id=property_id,
            guest_id=guest_id,
            host_id=host_id,
            dates=dates,
            total=total,
            booking_mode=booking_mode,
            expires_at=now + payment_window,
            created_at=now,
            updated_at=now,
        )

    def confirm_payment(
        self,
        payment: ShortletPayment,
        booking_mode: BookingMode | None = None,
        *,
        now: datetime | None = None,
        host_response_window: timedelta = DEFAULT_HOST_RESPONSE_WINDOW,
    ):
        """
        Advance after a verified payment
        (PENDING_PAYMENT -> CONFIRMED for instant, -> PENDING for request)

        Raises:
            MismatchError: payment not succeeded, or amount/currency differ
            IllegalTransitionError: booking is not PENDING_PAYMENT

        Events: BookingPaymentSucceeded, then BookingConfirmed or BookingRequested
        """
        if payment.booking_id != self.id:
            raise MismatchError(
                f"Payment {payment.reference} belongs to another booking",
                payment=payment,
            )
        if not payment.is_succeeded:
            raise MismatchError(
                f"Payment {payment.reference} is {payment.status.value}, not succeeded",
                payment=payment,
            )
        if not self.total.matches(payment.amount.amount_minor, payment.amount.currency):
            raise MismatchError(
                f"Payment {payment.reference} does not match booking total {self.total}",
                payment=payment,
                expected_amount_minor=self.total.amount_minor,
                received_amount_minor=payment.amount.amount_minor,
                expected_currency=self.total.currency,
                received_currency=payment.amount.currency,
            )

        mode = booking_mode or self.booking_mode
        now = now or utcnow()
        self.status = next_booking_status(self.status, BookingEvent.PAYMENT_SUCCEEDED, mode)
        self.payment_reference = payment.reference
        self.refund_required = False
        self.updated_at = now

        self.add_event(BookingPaymentSucceeded(
            aggregate_id=self.id,
            booking_id=self.id,
            property_id=self.property_id,
            payment_id=payment.id,
            amount=self.total,
            booking_status=self.status.value,
        ))

        if self.status is BookingStatus.CONFIRMED:
            self.expires_at = None
            self.confirmed_at = now
            self._emit_confirmed()
        else:
            self.expires_at = now + host_response_window
            self.add_event(BookingRequested(
                aggregate_id=self.id,
                booking_id=self.id,
                property_id=self.property_id,
                guest_id=self.guest_id,
                host_id=self.host_id,
                dates=self.dates,
            ))

    def respond(self, accept: bool, *, now: datetime | None = None):
        """
        Host decision on a request (PENDING -> CONFIRMED | DECLINED)

        Events: BookingConfirmed or BookingDeclined
        """
        event = BookingEvent.HOST_ACCEPTED if accept else BookingEvent.HOST_DECLINED
        now = now or utcnow()
        self.status = next_booking_status(self.status, event)
        self.responded_at = now
        self.expires_at = None
        self.updated_at = now

        if accept:
            self.confirmed_at = now
            self._emit_confirmed()
        else:
            # the guest already paid for a request
            self.refund_required = True
            self.add_event(BookingDeclined(
                aggregate_id=self.id,
                booking_id=self.id,
                property_id=self.property_id,
                guest_id=self.guest_id,
            ))

    def cancel(self, reason: str = '', *, now: datetime | None = None):
        """
        Cancel booking (PENDING | CONFIRMED -> CANCELLED)

        Events: BookingCancelled
        """
        now = now or utcnow()
        self.status = next_booking_status(self.status, BookingEvent.CANCELLED)
        self.refund_required = True
        self.cancellation_reason = reason
        self.cancelled_at = now
        self.expires_at = None
        self.updated_at = now

        self.add_event(BookingCancelled(
            aggregate_id=self.id,
            booking_id=self.id,
            property_id=self.property_id,
            guest_id=self.guest_id,
            reason=reason,
        ))

    def expire(self, *, now: datetime | None = None):
        """
        Expire booking (PENDING_PAYMENT | PENDING -> EXPIRED)

        Called by the periodic tasks once ``expires_at`` has passed.
        Events: BookingExpired
        """
        previous = self.status
        if previous is BookingStatus.PENDING:
            event = BookingEvent.HOST_RESPONSE_ELAPSED
        else:
            event = BookingEvent.PAYMENT_WINDOW_ELAPSED
        self.status = next_booking_status(previous, event)
        if previous is BookingStatus.PENDING:
            self.refund_required = True
        self.updated_at = now or utcnow()

        self.add_event(BookingExpired(
            aggregate_id=self.id,
            booking_id=self.id,
            property_id=self.property_id,
            previous_status=previous.value,
        ))

    def complete(self, *, now: datetime | None = None):
        """
        Complete booking (CONFIRMED -> COMPLETED)

        Events: BookingCompleted
        """
        now = now or utcnow()
        self.status = next_booking_status(self.status, BookingEvent.STAY_COMPLETED)
        self.completed_at = now
        self.updated_at = now

        self.add_event(BookingCompleted(
            aggregate_id=self.id,
            booking_id=self.id,
            property_id=self.property_id,
            guest_id=self.guest_id,
        ))

    def flag_refund_required(self):
        """Money arrived for a booking that can no longer be honoured"""
        self.refund_required = True
        self.updated_at = utcnow()

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the payment or host response window has passed"""
        if self.status not in (BookingStatus.PENDING_PAYMENT, BookingStatus.PENDING):
            return False
        if not self.expires_at:
            return False
        return (now or utcnow()) >= self.expires_at

    def blocks_dates(self) -> bool:
        return self.status in BLOCKING_BOOKING_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_BOOKING_STATUSES

    @property
    def nights(self) -> int:
        """Number of nights"""
        return len(self.dates)

    def _emit_confirmed(self):
        self.add_event(BookingConfirmed(
            aggregate_id=self.id,
            booking_id=self.id,
            property_id=self.property_id,
            guest_id=self.guest_id,
            host_id=self.host_id,
            dates=self.dates,
        ))

    def __str__(self):
        return f"Booking {self.id} ({self.status.value})"

    def __repr__(self):
        return (
            f"ShortletBooking(id={self.id}, property_id={self.property_id}, "
            f"status={self.status.value}, dates={self.dates!r})"
        )


@dataclass(frozen=True)
class PaymentAttempt(ValueObject):
    payment: ShortletPayment
    created: bool
    already_succeeded: bool = False


def start_payment_attempt(
    booking: ShortletBooking,
    existing: ShortletPayment | None,
    reference: str,
    provider: str = 'paystack',
) -> PaymentAttempt:
    """
    Idempotent payment intent for a booking.

    - a succeeded record is returned as is with ``already_succeeded``
    - an initiated or failed record is reused with the new reference
    - otherwise a new initiated record is created

    Raises:
        IllegalTransitionError: booking is not awaiting payment
    """
    if existing is not None and existing.is_succeeded:
        return PaymentAttempt(payment=existing, created=False, already_succeeded=True)

    if booking.status is not BookingStatus.PENDING_PAYMENT:
        raise IllegalTransitionError(
            booking.status, 'payment_started', f"Booking {booking.id} is not awaiting payment"
        )
    if not reference:
        raise ValidationError("Payment reference is required")

    if existing is not None:
        existing.reissue(reference, booking.total)
        return PaymentAttempt(payment=existing, created=False)

    payment = ShortletPayment(
        booking_id=booking.id,
        property_id=booking.property_id,
        reference=reference,
        amount=booking.total,
        provider=provider,
    )
    return PaymentAttempt(payment=payment, created=True)
