"""
Booking and Payment State Machines

Booking status lifecycle:
- PENDING_PAYMENT -> PENDING      (payment succeeded, request mode)
- PENDING_PAYMENT -> CONFIRMED    (payment succeeded, instant mode)
- PENDING_PAYMENT -> EXPIRED      (payment window elapsed)
- PENDING -> CONFIRMED | DECLINED (host responds)
- PENDING -> EXPIRED              (host did not respond in time)
- PENDING | CONFIRMED -> CANCELLED
- CONFIRMED -> COMPLETED          (stay is over)

Payment status lifecycle:
- INITIATED -> SUCCEEDED | FAILED
- FAILED -> INITIATED           (provider later reports the reference paid)
- SUCCEEDED -> REFUNDED

Statuses arrive as free-form strings from storage; parse them at the
boundary with ``parse_booking_status`` / ``parse_payment_status``.
"""

from enum import Enum
import logging

from shared.domain.exceptions import IllegalTransitionError

logger = logging.getLogger(__name__)


class BookingStatus(Enum):
    PENDING_PAYMENT = 'pending_payment'    # Waiting for the guest's payment
    PENDING = 'pending'                    # Paid, waiting for host approval
    CONFIRMED = 'confirmed'
    DECLINED = 'declined'
    CANCELLED = 'cancelled'
    EXPIRED = 'expired'
    COMPLETED = 'completed'


class PaymentStatus(Enum):
    INITIATED = 'initiated'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'
    REFUNDED = 'refunded'


class BookingMode(Enum):
    INSTANT = 'instant'
    REQUEST = 'request'


class BookingEvent(Enum):
    PAYMENT_SUCCEEDED = 'payment_succeeded'
    PAYMENT_WINDOW_ELAPSED = 'payment_window_elapsed'
    HOST_ACCEPTED = 'host_accepted'
    HOST_DECLINED = 'host_declined'
    HOST_RESPONSE_ELAPSED = 'host_response_elapsed'
    CANCELLED = 'cancelled'
    STAY_COMPLETED = 'stay_completed'


class PaymentEvent(Enum):
    PROVIDER_SUCCEEDED = 'provider_succeeded'
    PROVIDER_FAILED = 'provider_failed'
    REOPENED = 'reopened'
    REFUNDED = 'refunded'


TERMINAL_BOOKING_STATUSES = frozenset({
    BookingStatus.DECLINED,
    BookingStatus.CANCELLED,
    BookingStatus.EXPIRED,
    BookingStatus.COMPLETED,
})

# Statuses that hold the property's nights
BLOCKING_BOOKING_STATUSES = frozenset({
    BookingStatus.PENDING_PAYMENT,
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
})

# Booking already advanced past payment; a repeated success is a no-op
PAID_BOOKING_STATUSES = frozenset({
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.COMPLETED,
})

_BOOKING_TRANSITIONS = {
    (BookingStatus.PENDING_PAYMENT, BookingEvent.PAYMENT_WINDOW_ELAPSED): BookingStatus.EXPIRED,
    (BookingStatus.PENDING, BookingEvent.HOST_ACCEPTED): BookingStatus.CONFIRMED,
    (BookingStatus.PENDING, BookingEvent.HOST_DECLINED): BookingStatus.DECLINED,
    (BookingStatus.PENDING, BookingEvent.HOST_RESPONSE_ELAPSED): BookingStatus.EXPIRED,
    (BookingStatus.PENDING, BookingEvent.CANCELLED): BookingStatus.CANCELLED,
    (BookingStatus.CONFIRMED, BookingEvent.CANCELLED): BookingStatus.CANCELLED,
    (BookingStatus.CONFIRMED, BookingEvent.STAY_COMPLETED): BookingStatus.COMPLETED,
}

_PAYMENT_TRANSITIONS = {
    (PaymentStatus.INITIATED, PaymentEvent.PROVIDER_SUCCEEDED): PaymentStatus.SUCCEEDED,
    (PaymentStatus.INITIATED, PaymentEvent.PROVIDER_FAILED): PaymentStatus.FAILED,
    (PaymentStatus.FAILED, PaymentEvent.REOPENED): PaymentStatus.INITIATED,
    (PaymentStatus.SUCCEEDED, PaymentEvent.REFUNDED): PaymentStatus.REFUNDED,
}


def _normalize(value) -> str:
    if isinstance(value, Enum):
        value = value.value
    return str(value or '').strip().lower()


def parse_booking_status(value) -> BookingStatus | None:
    """Loosely-typed status -> BookingStatus, or None when unknown"""
    try:
        return BookingStatus(_normalize(value))
    except ValueError:
        return None


def parse_payment_status(value) -> PaymentStatus | None:
    """Loosely-typed status -> PaymentStatus, or None when unknown"""
    try:
        return PaymentStatus(_normalize(value))
    except ValueError:
        return None


def parse_booking_mode(value) -> BookingMode:
    """Anything other than 'instant' is a request-to-book listing"""
    return BookingMode.INSTANT if _normalize(value) == 'instant' else BookingMode.REQUEST


def is_terminal_booking_status(status) -> bool:
    parsed = parse_booking_status(status)
    return parsed is not None and parsed in TERMINAL_BOOKING_STATUSES


def next_booking_status(
    current: BookingStatus,
    event: BookingEvent,
    booking_mode: BookingMode = BookingMode.REQUEST,
) -> BookingStatus:
    """
    Resolve the status a booking moves to on an event.

    Raises:
        IllegalTransitionError: the move is not in the transition table
    """
    if current is BookingStatus.PENDING_PAYMENT and event is BookingEvent.PAYMENT_SUCCEEDED:
        if booking_mode is BookingMode.INSTANT:
            return BookingStatus.CONFIRMED
        return BookingStatus.PENDING

    target = _BOOKING_TRANSITIONS.get((current, event))
    if target is None:
        logger.warning(f"Rejected booking transition {current} on {event}")
        raise IllegalTransitionError(current, event)
    return target


def next_payment_status(current: PaymentStatus, event: PaymentEvent) -> PaymentStatus:
    """
    Resolve the status a payment moves to on an event.

    Raises:
        IllegalTransitionError: the move is not in the transition table
    """
    target = _PAYMENT_TRANSITIONS.get((current, event))
    if target is None:
        logger.warning(f"Rejected payment transition {current} on {event}")
        raise IllegalTransitionError(current, event)
    return target


def can_transition(current: BookingStatus, event: BookingEvent) -> bool:
    if current is BookingStatus.PENDING_PAYMENT and event is BookingEvent.PAYMENT_SUCCEEDED:
        return True
    return (current, event) in _BOOKING_TRANSITIONS
