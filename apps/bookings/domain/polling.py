"""
Return-page Polling Coordinator

Decides, from the latest booking and payment status, whether a caller
waiting on a payment should poll again. Stateless: the caller owns the
loop, the clock and the backoff, and cancels simply by stopping.

Booking status is authoritative: polling continues only while the
booking is still PENDING_PAYMENT, except that a failed or refunded
payment stops it at once.
"""

from enum import Enum

from .state_machine import (
    BookingStatus,
    PaymentStatus,
    parse_booking_status,
    parse_payment_status,
)

DEFAULT_POLL_TIMEOUT_MS = 60_000

FINALISING_TIMEOUT_MESSAGE = (
    "Payment received. Final confirmation is taking longer than usual. "
    "This does not mean your payment failed."
)
GENERIC_TIMEOUT_MESSAGE = (
    "Confirmation is taking longer than usual. "
    "Recheck now or contact support if this keeps happening."
)

_FAILURE_PAYMENT_STATUSES = frozenset({PaymentStatus.FAILED, PaymentStatus.REFUNDED})


class PollingAction(Enum):
    CONTINUE = 'continue'
    STOP = 'stop'
    FINAL_FETCH_THEN_WAIT_THEN_STOP = 'final_fetch_then_wait_then_stop'


class PollingStopReason(Enum):
    TERMINAL_PAYMENT = 'terminal_payment'
    TIMEOUT = 'timeout'
    TERMINAL_BOOKING = 'terminal_booking'
    CONTINUE = 'continue'


class ReturnUiState(Enum):
    PROCESSING = 'processing'
    FINALISING = 'finalising'
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    FAILED = 'failed'
    REFUNDED = 'refunded'
    CLOSED = 'closed'


def _is_failure_payment(payment_status) -> bool:
    return parse_payment_status(payment_status) in _FAILURE_PAYMENT_STATUSES


def _timed_out(elapsed_ms: float, timeout_ms: float | None) -> bool:
    if timeout_ms is None:
        timeout_ms = DEFAULT_POLL_TIMEOUT_MS
    return elapsed_ms >= timeout_ms


def should_poll(booking_status, payment_status, elapsed_ms: float, timeout_ms: float | None = None) -> bool:
    if _is_failure_payment(payment_status):
        return False
    if _timed_out(elapsed_ms, timeout_ms):
        return False
    booking = parse_booking_status(booking_status)
    if booking is None:
        # unknown status: keep waiting for the row to settle
        return True
    return booking is BookingStatus.PENDING_PAYMENT


def polling_stop_reason(
    booking_status,
    payment_status,
    elapsed_ms: float,
    timeout_ms: float | None = None,
) -> PollingStopReason:
    if _is_failure_payment(payment_status):
        return PollingStopReason.TERMINAL_PAYMENT
    if _timed_out(elapsed_ms, timeout_ms):
        return PollingStopReason.TIMEOUT
    booking = parse_booking_status(booking_status)
    if booking is not None and booking is not BookingStatus.PENDING_PAYMENT:
        return PollingStopReason.TERMINAL_BOOKING
    return PollingStopReason.CONTINUE


def resolve_polling_action(
    booking_status,
    payment_status,
    elapsed_ms: float,
    timeout_ms: float | None = None,
    timeout_final_fetch_done: bool = False,
) -> PollingAction:
    """
    Next step for the caller's loop.

    On timeout the caller gets one FINAL_FETCH_THEN_WAIT_THEN_STOP, then
    STOP once it reports the final fetch as done.
    """
    if timeout_ms is None:
        timeout_ms = DEFAULT_POLL_TIMEOUT_MS
    if should_poll(booking_status, payment_status, elapsed_ms, timeout_ms):
        return PollingAction.CONTINUE
    if elapsed_ms >= timeout_ms:
        if timeout_final_fetch_done:
            return PollingAction.STOP
        return PollingAction.FINAL_FETCH_THEN_WAIT_THEN_STOP
    return PollingAction.STOP


def is_finalising_state(booking_status, payment_status) -> bool:
    """Money is in but the booking has not moved yet"""
    return (
        parse_booking_status(booking_status) is BookingStatus.PENDING_PAYMENT
        and parse_payment_status(payment_status) is PaymentStatus.SUCCEEDED
    )


def resolve_timeout_message(booking_status, payment_status) -> str:
    if is_finalising_state(booking_status, payment_status):
        return FINALISING_TIMEOUT_MESSAGE
    return GENERIC_TIMEOUT_MESSAGE


def resolve_return_ui_state(booking_status, payment_status) -> ReturnUiState:
    """Display-only tag; never used to gate transitions"""
    booking = parse_booking_status(booking_status)
    payment = parse_payment_status(payment_status)

    if payment is PaymentStatus.REFUNDED:
        return ReturnUiState.REFUNDED
    if is_finalising_state(booking, payment):
        return ReturnUiState.FINALISING
    if booking is BookingStatus.CONFIRMED:
        return ReturnUiState.CONFIRMED
    if booking is BookingStatus.PENDING:
        return ReturnUiState.PENDING
    if booking is not None and booking is not BookingStatus.PENDING_PAYMENT:
        return ReturnUiState.CLOSED
    if payment is PaymentStatus.FAILED:
        return ReturnUiState.FAILED
    return ReturnUiState.PROCESSING
