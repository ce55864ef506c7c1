"""Pure booking domain: overlap detection, state machines, reconciliation and polling."""

from .entities import PaymentAttempt, ShortletBooking, ShortletPayment, start_payment_attempt
from .overlap import (
    ConflictResult,
    OverlapRow,
    UnavailableRange,
    apply_prep_buffer,
    ranges_overlap,
    resolve_availability_conflicts,
    unavailable_property_ids_for_range,
)
from .polling import (
    PollingAction,
    PollingStopReason,
    ReturnUiState,
    resolve_polling_action,
    resolve_return_ui_state,
)
from .reconciliation import ReconciliationResult, VerificationResult, reconcile_payment
from .state_machine import (
    BLOCKING_BOOKING_STATUSES,
    BookingEvent,
    BookingMode,
    BookingStatus,
    PaymentStatus,
    next_booking_status,
    next_payment_status,
    parse_booking_status,
    parse_payment_status,
)

__all__ = [
    'BLOCKING_BOOKING_STATUSES',
    'BookingEvent',
    'BookingMode',
    'BookingStatus',
    'ConflictResult',
    'OverlapRow',
    'PaymentAttempt',
    'PaymentStatus',
    'PollingAction',
    'PollingStopReason',
    'ReconciliationResult',
    'ReturnUiState',
    'ShortletBooking',
    'ShortletPayment',
    'UnavailableRange',
    'VerificationResult',
    'apply_prep_buffer',
    'next_booking_status',
    'next_payment_status',
    'parse_booking_status',
    'parse_payment_status',
    'ranges_overlap',
    'reconcile_payment',
    'resolve_availability_conflicts',
    'resolve_polling_action',
    'resolve_return_ui_state',
    'start_payment_attempt',
    'unavailable_property_ids_for_range',
]
