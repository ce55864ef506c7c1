"""
Booking event handlers

Subscribed to the global message bus when the app is ready. Delivery of
guest and host notifications belongs to the notifications service; these
handlers record the lifecycle in the log so operators can follow it.
"""

import logging

from shared.application.message_bus import message_bus

from .domain.events import (
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    BookingDeclined,
    BookingExpired,
    BookingPaymentSucceeded,
    BookingRequested,
    PaymentFailed,
    PaymentFlaggedForReview,
)

logger = logging.getLogger(__name__)


@message_bus.handles(BookingPaymentSucceeded)
def log_payment_succeeded(event: BookingPaymentSucceeded):
    logger.info(
        f"Payment {event.payment_id} of {event.amount} received for booking "
        f"{event.booking_id}, booking now {event.booking_status}"
    )


@message_bus.handles(BookingRequested, BookingConfirmed, BookingDeclined, BookingCompleted)
def log_booking_lifecycle(event):
    logger.info(f"{type(event).__name__}: booking {event.booking_id} (property {event.property_id})")


@message_bus.handles(BookingCancelled)
def log_booking_cancelled(event: BookingCancelled):
    logger.info(f"Booking {event.booking_id} cancelled: {event.reason or 'no reason given'}")


@message_bus.handles(BookingExpired)
def log_booking_expired(event: BookingExpired):
    logger.info(f"Booking {event.booking_id} expired from {event.previous_status}")


@message_bus.handles(PaymentFailed)
def log_payment_failed(event: PaymentFailed):
    logger.warning(f"Payment {event.payment_id} for booking {event.booking_id} failed: {event.reason}")


@message_bus.handles(PaymentFlaggedForReview)
def alert_payment_review(event: PaymentFlaggedForReview):
    logger.error(
        f"Payment {event.reference} needs manual review: booking {event.booking_id} expects "
        f"{event.expected}, provider reported {event.received_amount_minor} {event.received_currency}"
    )
