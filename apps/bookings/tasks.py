"""Celery tasks for the shortlet booking lifecycle.

Every status change goes through the command handlers, so the state
machine rules and event publishing are the same as for user actions.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.exceptions import DomainError, MismatchError

from .application.command_handlers import (
    CompleteShortletBookingCommand,
    CompleteShortletBookingHandler,
    ExpireShortletBookingCommand,
    ExpireShortletBookingHandler,
    ReconcilePaymentCommand,
    ReconcilePaymentHandler,
)
from .domain.state_machine import BookingStatus
from .paystack import PaystackVerificationError
from .repositories import ShortletBookingRepository, ShortletPaymentRepository

logger = logging.getLogger(__name__)


def _expire_due(status: BookingStatus) -> int:
    now = timezone.now()
    handler = ExpireShortletBookingHandler()
    expired_count = 0

    for booking_id in ShortletBookingRepository().ids_expiring(status, now):
        try:
            booking = handler.handle(ExpireShortletBookingCommand(booking_id=booking_id))
        except DomainError as e:
            logger.error(f"Error expiring booking {booking_id}: {e}", exc_info=True)
            continue
        if booking.status is BookingStatus.EXPIRED:
            expired_count += 1

    return expired_count


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.expire_unpaid_bookings")
def expire_unpaid_bookings() -> dict[str, int]:
    """
    PENDING_PAYMENT bookings whose payment window elapsed -> EXPIRED.

    Runs every minute.
    """
    expired_count = _expire_due(BookingStatus.PENDING_PAYMENT)
    if expired_count > 0:
        logger.info(f"Expired {expired_count} unpaid bookings")
    return {"expired": expired_count}


@shared_task(name="bookings.expire_unanswered_requests")
def expire_unanswered_requests() -> dict[str, int]:
    """
    PENDING requests the host did not answer in time -> EXPIRED (refund required).

    Runs every 15 minutes.
    """
    expired_count = _expire_due(BookingStatus.PENDING)
    if expired_count > 0:
        logger.info(f"Expired {expired_count} unanswered booking requests")
    return {"expired": expired_count}


@shared_task(name="bookings.complete_finished_bookings")
def complete_finished_bookings() -> dict[str, int]:
    """
    CONFIRMED bookings whose check-out day has come -> COMPLETED.

    Runs every hour.
    """
    handler = CompleteShortletBookingHandler()
    completed_count = 0

    for booking_id in ShortletBookingRepository().ids_finished(timezone.localdate()):
        try:
            booking = handler.handle(CompleteShortletBookingCommand(booking_id=booking_id))
        except DomainError as e:
            logger.error(f"Error completing booking {booking_id}: {e}", exc_info=True)
            continue
        if booking.status is BookingStatus.COMPLETED:
            completed_count += 1

    if completed_count > 0:
        logger.info(f"Completed {completed_count} finished bookings")
    return {"completed": completed_count}


@shared_task(name="bookings.reconcile_stuck_payments")
def reconcile_stuck_payments() -> dict[str, int]:
    """
    Re-verify INITIATED payments older than SHORTLET_STUCK_PAYMENT_MINUTES.

    Catches guests who paid but never came back to the return page.
    Mismatches are flagged by the handler and counted here.
    """
    older_than = timezone.now() - timedelta(minutes=settings.SHORTLET_STUCK_PAYMENT_MINUTES)
    handler = ReconcilePaymentHandler()
    stats = {"checked": 0, "succeeded": 0, "failed": 0, "flagged": 0, "errors": 0}

    for reference in ShortletPaymentRepository().stuck_references(older_than):
        stats["checked"] += 1
        try:
            result = handler.handle(ReconcilePaymentCommand(reference=reference))
        except PaystackVerificationError as e:
            stats["errors"] += 1
            logger.warning(f"Could not verify stuck payment {reference}: {e}")
            continue
        except MismatchError:
            # saved as failed and flagged by the handler
            stats["flagged"] += 1
            continue
        except DomainError as e:
            stats["errors"] += 1
            logger.error(f"Error reconciling payment {reference}: {e}", exc_info=True)
            continue

        if result.payment.is_succeeded:
            stats["succeeded"] += 1
        else:
            stats["failed"] += 1

    if stats["checked"]:
        logger.info(f"Reconciled stuck payments: {stats}")
    return stats
