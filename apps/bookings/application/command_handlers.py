"""
Booking Command Handlers

These are the use cases for the shortlet booking domain.
They orchestrate domain operations within transactions.

Commands:
- CreateShortletBookingCommand: Reserve nights, waiting for payment
- StartPaymentAttemptCommand: Idempotent payment intent for a booking
- ReconcilePaymentCommand: Apply the provider's verdict to payment and booking
- RespondToBookingCommand: Host accepts or declines a request
- CancelShortletBookingCommand: Cancel a pending or confirmed booking
- ExpireShortletBookingCommand: Close a booking whose window elapsed
- CompleteShortletBookingCommand: Close a stay that has ended
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable
from uuid import UUID, uuid4
import logging

from django.conf import settings
from django.db import IntegrityError
from django.utils import timezone

from shared.application.uow import DjangoUnitOfWork
from shared.domain.base import utcnow
from shared.domain.exceptions import (
    BookingConflictError,
    MismatchError,
    NotFoundError,
    ValidationError,
)
from shared.domain.value_objects import DateRange, Money
from apps.bookings.domain.entities import (
    PaymentAttempt,
    ShortletBooking,
    ShortletPayment,
    start_payment_attempt,
)
from apps.bookings.domain.events import PaymentFlaggedForReview
from apps.bookings.domain.reconciliation import (
    ReconciliationResult,
    VerificationResult,
    reconcile_payment,
)
from apps.bookings.domain.state_machine import BookingStatus, PaymentStatus, parse_booking_mode
from apps.bookings.models import OVERLAP_CONSTRAINT_NAME
from apps.bookings.repositories import ShortletBookingRepository, ShortletPaymentRepository
from apps.bookings.services import ensure_property_is_available

logger = logging.getLogger(__name__)


def payment_window() -> timedelta:
    return timedelta(minutes=settings.SHORTLET_PAYMENT_WINDOW_MINUTES)


def host_response_window() -> timedelta:
    return timedelta(hours=settings.SHORTLET_HOST_RESPONSE_HOURS)


def new_payment_reference(booking_id: UUID) -> str:
    """Provider reference, unique per attempt: shl_<booking>_<random>"""
    return f"shl_{booking_id.hex[:12]}_{uuid4().hex[:10]}"


# ===== Commands =====

@dataclass
class CreateShortletBookingCommand:
    """
    Command to reserve a stay

    The total arrives already priced by the pricing collaborator.
    """
    property_id: UUID
    guest_id: UUID
    host_id: UUID
    check_in: date
    check_out: date
    total_amount_minor: int
    currency: str = 'NGN'
    booking_mode: str = 'request'
    prep_days: int = 0


@dataclass
class StartPaymentAttemptCommand:
    booking_id: UUID
    reference: str | None = None
    provider: str = 'paystack'


@dataclass
class ReconcilePaymentCommand:
    """Command to verify a payment reference with the provider and apply it"""
    reference: str
    booking_id: UUID | None = None


@dataclass
class RespondToBookingCommand:
    booking_id: UUID
    accept: bool


@dataclass
class CancelShortletBookingCommand:
    booking_id: UUID
    reason: str = ''


@dataclass
class ExpireShortletBookingCommand:
    booking_id: UUID


@dataclass
class CompleteShortletBookingCommand:
    booking_id: UUID


# ===== Command Handlers =====

class CreateShortletBookingHandler:
    """
    Handler for CreateShortletBooking command

    Read-then-commit-with-recheck:
    1. Start database transaction (atomic)
    2. Read overlapping bookings and blocks with SELECT FOR UPDATE
    3. Run the overlap detector on exactly those rows
    4. Insert the PENDING_PAYMENT booking in the same transaction
    5. PostgreSQL EXCLUDE constraint as final safety net
    """

    def __init__(self, booking_repo: ShortletBookingRepository | None = None):
        self.booking_repo = booking_repo or ShortletBookingRepository()

    def handle(self, command: CreateShortletBookingCommand) -> ShortletBooking:
        """
        Raises:
            ValidationError: bad dates or amount
            BookingConflictError: nights already taken
        """
        logger.info(
            f"Creating shortlet booking for property {command.property_id}, "
            f"guest {command.guest_id}, dates {command.check_in} - {command.check_out}"
        )

        dates = DateRange(command.check_in, command.check_out)
        if command.check_in < timezone.localdate():
            raise ValidationError("Check-in date cannot be in the past")
        total = Money(command.total_amount_minor, command.currency)

        try:
            with DjangoUnitOfWork() as uow:
                ensure_property_is_available(
                    command.property_id,
                    command.check_in,
                    command.check_out,
                    prep_days=command.prep_days,
                )

                booking = ShortletBooking.create(
                    property_id=command.property_id,
                    guest_id=command.guest_id,
                    host_id=command.host_id,
                    dates=dates,
                    total=total,
                    booking_mode=parse_booking_mode(command.booking_mode),
                    payment_window=payment_window(),
                )

                uow.collect_events(booking)
                self.booking_repo.save(booking)
        except IntegrityError as e:
            if OVERLAP_CONSTRAINT_NAME in str(e):
                logger.warning(f"Overlap constraint rejected booking for property {command.property_id}")
                raise BookingConflictError("Property is not available for the selected dates.") from e
            raise

        logger.info(f"Shortlet booking created: {booking.id} ({booking.nights} nights, {booking.total})")
        return booking


class StartPaymentAttemptHandler:
    """
    Handler for starting (or resuming) a payment for a booking

    Repeated calls reuse the same payment record; a booking that is
    already paid reports ``already_succeeded`` instead of charging again.
    """

    def __init__(self, booking_repo=None, payment_repo=None):
        self.booking_repo = booking_repo or ShortletBookingRepository()
        self.payment_repo = payment_repo or ShortletPaymentRepository()

    def handle(self, command: StartPaymentAttemptCommand) -> PaymentAttempt:
        with DjangoUnitOfWork() as uow:
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            if not booking:
                raise NotFoundError(f"Booking {command.booking_id} not found")

            existing = self.payment_repo.get_by_booking_id(booking.id, lock=True)
            reference = command.reference or new_payment_reference(booking.id)
            attempt = start_payment_attempt(booking, existing, reference, command.provider)

            if attempt.already_succeeded:
                logger.warning(f"Booking {booking.id} is already paid ({attempt.payment.reference})")
                return attempt

            uow.collect_events(attempt.payment)
            self.payment_repo.save(attempt.payment)

        logger.info(
            f"Payment attempt {attempt.payment.reference} "
            f"{'created' if attempt.created else 'reused'} for booking {booking.id}"
        )
        return attempt


class ReconcilePaymentHandler:
    """
    Handler for payment verification

    Safe to run concurrently for the same reference:
    1. Cheap read: an already succeeded payment short-circuits before any call or write
    2. Provider verification outside the transaction
    3. Locked reload of booking and payment, pure reconciliation, save
    4. Mismatch: failed payment is saved and flagged, then the error is re-raised

    A reference the booking's record no longer carries (the guest started
    a newer attempt) is resolved to its booking through the command or the
    provider metadata. Money captured on it is applied to the booking's
    record under that reference, or flags the booking for a refund when
    the booking was already paid through another attempt.
    """

    def __init__(
        self,
        booking_repo=None,
        payment_repo=None,
        verifier: Callable[[str], VerificationResult] | None = None,
    ):
        self.booking_repo = booking_repo or ShortletBookingRepository()
        self.payment_repo = payment_repo or ShortletPaymentRepository()
        if verifier is None:
            from apps.bookings.paystack import verify_transaction
            verifier = verify_transaction
        self.verifier = verifier

    def handle(self, command: ReconcilePaymentCommand) -> ReconciliationResult:
        """
        Raises:
            NotFoundError: reference and booking cannot be resolved
            MismatchError: amount or currency differ; payment saved as failed
            PaystackVerificationError: provider could not be asked
        """
        reference = command.reference

        if self.payment_repo.is_succeeded(reference):
            logger.warning(f"Payment {reference} already succeeded, nothing to reconcile")
            return self._already_succeeded(reference)

        known = self.payment_repo.get_by_reference(reference)
        verification = self.verifier(reference)

        booking_id = known.booking_id if known else (command.booking_id or verification.booking_id)
        if booking_id is None:
            raise NotFoundError(f"Payment {reference} not found")

        mismatch = None
        try:
            with DjangoUnitOfWork() as uow:
                booking = self.booking_repo.get_by_id(booking_id, lock=True)
                if not booking:
                    raise NotFoundError(f"Booking {booking_id} for payment {reference} not found")

                payment = self.payment_repo.get_by_reference(reference, lock=True)
                if payment is None:
                    payment = self.payment_repo.get_by_booking_id(booking.id, lock=True)
                    superseded = self._superseded_attempt(booking, payment, reference, verification)
                    if superseded is not None:
                        return superseded
                    payment = self._adopt_reference(booking, payment, reference)

                try:
                    result = reconcile_payment(
                        booking,
                        payment,
                        verification,
                        now=utcnow(),
                        host_response_window=host_response_window(),
                    )
                except MismatchError as e:
                    mismatch = e
                    payment.add_event(PaymentFlaggedForReview(
                        aggregate_id=payment.id,
                        payment_id=payment.id,
                        booking_id=booking.id,
                        reference=reference,
                        expected=booking.total,
                        received_amount_minor=e.received_amount_minor,
                        received_currency=e.received_currency,
                    ))
                    uow.collect_events(payment)
                    self.payment_repo.save(payment)
                else:
                    uow.collect_events(booking, payment)
                    self.payment_repo.save(payment)
                    self.booking_repo.save(booking)
        except IntegrityError:
            # a concurrent reconciliation wrote the same success first
            if self.payment_repo.is_succeeded(reference):
                logger.warning(f"Duplicate success write for payment {reference}, treated as success")
                return self._already_succeeded(reference)
            raise

        if mismatch is not None:
            logger.error(
                f"Payment {reference} flagged for review: expected "
                f"{mismatch.expected_amount_minor} {mismatch.expected_currency}, received "
                f"{mismatch.received_amount_minor} {mismatch.received_currency}"
            )
            raise mismatch

        if result.refund_required:
            logger.warning(f"Payment {reference} succeeded for closed booking {booking.id}; refund required")
        elif result.transitioned:
            logger.info(f"Booking {booking.id} moved to {booking.status.value} after payment {reference}")
        else:
            logger.info(f"Payment {reference} reconciled: {payment.status.value}, booking {booking.status.value}")
        return result

    def _superseded_attempt(
        self,
        booking: ShortletBooking,
        current: ShortletPayment | None,
        reference: str,
        verification: VerificationResult,
    ) -> ReconciliationResult | None:
        """Outcome for an older reference that must not touch the booking's record"""
        if current is None:
            return None

        if not verification.ok:
            logger.info(
                f"Payment {reference} is an earlier attempt for booking {booking.id} "
                f"({verification.status or 'unknown'}); current attempt is {current.reference}"
            )
            return ReconciliationResult(booking=booking, payment=current)

        if current.status in (PaymentStatus.SUCCEEDED, PaymentStatus.REFUNDED):
            booking.flag_refund_required()
            self.booking_repo.save(booking)
            logger.warning(
                f"Payment {reference} captured for booking {booking.id} already paid "
                f"through {current.reference}; refund required"
            )
            return ReconciliationResult(booking=booking, payment=current, refund_required=True)

        return None

    def _adopt_reference(
        self,
        booking: ShortletBooking,
        current: ShortletPayment | None,
        reference: str,
    ) -> ShortletPayment:
        """Point the booking's payment record at the reference the provider verified"""
        if current is None:
            logger.info(f"No payment record for booking {booking.id}, recording {reference}")
            return ShortletPayment(
                booking_id=booking.id,
                property_id=booking.property_id,
                reference=reference,
                amount=booking.total,
            )

        logger.warning(f"Payment {reference} captured after {current.reference} was issued for booking {booking.id}")
        current.reissue(reference, booking.total)
        return current

    def _already_succeeded(self, reference: str) -> ReconciliationResult:
        payment = self.payment_repo.get_by_reference(reference)
        booking = self.booking_repo.get_by_id(payment.booking_id)
        return ReconciliationResult(
            booking=booking,
            payment=payment,
            already_succeeded=True,
            refund_required=booking.refund_required,
        )


class _BookingTransitionHandler:
    """Load a booking under lock, apply one transition, save, publish after commit"""

    def __init__(self, booking_repo=None):
        self.booking_repo = booking_repo or ShortletBookingRepository()

    def _apply(self, booking_id: UUID, transition, guard=None) -> ShortletBooking:
        with DjangoUnitOfWork() as uow:
            booking = self.booking_repo.get_by_id(booking_id, lock=True)
            if not booking:
                raise NotFoundError(f"Booking {booking_id} not found")

            if guard is not None and not guard(booking):
                return booking

            transition(booking)

            uow.collect_events(booking)
            self.booking_repo.save(booking)
        return booking


class RespondToBookingHandler(_BookingTransitionHandler):
    """Host accepts (PENDING -> CONFIRMED) or declines (PENDING -> DECLINED)"""

    def handle(self, command: RespondToBookingCommand) -> ShortletBooking:
        logger.info(f"Host {'accepting' if command.accept else 'declining'} booking {command.booking_id}")
        booking = self._apply(command.booking_id, lambda b: b.respond(command.accept))
        logger.info(f"Booking {booking.id} is now {booking.status.value}")
        return booking


class CancelShortletBookingHandler(_BookingTransitionHandler):
    def handle(self, command: CancelShortletBookingCommand) -> ShortletBooking:
        logger.info(f"Cancelling booking {command.booking_id}, reason: {command.reason}")
        booking = self._apply(command.booking_id, lambda b: b.cancel(command.reason))
        logger.info(f"Booking {booking.id} cancelled, refund required")
        return booking


class ExpireShortletBookingHandler(_BookingTransitionHandler):
    """
    Expire a booking whose window elapsed

    Re-checked under lock: a booking paid or answered since it was
    selected is left alone.
    """

    def handle(self, command: ExpireShortletBookingCommand) -> ShortletBooking:
        now = utcnow()
        booking = self._apply(
            command.booking_id,
            lambda b: b.expire(now=now),
            guard=lambda b: b.is_expired(now),
        )
        if booking.status is BookingStatus.EXPIRED:
            logger.info(f"Booking {booking.id} expired")
        else:
            logger.warning(f"Booking {booking.id} no longer due for expiry ({booking.status.value})")
        return booking


class CompleteShortletBookingHandler(_BookingTransitionHandler):
    """Close a confirmed stay once its check-out day has come"""

    def handle(self, command: CompleteShortletBookingCommand) -> ShortletBooking:
        today = timezone.localdate()
        booking = self._apply(
            command.booking_id,
            lambda b: b.complete(),
            guard=lambda b: b.status is BookingStatus.CONFIRMED and b.dates.end_date <= today,
        )
        logger.info(f"Booking {booking.id} is {booking.status.value}")
        return booking
