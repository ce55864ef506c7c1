"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
They are only raised on real transitions and published after the
transaction commits, so a retried command never notifies twice.
"""

from dataclasses import dataclass
from uuid import UUID

from shared.domain.base import DomainEvent
from shared.domain.value_objects import DateRange, Money


# ===== Booking Events =====

@dataclass(kw_only=True)
class BookingPaymentSucceeded(DomainEvent):
    """
    Event: Guest payment verified for a booking

    Triggers:
    - Host payout bookkeeping (instant bookings)
    - Guest receipt
    """
    booking_id: UUID
    property_id: UUID
    payment_id: UUID
    amount: Money
    booking_status: str


@dataclass(kw_only=True)
class BookingRequested(DomainEvent):
    """
    Event: Paid request-to-book booking is waiting for the host (-> PENDING)

    Triggers:
    - Notify host of the new request
    - Tell guest the request was sent
    """
    booking_id: UUID
    property_id: UUID
    guest_id: UUID
    host_id: UUID
    dates: DateRange


@dataclass(kw_only=True)
class BookingConfirmed(DomainEvent):
    """
    Event: Booking confirmed (instant payment or host acceptance)

    Triggers:
    - Send reservation confirmation to guest
    - Notify host of the reservation
    """
    booking_id: UUID
    property_id: UUID
    guest_id: UUID
    host_id: UUID
    dates: DateRange


@dataclass(kw_only=True)
class BookingDeclined(DomainEvent):
    """Event: Host declined a request (PENDING -> DECLINED)"""
    booking_id: UUID
    property_id: UUID
    guest_id: UUID


@dataclass(kw_only=True)
class BookingCancelled(DomainEvent):
    """
    Event: Booking cancelled

    Triggers:
    - Release dates
    - Refund flow (payments handled outside this service)
    """
    booking_id: UUID
    property_id: UUID
    guest_id: UUID
    reason: str = ''


@dataclass(kw_only=True)
class BookingExpired(DomainEvent):
    """Event: Payment window or host response window elapsed"""
    booking_id: UUID
    property_id: UUID
    previous_status: str


@dataclass(kw_only=True)
class BookingCompleted(DomainEvent):
    """Event: Stay is over (CONFIRMED -> COMPLETED)"""
    booking_id: UUID
    property_id: UUID
    guest_id: UUID


# ===== Payment Events =====

@dataclass(kw_only=True)
class PaymentFailed(DomainEvent):
    """Event: Provider reported the transaction as not successful"""
    payment_id: UUID
    booking_id: UUID
    reason: str


@dataclass(kw_only=True)
class PaymentFlaggedForReview(DomainEvent):
    """
    Event: Provider amount or currency did not match the booking

    Triggers:
    - Manual review by support
    """
    payment_id: UUID
    booking_id: UUID
    reference: str
    expected: Money
    received_amount_minor: int | None
    received_currency: str | None
