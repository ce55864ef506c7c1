"""Mapping between booking aggregates and their Django rows."""

from __future__ import annotations

from datetime import datetime
from typing import List
from uuid import UUID

from django.db import transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import DateRange, Money

from .domain.entities import ShortletBooking, ShortletPayment
from .domain.state_machine import (
    BookingStatus,
    PaymentStatus,
    parse_booking_mode,
    parse_booking_status,
    parse_payment_status,
)
from .models import ShortletBooking as ShortletBookingModel
from .models import ShortletPayment as ShortletPaymentModel


def lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def booking_to_entity(row: ShortletBookingModel) -> ShortletBooking:
    status = parse_booking_status(row.status)
    if status is None:
        raise ValidationError(f"Unknown booking status {row.status!r} on booking {row.pk}")
    return ShortletBooking(
        id=row.pk,
        created_at=row.created_at,
        updated_at=row.updated_at,
        property_id=row.property_id,
        guest_id=row.guest_id,
        host_id=row.host_id,
        dates=DateRange(row.check_in, row.check_out),
        total=Money(row.total_amount_minor, row.currency),
        booking_mode=parse_booking_mode(row.booking_mode),
        status=status,
        expires_at=row.expires_at,
        payment_reference=row.payment_reference,
        refund_required=row.refund_required,
        cancellation_reason=row.cancellation_reason,
        confirmed_at=row.confirmed_at,
        responded_at=row.responded_at,
        cancelled_at=row.cancelled_at,
        completed_at=row.completed_at,
    )


def payment_to_entity(row: ShortletPaymentModel) -> ShortletPayment:
    status = parse_payment_status(row.status)
    if status is None:
        raise ValidationError(f"Unknown payment status {row.status!r} on payment {row.pk}")
    return ShortletPayment(
        id=row.pk,
        created_at=row.created_at,
        updated_at=row.updated_at,
        booking_id=row.booking_id,
        property_id=row.property_id,
        reference=row.reference,
        amount=Money(row.amount_minor, row.currency),
        provider=row.provider,
        status=status,
        failure_reason=row.failure_reason,
        authorization_code=row.authorization_code,
        customer_code=row.customer_code,
        provider_payload=row.provider_payload or {},
        paid_at=row.paid_at,
        refunded_at=row.refunded_at,
    )


class ShortletBookingRepository:
    """Loads and stores ShortletBooking aggregates"""

    def get_by_id(self, booking_id: UUID, lock: bool = False) -> ShortletBooking | None:
        queryset = ShortletBookingModel.objects.filter(pk=booking_id)
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        row = queryset.first()
        return booking_to_entity(row) if row else None

    def save(self, booking: ShortletBooking) -> None:
        ShortletBookingModel.objects.update_or_create(
            pk=booking.id,
            defaults={
                "property_id": booking.property_id,
                "guest_id": booking.guest_id,
                "host_id": booking.host_id,
                "check_in": booking.dates.start_date,
                "check_out": booking.dates.end_date,
                "nights": booking.nights,
                "status": booking.status.value,
                "booking_mode": booking.booking_mode.value,
                "currency": booking.total.currency,
                "total_amount_minor": booking.total.amount_minor,
                "payment_reference": booking.payment_reference,
                "expires_at": booking.expires_at,
                "refund_required": booking.refund_required,
                "cancellation_reason": booking.cancellation_reason,
                "confirmed_at": booking.confirmed_at,
                "responded_at": booking.responded_at,
                "cancelled_at": booking.cancelled_at,
                "completed_at": booking.completed_at,
                "created_at": booking.created_at,
            },
        )

    def ids_expiring(self, status: BookingStatus, now: datetime) -> List[UUID]:
        """Bookings in ``status`` whose ``expires_at`` has passed"""
        return list(
            ShortletBookingModel.objects.filter(
                status=status.value,
                expires_at__isnull=False,
                expires_at__lte=now,
            ).values_list("pk", flat=True)
        )

    def ids_finished(self, today) -> List[UUID]:
        """Confirmed bookings whose check-out day has arrived"""
        return list(
            ShortletBookingModel.objects.filter(
                status=BookingStatus.CONFIRMED.value,
                check_out__lte=today,
            ).values_list("pk", flat=True)
        )


class ShortletPaymentRepository:
    """Loads and stores ShortletPayment aggregates"""

    def get_by_reference(self, reference: str, lock: bool = False) -> ShortletPayment | None:
        queryset = ShortletPaymentModel.objects.filter(reference=reference)
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        row = queryset.first()
        return payment_to_entity(row) if row else None

    def get_by_booking_id(self, booking_id: UUID, lock: bool = False) -> ShortletPayment | None:
        queryset = ShortletPaymentModel.objects.filter(booking_id=booking_id)
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        row = queryset.first()
        return payment_to_entity(row) if row else None

    def is_succeeded(self, reference: str) -> bool:
        """Cheap read used before any provider call or write"""
        return ShortletPaymentModel.objects.filter(
            reference=reference,
            status=PaymentStatus.SUCCEEDED.value,
        ).exists()

    def save(self, payment: ShortletPayment) -> None:
        ShortletPaymentModel.objects.update_or_create(
            pk=payment.id,
            defaults={
                "booking_id": payment.booking_id,
                "property_id": payment.property_id,
                "provider": payment.provider,
                "reference": payment.reference,
                "currency": payment.amount.currency,
                "amount_minor": payment.amount.amount_minor,
                "status": payment.status.value,
                "failure_reason": payment.failure_reason[:255],
                "authorization_code": payment.authorization_code,
                "customer_code": payment.customer_code,
                "provider_payload": payment.provider_payload,
                "paid_at": payment.paid_at,
                "refunded_at": payment.refunded_at,
                "created_at": payment.created_at,
            },
        )

    def stuck_references(self, older_than: datetime) -> List[str]:
        """Initiated payments whose current attempt started before ``older_than``"""
        return list(
            ShortletPaymentModel.objects.filter(
                status=PaymentStatus.INITIATED.value,
                created_at__lte=older_than,
            ).values_list("reference", flat=True)
        )
