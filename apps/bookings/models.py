"""Shortlet booking models.

Listings and users live in other services, so properties, guests and
hosts are referenced by id only. Amounts are integers in the currency's
minor unit.
"""

from __future__ import annotations

import uuid

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from .domain.state_machine import BookingMode, BookingStatus, PaymentStatus

# Installed on PostgreSQL by migration 0002
OVERLAP_CONSTRAINT_NAME = "shortlet_booking_no_overlap"


def _choices(enum_cls) -> list[tuple[str, str]]:
    return [(member.value, member.value.replace("_", " ").capitalize()) for member in enum_cls]


class ShortletBooking(models.Model):
    """Guest reservation of a shortlet property."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    property_id = models.UUIDField(db_index=True)
    guest_id = models.UUIDField(db_index=True)
    host_id = models.UUIDField(db_index=True)
    check_in = models.DateField()
    check_out = models.DateField()
    nights = models.PositiveIntegerField()
    status = models.CharField(
        max_length=20,
        choices=_choices(BookingStatus),
        default=BookingStatus.PENDING_PAYMENT.value,
    )
    booking_mode = models.CharField(
        max_length=10,
        choices=_choices(BookingMode),
        default=BookingMode.REQUEST.value,
    )
    currency = models.CharField(max_length=3, default="NGN")
    total_amount_minor = models.PositiveBigIntegerField()
    payment_reference = models.CharField(max_length=100, blank=True)
    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("End of the payment window or of the host response window."),
    )
    refund_required = models.BooleanField(default=False)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    responded_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Shortlet booking")
        verbose_name_plural = _("Shortlet bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="shortlet_booking_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["property_id", "check_in", "check_out"], name="shortlet_bk_property_idx"),
            models.Index(fields=["status", "expires_at"], name="shortlet_bk_status_exp_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.id} for {self.property_id} ({self.status})"


class ShortletBlock(models.Model):
    """Nights closed by the host outside of any booking."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    property_id = models.UUIDField(db_index=True)
    start_date = models.DateField()
    end_date = models.DateField()
    reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Shortlet block")
        verbose_name_plural = _("Shortlet blocks")
        ordering = ["property_id", "start_date"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="shortlet_block_valid_dates",
            ),
        ]

    def __str__(self) -> str:
        return f"Block {self.start_date} - {self.end_date} for {self.property_id}"


class ShortletPayment(models.Model):
    """Payment record correlated with exactly one booking."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.OneToOneField(
        ShortletBooking,
        on_delete=models.CASCADE,
        related_name="payment",
    )
    property_id = models.UUIDField()
    provider = models.CharField(max_length=20, default="paystack")
    reference = models.CharField(max_length=100, unique=True)
    currency = models.CharField(max_length=3, default="NGN")
    amount_minor = models.PositiveBigIntegerField()
    status = models.CharField(
        max_length=20,
        choices=_choices(PaymentStatus),
        default=PaymentStatus.INITIATED.value,
    )
    failure_reason = models.CharField(max_length=255, blank=True)
    authorization_code = models.CharField(max_length=100, blank=True)
    customer_code = models.CharField(max_length=100, blank=True)
    provider_payload = models.JSONField(default=dict, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Shortlet payment")
        verbose_name_plural = _("Shortlet payments")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="shortlet_pay_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Payment {self.reference} ({self.status})"
