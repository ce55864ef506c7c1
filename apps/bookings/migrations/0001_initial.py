import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

BOOKING_STATUS_CHOICES = [
    ("pending_payment", "Pending payment"),
    ("pending", "Pending"),
    ("confirmed", "Confirmed"),
    ("declined", "Declined"),
    ("cancelled", "Cancelled"),
    ("expired", "Expired"),
    ("completed", "Completed"),
]

PAYMENT_STATUS_CHOICES = [
    ("initiated", "Initiated"),
    ("succeeded", "Succeeded"),
    ("failed", "Failed"),
    ("refunded", "Refunded"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ShortletBooking",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("property_id", models.UUIDField(db_index=True)),
                ("guest_id", models.UUIDField(db_index=True)),
                ("host_id", models.UUIDField(db_index=True)),
                ("check_in", models.DateField()),
                ("check_out", models.DateField()),
                ("nights", models.PositiveIntegerField()),
                (
                    "status",
                    models.CharField(choices=BOOKING_STATUS_CHOICES, default="pending_payment", max_length=20),
                ),
                (
                    "booking_mode",
                    models.CharField(
                        choices=[("instant", "Instant"), ("request", "Request")],
                        default="request",
                        max_length=10,
                    ),
                ),
                ("currency", models.CharField(default="NGN", max_length=3)),
                ("total_amount_minor", models.PositiveBigIntegerField()),
                ("payment_reference", models.CharField(blank=True, max_length=100)),
                (
                    "expires_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="End of the payment window or of the host response window.",
                        null=True,
                    ),
                ),
                ("refund_required", models.BooleanField(default=False)),
                ("cancellation_reason", models.CharField(blank=True, max_length=255)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("responded_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Shortlet booking",
                "verbose_name_plural": "Shortlet bookings",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(check_out__gt=models.F("check_in")),
                        name="shortlet_booking_valid_dates",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["property_id", "check_in", "check_out"], name="shortlet_bk_property_idx"),
                    models.Index(fields=["status", "expires_at"], name="shortlet_bk_status_exp_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ShortletBlock",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("property_id", models.UUIDField(db_index=True)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("reason", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Shortlet block",
                "verbose_name_plural": "Shortlet blocks",
                "ordering": ["property_id", "start_date"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(end_date__gt=models.F("start_date")),
                        name="shortlet_block_valid_dates",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ShortletPayment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("property_id", models.UUIDField()),
                ("provider", models.CharField(default="paystack", max_length=20)),
                ("reference", models.CharField(max_length=100, unique=True)),
                ("currency", models.CharField(default="NGN", max_length=3)),
                ("amount_minor", models.PositiveBigIntegerField()),
                (
                    "status",
                    models.CharField(choices=PAYMENT_STATUS_CHOICES, default="initiated", max_length=20),
                ),
                ("failure_reason", models.CharField(blank=True, max_length=255)),
                ("authorization_code", models.CharField(blank=True, max_length=100)),
                ("customer_code", models.CharField(blank=True, max_length=100)),
                ("provider_payload", models.JSONField(blank=True, default=dict)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("refunded_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "booking",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payment",
                        to="bookings.shortletbooking",
                    ),
                ),
            ],
            options={
                "verbose_name": "Shortlet payment",
                "verbose_name_plural": "Shortlet payments",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="shortlet_pay_status_idx"),
                ],
            },
        ),
    ]
