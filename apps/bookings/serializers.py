"""Serializers for the booking domain.

Boundary parsing for loosely-typed command input and the read model
returned to a guest waiting on the payment return page.
"""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from shared.domain.value_objects import normalize_currency

from .application.command_handlers import CreateShortletBookingCommand
from .domain.state_machine import BookingMode


class ShortletBookingCreateSerializer(serializers.Serializer):
    """Reservation request, already priced by the pricing collaborator."""

    property_id = serializers.UUIDField()
    guest_id = serializers.UUIDField()
    host_id = serializers.UUIDField()
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    total_amount_minor = serializers.IntegerField(min_value=1)
    currency = serializers.CharField(max_length=3, min_length=3, default="NGN")
    booking_mode = serializers.ChoiceField(
        choices=[mode.value for mode in BookingMode],
        default=BookingMode.REQUEST.value,
    )
    prep_days = serializers.IntegerField(min_value=0, max_value=30, default=0)

    def validate_currency(self, value: str) -> str:
        value = normalize_currency(value)
        if not value.isalpha():
            raise serializers.ValidationError("Currency must be a 3-letter ISO code.")
        return value

    def validate(self, attrs):  # type: ignore
        if attrs["check_in"] >= attrs["check_out"]:
            raise serializers.ValidationError("Check-out date must be after check-in date.")
        return attrs

    def to_command(self) -> CreateShortletBookingCommand:
        return CreateShortletBookingCommand(**self.validated_data)


class ReturnStatusSerializer(serializers.Serializer):
    """What the payment return page needs to decide its next poll."""

    booking_id = serializers.UUIDField()
    booking_status = serializers.CharField(allow_null=True)
    payment_status = serializers.CharField(allow_null=True)
    ui_state = serializers.CharField()
    action = serializers.CharField()
    stop_reason = serializers.CharField()
    is_finalising = serializers.BooleanField()
    timeout_message = serializers.CharField(allow_null=True)
