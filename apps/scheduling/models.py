"""Viewing availability models.

Rows are written by the host settings collaborator; the scheduling engine
only reads them. Properties live in the listings service, so they are
referenced by id only.
"""

from __future__ import annotations

from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from .domain.intervals import MINUTES_PER_DAY
from .domain.slots import DEFAULT_SLOT_MINUTES, DEFAULT_TIMEZONE


class PropertyViewingSettings(models.Model):
    """Timezone and slot granularity used for a property's viewings."""

    property_id = models.UUIDField(unique=True)
    timezone = models.CharField(max_length=64, default=DEFAULT_TIMEZONE)
    slot_minutes = models.PositiveSmallIntegerField(
        default=DEFAULT_SLOT_MINUTES,
        validators=[MinValueValidator(5), MaxValueValidator(240)],
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Viewing settings")
        verbose_name_plural = _("Viewing settings")

    def __str__(self) -> str:
        return f"Viewing settings for {self.property_id} ({self.timezone})"


class PropertyAvailabilityRule(models.Model):
    """Recurring weekly viewing window (0 = Sunday)."""

    class Weekday(models.IntegerChoices):
        SUNDAY = 0, _("Sunday")
        MONDAY = 1, _("Monday")
        TUESDAY = 2, _("Tuesday")
        WEDNESDAY = 3, _("Wednesday")
        THURSDAY = 4, _("Thursday")
        FRIDAY = 5, _("Friday")
        SATURDAY = 6, _("Saturday")

    property_id = models.UUIDField(db_index=True)
    day_of_week = models.PositiveSmallIntegerField(choices=Weekday.choices)
    start_minute = models.PositiveSmallIntegerField(validators=[MaxValueValidator(MINUTES_PER_DAY)])
    end_minute = models.PositiveSmallIntegerField(validators=[MaxValueValidator(MINUTES_PER_DAY)])
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Availability rule")
        verbose_name_plural = _("Availability rules")
        ordering = ["property_id", "day_of_week", "start_minute"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_minute__gt=models.F("start_minute")),
                name="availability_rule_valid_window",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_day_of_week_display()} {self.start_minute}-{self.end_minute}"


class PropertyAvailabilityException(models.Model):
    """Per-date blackout or extra window."""

    class ExceptionType(models.TextChoices):
        BLACKOUT = "blackout", _("Blackout")
        ADD_WINDOW = "add_window", _("Extra window")

    property_id = models.UUIDField(db_index=True)
    local_date = models.DateField()
    exception_type = models.CharField(max_length=20, choices=ExceptionType.choices)
    start_minute = models.PositiveSmallIntegerField(null=True, blank=True)
    end_minute = models.PositiveSmallIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Availability exception")
        verbose_name_plural = _("Availability exceptions")
        # exceptions of a date are applied in insertion order
        ordering = ["property_id", "local_date", "id"]
        indexes = [
            models.Index(fields=["property_id", "local_date"], name="sched_exc_property_date_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.exception_type} on {self.local_date}"
