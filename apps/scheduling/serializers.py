"""Boundary parsing for availability rows.

Rows arrive as loosely-typed dicts (``.values()`` querysets or settings
payloads) and are turned into domain value objects here.
"""

from __future__ import annotations

from collections import Counter
from datetime import date

from rest_framework import serializers  # type: ignore

from .domain.intervals import MINUTES_PER_DAY
from .domain.slots import AvailabilityException, ExceptionType, WeeklyRule

MAX_RULES_PER_DAY = 3


class WeeklyRuleListSerializer(serializers.ListSerializer):
    def validate(self, attrs):
        per_day = Counter(item["day_of_week"] for item in attrs)
        crowded = sorted(day for day, count in per_day.items() if count > MAX_RULES_PER_DAY)
        if crowded:
            raise serializers.ValidationError(
                f"At most {MAX_RULES_PER_DAY} windows per day (days {crowded})"
            )
        return attrs


class WeeklyRuleSerializer(serializers.Serializer):
    day_of_week = serializers.IntegerField(min_value=0, max_value=6)
    start_minute = serializers.IntegerField(min_value=0, max_value=MINUTES_PER_DAY)
    end_minute = serializers.IntegerField(min_value=0, max_value=MINUTES_PER_DAY)

    class Meta:
        list_serializer_class = WeeklyRuleListSerializer

    def validate(self, attrs):
        if attrs["start_minute"] >= attrs["end_minute"]:
            raise serializers.ValidationError("start_minute must be before end_minute")
        return attrs


class AvailabilityExceptionSerializer(serializers.Serializer):
    local_date = serializers.DateField()
    exception_type = serializers.ChoiceField(choices=[t.value for t in ExceptionType])
    start_minute = serializers.IntegerField(
        min_value=0, max_value=MINUTES_PER_DAY, required=False, allow_null=True
    )
    end_minute = serializers.IntegerField(
        min_value=0, max_value=MINUTES_PER_DAY, required=False, allow_null=True
    )

    def validate(self, attrs):
        start = attrs.get("start_minute")
        end = attrs.get("end_minute")
        if (start is None) != (end is None):
            raise serializers.ValidationError("start_minute and end_minute go together")
        if attrs["exception_type"] == ExceptionType.ADD_WINDOW.value and start is None:
            raise serializers.ValidationError("add_window requires start_minute and end_minute")
        return attrs


def exception_to_domain(data: dict) -> AvailabilityException:
    local_date = data["local_date"]
    if isinstance(local_date, date):
        local_date = local_date.isoformat()
    return AvailabilityException(
        local_date=local_date,
        exception_type=ExceptionType(data["exception_type"]),
        start_minute=data.get("start_minute"),
        end_minute=data.get("end_minute"),
    )


def parse_weekly_rules(rows) -> list[WeeklyRule]:
    """Raises rest_framework ValidationError on malformed rows"""
    serializer = WeeklyRuleSerializer(data=list(rows), many=True)
    serializer.is_valid(raise_exception=True)
    return [WeeklyRule(**item) for item in serializer.validated_data]


def parse_availability_exceptions(rows) -> list[AvailabilityException]:
    serializer = AvailabilityExceptionSerializer(data=list(rows), many=True)
    serializer.is_valid(raise_exception=True)
    return [exception_to_domain(item) for item in serializer.validated_data]
