"""Serializers for the availability API."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from shared.domain.value_objects import to_calendar_date

from .models import ListingType


class CalendarDateField(serializers.Field):
    """Accepts an ISO date or datetime; datetimes are converted to their UTC calendar date."""

    default_error_messages = {
        "invalid": "Date has wrong format. Use YYYY-MM-DD or an ISO 8601 datetime.",
    }

    def to_internal_value(self, data):  # type: ignore
        try:
            return to_calendar_date(data)
        except (TypeError, ValueError):
            self.fail("invalid")

    def to_representation(self, value):  # type: ignore
        return value.isoformat() if value else None


# ----- Input -----

class BlockCreateSerializer(serializers.Serializer):
    listing_id = serializers.CharField(max_length=64)
    listing_type = serializers.ChoiceField(choices=ListingType.choices)
    start_date = CalendarDateField()
    end_date = CalendarDateField()
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class BulkBlockCreateSerializer(serializers.Serializer):
    listing_ids = serializers.ListField(
        child=serializers.CharField(max_length=64),
        allow_empty=False,
    )
    listing_type = serializers.ChoiceField(choices=ListingType.choices)
    start_date = CalendarDateField()
    end_date = CalendarDateField()
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class RecurringBlockCreateSerializer(serializers.Serializer):
    listing_id = serializers.CharField(max_length=64)
    listing_type = serializers.ChoiceField(choices=ListingType.choices)
    days_of_week = serializers.ListField(child=serializers.IntegerField(), allow_empty=True)
    start_date = CalendarDateField()
    end_date = CalendarDateField(required=False, allow_null=True, default=None)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class RecurringBlockUpdateSerializer(serializers.Serializer):
    """Only the fields present in the request are changed."""

    CHANGE_FIELDS = ("days_of_week", "start_date", "end_date", "reason")

    scope = serializers.CharField()
    update_date = CalendarDateField(required=False, allow_null=True)
    days_of_week = serializers.ListField(child=serializers.IntegerField(), required=False)
    start_date = CalendarDateField(required=False)
    end_date = CalendarDateField(required=False, allow_null=True)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def changes(self) -> dict:
        return {name: self.validated_data[name] for name in self.CHANGE_FIELDS if name in self.validated_data}


class RecurringBlockDeleteSerializer(serializers.Serializer):
    scope = serializers.CharField(default="all")
    delete_date = CalendarDateField(required=False, allow_null=True, default=None)


class AvailabilityCheckSerializer(serializers.Serializer):
    listing_id = serializers.CharField(max_length=64)
    start_date = CalendarDateField()
    end_date = CalendarDateField()


class ListingWindowSerializer(serializers.Serializer):
    """Query parameters of the calendar, analytics and export endpoints."""

    listing_type = serializers.ChoiceField(choices=ListingType.choices, required=False)
    start_date = CalendarDateField(required=False)
    end_date = CalendarDateField(required=False)


class BlockListQuerySerializer(ListingWindowSerializer):
    listing_id = serializers.CharField(max_length=64)


# ----- Output -----

class ConflictSerializer(serializers.Serializer):
    type = serializers.CharField()
    id = serializers.UUIDField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    booking_number = serializers.CharField(allow_null=True)
    reason = serializers.CharField(allow_null=True)
    recurring_block_id = serializers.UUIDField(allow_null=True)


class AvailabilityBlockSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    listing_id = serializers.CharField()
    listing_type = serializers.CharField(source="listing_type.value")
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    reason = serializers.CharField()
    created_by = serializers.CharField()
    is_recurring = serializers.BooleanField()
    recurring_block_id = serializers.UUIDField(allow_null=True)
    created_at = serializers.DateTimeField()


class RecurringBlockSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    listing_id = serializers.CharField()
    listing_type = serializers.CharField(source="listing_type.value")
    days_of_week = serializers.SerializerMethodField()
    start_date = serializers.DateField()
    end_date = serializers.DateField(allow_null=True)
    reason = serializers.CharField()
    created_by = serializers.CharField()
    split_from_id = serializers.UUIDField(allow_null=True)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()

    def get_days_of_week(self, obj) -> list[int]:  # type: ignore
        return sorted(obj.days_of_week)
