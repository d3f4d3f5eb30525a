"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.availability.serializers import CalendarDateField

from .models import Booking
from .services import create_booking_request


class BookingSerializer(serializers.ModelSerializer):
    status_display = serializers.ReadOnlyField(source="get_status_display")

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_number",
            "listing_id",
            "listing_type",
            "renter_id",
            "start_date",
            "end_date",
            "status",
            "status_display",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingCreateSerializer(serializers.Serializer):
    """Booking request by a renter; dates are inclusive."""

    listing_id = serializers.CharField(max_length=64)
    listing_type = serializers.ChoiceField(choices=Booking.ListingType.choices)
    start_date = CalendarDateField()
    end_date = CalendarDateField()

    def create(self, validated_data):  # type: ignore
        request = self.context["request"]
        return create_booking_request(renter_id=str(request.user.pk), **validated_data)
