"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_number",
        "listing_type",
        "listing_id",
        "renter_id",
        "status",
        "start_date",
        "end_date",
        "created_at",
    )
    list_filter = ("status", "listing_type", "start_date", "end_date")
    search_fields = ("booking_number", "listing_id", "renter_id")
    readonly_fields = ("booking_number", "created_at", "updated_at")
