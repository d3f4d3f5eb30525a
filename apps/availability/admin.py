"""Admin registration for availability."""

from __future__ import annotations

from django.contrib import admin

from .models import AvailabilityBlock, NotificationOutbox, RecurringBlock


@admin.register(AvailabilityBlock)
class AvailabilityBlockAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "listing_type",
        "listing_id",
        "start_date",
        "end_date",
        "reason",
        "created_by",
        "created_at",
    )
    list_filter = ("listing_type", "is_recurring", "start_date")
    search_fields = ("listing_id", "reason", "created_by")
    readonly_fields = ("created_at", "updated_at")


@admin.register(RecurringBlock)
class RecurringBlockAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "listing_type",
        "listing_id",
        "days_of_week",
        "start_date",
        "end_date",
        "split_from",
    )
    list_filter = ("listing_type",)
    search_fields = ("listing_id", "reason")
    readonly_fields = ("split_from", "created_at", "updated_at")


@admin.register(NotificationOutbox)
class NotificationOutboxAdmin(admin.ModelAdmin):
    list_display = ("id", "topic", "status", "attempts", "created_at", "processed_at")
    list_filter = ("status", "topic")
    readonly_fields = ("payload", "last_error", "created_at", "processed_at")
