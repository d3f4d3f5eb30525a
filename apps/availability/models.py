"""Availability models: blocks, recurring patterns, listing locks and the notification outbox."""

from __future__ import annotations

import uuid

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class ListingType(models.TextChoices):
    VEHICLE = "vehicle", _("Vehicle")
    DRIVER = "driver", _("Driver")


class AvailabilityBlock(models.Model):
    """Date range (both ends inclusive) during which a listing cannot be booked."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    listing_id = models.CharField(max_length=64)
    listing_type = models.CharField(max_length=16, choices=ListingType.choices)
    start_date = models.DateField()
    end_date = models.DateField()
    reason = models.CharField(max_length=255, blank=True)
    created_by = models.CharField(max_length=64)
    is_recurring = models.BooleanField(default=False)
    recurring_block = models.ForeignKey(
        "availability.RecurringBlock",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="materialized_blocks",
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "availability_block"
        verbose_name = _("Availability block")
        verbose_name_plural = _("Availability blocks")
        ordering = ["start_date", "end_date"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gte=models.F("start_date")),
                name="availability_block_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["listing_id", "start_date", "end_date"]),
        ]

    def __str__(self) -> str:
        return f"Block {self.listing_type}:{self.listing_id} {self.start_date} - {self.end_date}"


class RecurringBlock(models.Model):
    """Weekly unavailability pattern (weekday 0 = Sunday)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    listing_id = models.CharField(max_length=64)
    listing_type = models.CharField(max_length=16, choices=ListingType.choices)
    days_of_week = models.JSONField(default=list)
    start_date = models.DateField()
    end_date = models.DateField(
        null=True,
        blank=True,
        help_text=_("Empty for an open-ended pattern."),
    )
    reason = models.CharField(max_length=255, blank=True)
    created_by = models.CharField(max_length=64)
    split_from = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="successors",
        help_text=_("Pattern this one continues after a dated change."),
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "availability_recurring_block"
        verbose_name = _("Recurring block")
        verbose_name_plural = _("Recurring blocks")
        ordering = ["start_date"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__isnull=True) | models.Q(end_date__gte=models.F("start_date")),
                name="recurring_block_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["listing_id", "start_date", "end_date"]),
        ]

    def __str__(self) -> str:
        end = self.end_date or "open"
        return f"Recurring {self.listing_type}:{self.listing_id} {self.days_of_week} {self.start_date} - {end}"


class ListingLock(models.Model):
    """Row locked with SELECT ... FOR UPDATE to serialize writers on one listing."""

    listing_id = models.CharField(max_length=64, primary_key=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "availability_listing_lock"

    def __str__(self) -> str:
        return f"Lock {self.listing_id}"


class NotificationOutbox(models.Model):
    """Notification work recorded in the same transaction as the change that needs it."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        DELIVERED = "delivered", _("Delivered")
        FAILED = "failed", _("Failed")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    topic = models.CharField(max_length=64)
    payload = models.JSONField(default=dict)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    attempts = models.PositiveSmallIntegerField(default=0)
    last_error = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "availability_notification_outbox"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"Outbox {self.topic} [{self.status}]"
