"""Notification model.

A message addressed to a user about some marketplace event. Notifications
are created by domain services (e.g. availability conflict warnings) and
read through the API. Each notification can be marked as read.
"""

from __future__ import annotations

from django.db import models  # type: ignore


class Notification(models.Model):
    """A message sent to a user about some event."""

    class Type(models.TextChoices):
        AVAILABILITY_CONFLICT = 'AVAILABILITY_CONFLICT', 'Availability conflict'
        BOOKING_UPDATE = 'BOOKING_UPDATE', 'Booking update'
        GENERAL = 'GENERAL', 'General'

    user_id = models.CharField(max_length=64, db_index=True)
    type = models.CharField(max_length=32, choices=Type.choices, default=Type.GENERAL)
    title = models.CharField(max_length=255)
    message = models.TextField()
    metadata = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:
        return f"Notification to {self.user_id}: {self.title}"
