"""Booking models for the Vider marketplace."""

from __future__ import annotations

import secrets
import uuid

from django.core.exceptions import ValidationError  # type: ignore
from django.db import IntegrityError, models, transaction  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

BOOKING_NUMBER_ATTEMPTS = 5


class Booking(models.Model):
    """Renter's request for a listing over an inclusive date range."""

    class Status(models.TextChoices):
        PENDING = "PENDING", _("Pending")
        ACCEPTED = "ACCEPTED", _("Accepted")
        ACTIVE = "ACTIVE", _("Active")
        COMPLETED = "COMPLETED", _("Completed")
        CANCELLED = "CANCELLED", _("Cancelled")
        DISPUTED = "DISPUTED", _("Disputed")

    class ListingType(models.TextChoices):
        VEHICLE = "vehicle", _("Vehicle")
        DRIVER = "driver", _("Driver")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking_number = models.CharField(max_length=16, unique=True, editable=False)
    listing_id = models.CharField(max_length=64)
    listing_type = models.CharField(max_length=16, choices=ListingType.choices)
    renter_id = models.CharField(max_length=64)
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gte=models.F("start_date")),
                name="booking_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["listing_id", "start_date", "end_date"]),
            models.Index(fields=["status"]),
        ]

    def __str__(self) -> str:
        return f"Booking {self.booking_number} for {self.listing_type}:{self.listing_id}"

    def clean(self) -> None:
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError(_("End date must not be before start date."))

    def save(self, *args, **kwargs):  # type: ignore
        self.clean()
        if not self._state.adding or self.booking_number:
            super().save(*args, **kwargs)
            return

        for attempt in range(1, BOOKING_NUMBER_ATTEMPTS + 1):
            self.booking_number = self.generate_booking_number()
            try:
                with transaction.atomic():
                    super().save(*args, **kwargs)
                return
            except IntegrityError:
                taken = Booking.objects.filter(booking_number=self.booking_number).exists()
                if not taken or attempt == BOOKING_NUMBER_ATTEMPTS:
                    raise

    @staticmethod
    def generate_booking_number() -> str:
        return f"BK-{secrets.token_hex(4).upper()}"

    @property
    def is_committed(self) -> bool:
        return self.status in (self.Status.ACCEPTED, self.Status.ACTIVE)
