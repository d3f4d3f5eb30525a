"""
Django ORM implementations of the availability repository interfaces.

Translates between ORM rows and domain entities. The listing lock must be
acquired inside a transaction (``DjangoUnitOfWork``); on backends without
``SELECT ... FOR UPDATE`` (SQLite) the database's own write serialization
applies.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from django.db import transaction  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.value_objects import DateRange

from apps.availability import models
from apps.availability.domain.entities import (
    AvailabilityBlock,
    BookingSnapshot,
    ListingType,
    RecurringBlock,
)
from apps.availability.domain.repositories import (
    AvailabilityBlockRepository,
    BookingReader,
    ListingLocker,
    NotificationOutbox,
    OutboxEntry,
    RecurringBlockRepository,
)

logger = logging.getLogger(__name__)


class DjangoAvailabilityBlockRepository(AvailabilityBlockRepository):

    @staticmethod
    def to_entity(row: models.AvailabilityBlock) -> AvailabilityBlock:
        return AvailabilityBlock(
            id=row.id,
            created_at=row.created_at,
            updated_at=row.updated_at,
            listing_id=row.listing_id,
            listing_type=ListingType(row.listing_type),
            dates=DateRange(row.start_date, row.end_date),
            created_by=row.created_by,
            reason=row.reason,
            is_recurring=row.is_recurring,
            recurring_block_id=row.recurring_block_id,
        )

    def add(self, block: AvailabilityBlock):
        models.AvailabilityBlock.objects.create(
            id=block.id,
            listing_id=block.listing_id,
            listing_type=block.listing_type.value,
            start_date=block.start_date,
            end_date=block.end_date,
            reason=block.reason,
            created_by=block.created_by,
            is_recurring=block.is_recurring,
            recurring_block_id=block.recurring_block_id,
            created_at=block.created_at,
        )

    def get(self, block_id: UUID) -> Optional[AvailabilityBlock]:
        row = models.AvailabilityBlock.objects.filter(id=block_id).first()
        return self.to_entity(row) if row else None

    def delete(self, block_id: UUID):
        models.AvailabilityBlock.objects.filter(id=block_id).delete()

    def list_for_listing(
        self,
        listing_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[AvailabilityBlock]:
        queryset = models.AvailabilityBlock.objects.filter(listing_id=listing_id)
        if end_date is not None:
            queryset = queryset.filter(start_date__lte=end_date)
        if start_date is not None:
            queryset = queryset.filter(end_date__gte=start_date)
        return [self.to_entity(row) for row in queryset.order_by("start_date", "end_date")]


class DjangoRecurringBlockRepository(RecurringBlockRepository):

    @staticmethod
    def to_entity(row: models.RecurringBlock) -> RecurringBlock:
        return RecurringBlock(
            id=row.id,
            created_at=row.created_at,
            updated_at=row.updated_at,
            listing_id=row.listing_id,
            listing_type=ListingType(row.listing_type),
            days_of_week=frozenset(row.days_of_week),
            start_date=row.start_date,
            end_date=row.end_date,
            created_by=row.created_by,
            reason=row.reason,
            split_from_id=row.split_from_id,
        )

    @staticmethod
    def _fields(pattern: RecurringBlock) -> dict:
        return {
            "listing_id": pattern.listing_id,
            "listing_type": pattern.listing_type.value,
            "days_of_week": sorted(pattern.days_of_week),
            "start_date": pattern.start_date,
            "end_date": pattern.end_date,
            "reason": pattern.reason,
            "created_by": pattern.created_by,
            "split_from_id": pattern.split_from_id,
        }

    def add(self, pattern: RecurringBlock):
        models.RecurringBlock.objects.create(id=pattern.id, created_at=pattern.created_at, **self._fields(pattern))

    def save(self, pattern: RecurringBlock):
        models.RecurringBlock.objects.filter(id=pattern.id).update(
            updated_at=timezone.now(),
            **self._fields(pattern),
        )

    def get(self, pattern_id: UUID) -> Optional[RecurringBlock]:
        row = models.RecurringBlock.objects.filter(id=pattern_id).first()
        return self.to_entity(row) if row else None

    def delete(self, pattern_id: UUID):
        models.RecurringBlock.objects.filter(id=pattern_id).delete()

    def list_for_listing(
        self,
        listing_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[RecurringBlock]:
        queryset = models.RecurringBlock.objects.filter(listing_id=listing_id)
        if end_date is not None:
            queryset = queryset.filter(start_date__lte=end_date)
        if start_date is not None:
            queryset = queryset.filter(Q(end_date__isnull=True) | Q(end_date__gte=start_date))
        return [self.to_entity(row) for row in queryset.order_by("start_date")]


class DjangoBookingReader(BookingReader):

    def overlapping(self, listing_id: str, start_date: date, end_date: date, statuses) -> List[BookingSnapshot]:
        from apps.bookings.models import Booking

        queryset = Booking.objects.filter(
            listing_id=listing_id,
            status__in=list(statuses),
            start_date__lte=end_date,
            end_date__gte=start_date,
        ).order_by("start_date")

        return [
            BookingSnapshot(
                id=booking.id,
                booking_number=booking.booking_number,
                listing_id=booking.listing_id,
                dates=DateRange(booking.start_date, booking.end_date),
                status=booking.status,
                renter_id=booking.renter_id,
            )
            for booking in queryset
        ]


class DjangoNotificationOutbox(NotificationOutbox):

    def enqueue_block_conflicts(self, block: AvailabilityBlock):
        models.NotificationOutbox.objects.create(
            topic=self.BLOCK_CREATED,
            payload={
                "block_id": str(block.id),
                "listing_id": block.listing_id,
                "start_date": block.start_date.isoformat(),
                "end_date": block.end_date.isoformat(),
                "created_by": block.created_by,
            },
        )

    def pending_ids(self, limit: int) -> List[UUID]:
        queryset = models.NotificationOutbox.objects.filter(
            status=models.NotificationOutbox.Status.PENDING,
        ).order_by("created_at")
        return list(queryset.values_list("id", flat=True)[:limit])

    def claim(self, entry_id: UUID) -> Optional[OutboxEntry]:
        row = (
            models.NotificationOutbox.objects.select_for_update(skip_locked=True)
            .filter(id=entry_id, status=models.NotificationOutbox.Status.PENDING)
            .first()
        )
        if row is None:
            return None
        return OutboxEntry(id=row.id, topic=row.topic, payload=row.payload, attempts=row.attempts)

    def mark_delivered(self, entry_id: UUID):
        models.NotificationOutbox.objects.filter(id=entry_id).update(
            status=models.NotificationOutbox.Status.DELIVERED,
            processed_at=timezone.now(),
        )

    def record_failure(self, entry_id: UUID, error: str, max_attempts: int) -> bool:
        row = models.NotificationOutbox.objects.select_for_update().filter(id=entry_id).first()
        if row is None:
            return False

        row.attempts += 1
        row.last_error = error[:2000]
        gave_up = row.attempts >= max_attempts
        if gave_up:
            row.status = models.NotificationOutbox.Status.FAILED
            row.processed_at = timezone.now()
        row.save(update_fields=["attempts", "last_error", "status", "processed_at"])
        return gave_up


class DjangoListingLocker(ListingLocker):
    """
    Per-listing lock held until the surrounding transaction ends

    The lock row is created on first use; concurrent creators fall back
    to the existing row.
    """

    def acquire(self, listing_id: str):
        if not transaction.get_connection().in_atomic_block:
            raise transaction.TransactionManagementError(
                "Listing locks must be acquired inside a transaction"
            )

        listing_id = str(listing_id)
        models.ListingLock.objects.get_or_create(listing_id=listing_id)
        models.ListingLock.objects.select_for_update().get(listing_id=listing_id)
        logger.debug(f"Acquired lock for listing {listing_id}")
