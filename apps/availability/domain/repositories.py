"""
Availability Repository Interfaces

Ports the domain and application layers depend on. Django-backed
implementations live in ``apps.availability.repositories``; tests use
in-memory fakes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import List, Optional
from uuid import UUID

from apps.availability.domain.entities import (
    AvailabilityBlock,
    BookingSnapshot,
    RecurringBlock,
)


class AvailabilityBlockRepository(ABC):

    @abstractmethod
    def add(self, block: AvailabilityBlock):
        pass

    @abstractmethod
    def get(self, block_id: UUID) -> Optional[AvailabilityBlock]:
        pass

    @abstractmethod
    def delete(self, block_id: UUID):
        pass

    @abstractmethod
    def list_for_listing(
        self,
        listing_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[AvailabilityBlock]:
        """Blocks of a listing, optionally limited to those overlapping a range"""
        pass


class RecurringBlockRepository(ABC):

    @abstractmethod
    def add(self, pattern: RecurringBlock):
        pass

    @abstractmethod
    def save(self, pattern: RecurringBlock):
        pass

    @abstractmethod
    def get(self, pattern_id: UUID) -> Optional[RecurringBlock]:
        pass

    @abstractmethod
    def delete(self, pattern_id: UUID):
        pass

    @abstractmethod
    def list_for_listing(
        self,
        listing_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[RecurringBlock]:
        """Patterns of a listing whose bounds intersect the range"""
        pass


class BookingReader(ABC):
    """Read access to bookings owned by the booking flow"""

    @abstractmethod
    def overlapping(
        self,
        listing_id: str,
        start_date: date,
        end_date: date,
        statuses,
    ) -> List[BookingSnapshot]:
        pass


@dataclass
class OutboxEntry:
    """A pending "needs notification" fact"""
    id: UUID
    topic: str
    payload: dict
    attempts: int = 0


class NotificationOutbox(ABC):
    """Durable queue of conflict notifications written with the block"""

    BLOCK_CREATED = 'availability.block_created'

    @abstractmethod
    def enqueue_block_conflicts(self, block: AvailabilityBlock):
        """Record that ``block`` needs a pending-booking conflict check"""
        pass

    @abstractmethod
    def pending_ids(self, limit: int) -> List[UUID]:
        pass

    @abstractmethod
    def claim(self, entry_id: UUID) -> Optional[OutboxEntry]:
        """Lock a pending entry for processing; None if already taken"""
        pass

    @abstractmethod
    def mark_delivered(self, entry_id: UUID):
        pass

    @abstractmethod
    def record_failure(self, entry_id: UUID, error: str, max_attempts: int) -> bool:
        """Count a failed attempt; True once the entry is given up as failed"""
        pass


class ListingLocker(ABC):
    """Serializes writers per listing for the life of the current transaction"""

    @abstractmethod
    def acquire(self, listing_id: str):
        pass
