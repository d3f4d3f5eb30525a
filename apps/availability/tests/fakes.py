"""In-memory stand-ins for the availability repositories."""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from shared.application.uow import AbstractUnitOfWork
from shared.domain.value_objects import DateRange

from apps.availability.domain.entities import AvailabilityBlock, BookingSnapshot, RecurringBlock
from apps.availability.domain.repositories import (
    AvailabilityBlockRepository,
    BookingReader,
    ListingLocker,
    NotificationOutbox,
    OutboxEntry,
    RecurringBlockRepository,
)


def _overlaps(start: date, end: Optional[date], range_start: Optional[date], range_end: Optional[date]) -> bool:
    if range_end is not None and start > range_end:
        return False
    if range_start is not None and end is not None and end < range_start:
        return False
    return True


class InMemoryBlockRepository(AvailabilityBlockRepository):
    def __init__(self):
        self.blocks: Dict[UUID, AvailabilityBlock] = {}

    def add(self, block):
        self.blocks[block.id] = block

    def get(self, block_id):
        return self.blocks.get(block_id)

    def delete(self, block_id):
        self.blocks.pop(block_id, None)

    def list_for_listing(self, listing_id, start_date=None, end_date=None):
        return [
            block for block in self.blocks.values()
            if block.listing_id == listing_id
            and _overlaps(block.start_date, block.end_date, start_date, end_date)
        ]


class InMemoryPatternRepository(RecurringBlockRepository):
    def __init__(self):
        self.patterns: Dict[UUID, RecurringBlock] = {}

    def add(self, pattern):
        self.patterns[pattern.id] = pattern

    def save(self, pattern):
        self.patterns[pattern.id] = pattern

    def get(self, pattern_id):
        return self.patterns.get(pattern_id)

    def delete(self, pattern_id):
        self.patterns.pop(pattern_id, None)

    def list_for_listing(self, listing_id, start_date=None, end_date=None):
        return [
            pattern for pattern in self.patterns.values()
            if pattern.listing_id == listing_id
            and _overlaps(pattern.start_date, pattern.end_date, start_date, end_date)
        ]


class InMemoryBookingReader(BookingReader):
    def __init__(self):
        self.bookings: List[BookingSnapshot] = []

    def add(self, listing_id, start_date, end_date, status='ACCEPTED', booking_number=None, renter_id='renter-1'):
        booking = BookingSnapshot(
            id=uuid4(),
            booking_number=booking_number or f"BK-{len(self.bookings) + 1:04d}",
            listing_id=listing_id,
            dates=DateRange(start_date, end_date),
            status=status,
            renter_id=renter_id,
        )
        self.bookings.append(booking)
        return booking

    def overlapping(self, listing_id, start_date, end_date, statuses):
        return [
            booking for booking in self.bookings
            if booking.listing_id == listing_id
            and booking.status in statuses
            and booking.dates.overlaps_with(DateRange(start_date, end_date))
        ]


class InMemoryOutbox(NotificationOutbox):
    def __init__(self):
        self.entries: Dict[UUID, dict] = {}

    def enqueue_block_conflicts(self, block):
        entry_id = uuid4()
        self.entries[entry_id] = {
            'topic': self.BLOCK_CREATED,
            'payload': {'block_id': str(block.id), 'listing_id': block.listing_id},
            'status': 'pending',
            'attempts': 0,
            'last_error': '',
        }
        return entry_id

    def pending_ids(self, limit):
        return [entry_id for entry_id, row in self.entries.items() if row['status'] == 'pending'][:limit]

    def claim(self, entry_id):
        row = self.entries.get(entry_id)
        if row is None or row['status'] != 'pending':
            return None
        return OutboxEntry(id=entry_id, topic=row['topic'], payload=row['payload'], attempts=row['attempts'])

    def mark_delivered(self, entry_id):
        self.entries[entry_id]['status'] = 'delivered'

    def record_failure(self, entry_id, error, max_attempts):
        row = self.entries[entry_id]
        row['attempts'] += 1
        row['last_error'] = error
        if row['attempts'] >= max_attempts:
            row['status'] = 'failed'
            return True
        return False

    def statuses(self):
        return [row['status'] for row in self.entries.values()]


class RecordingLocker(ListingLocker):
    def __init__(self):
        self.acquired: List[str] = []

    def acquire(self, listing_id):
        self.acquired.append(str(listing_id))


class FakeUnitOfWork(AbstractUnitOfWork):
    """Collects events; ``committed`` holds the events of every committed unit."""

    committed: List = []

    def __init__(self):
        self._events = []
        self.rolled_back = False

    def commit(self):
        FakeUnitOfWork.committed.extend(self._events)
        self._events = []

    def rollback(self):
        self._events = []
        self.rolled_back = True

    def collect_events(self, aggregate):
        self._events.extend(aggregate.pull_events())


class RecordingNotificationService:
    def __init__(self, fail_for=()):
        self.sent: List[dict] = []
        self.fail_for = set(fail_for)

    def emit(self, user_id, type, message, metadata=None, *, title=''):
        if metadata and metadata.get('bookingNumber') in self.fail_for:
            raise ConnectionError("notification service unavailable")
        self.sent.append({
            'user_id': user_id,
            'type': type,
            'message': message,
            'metadata': metadata,
            'title': title,
        })


class Engine:
    """Handlers and queries wired to in-memory repositories."""

    def __init__(self):
        from apps.availability.application.command_handlers import (
            CreateBlockHandler,
            CreateBulkBlocksHandler,
            CreateRecurringBlockHandler,
            DeleteBlockHandler,
            DeleteRecurringBlockHandler,
            UpdateRecurringBlockHandler,
        )
        from apps.availability.application.queries import AvailabilityQueries
        from apps.availability.domain.conflicts import ConflictDetector

        FakeUnitOfWork.committed = []
        self.blocks = InMemoryBlockRepository()
        self.patterns = InMemoryPatternRepository()
        self.bookings = InMemoryBookingReader()
        self.outbox = InMemoryOutbox()
        self.locker = RecordingLocker()
        self.detector = ConflictDetector(self.blocks, self.patterns, self.bookings)

        self.create_block = CreateBlockHandler(
            self.blocks, self.detector, self.outbox, self.locker, uow_factory=FakeUnitOfWork
        )
        self.delete_block = DeleteBlockHandler(self.blocks, self.locker, uow_factory=FakeUnitOfWork)
        self.create_recurring = CreateRecurringBlockHandler(self.patterns, self.locker, uow_factory=FakeUnitOfWork)
        self.update_recurring = UpdateRecurringBlockHandler(self.patterns, self.locker, uow_factory=FakeUnitOfWork)
        self.delete_recurring = DeleteRecurringBlockHandler(self.patterns, self.locker, uow_factory=FakeUnitOfWork)
        self.create_bulk = CreateBulkBlocksHandler(self.create_block)
        self.queries = AvailabilityQueries(self.blocks, self.patterns, self.bookings, self.detector)

    @property
    def committed_events(self):
        return FakeUnitOfWork.committed
