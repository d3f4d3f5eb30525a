"""
Availability Domain Entities

Core business entities for the availability domain:
- AvailabilityBlock: a concrete, date-bounded unavailability window
- RecurringBlock: a weekly pattern of unavailability
- Conflict: an overlap between a proposed range and an existing commitment
- BookingSnapshot: read-only view of a booking owned by the booking flow
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, Iterable, Mapping
from uuid import UUID, uuid5

from shared.domain.base import Aggregate, ValueObject
from shared.domain.value_objects import ONE_DAY, DateRange, to_calendar_date

from apps.availability.domain.exceptions import (
    InvalidDateRange,
    InvalidRecurrencePattern,
    InvalidScope,
)


class ListingType(str, Enum):
    """Kind of listing a block applies to"""
    VEHICLE = 'vehicle'
    DRIVER = 'driver'


class Scope(str, Enum):
    """How far a recurring pattern mutation reaches"""
    ALL = 'all'
    FUTURE = 'future'

    @classmethod
    def parse(cls, value: Any) -> 'Scope':
        try:
            return cls(value)
        except ValueError:
            raise InvalidScope(value) from None


# Booking statuses as stored by the booking flow
PENDING_BOOKING_STATUS = 'PENDING'
COMMITTED_BOOKING_STATUSES = ('ACCEPTED', 'ACTIVE')
CALENDAR_BOOKING_STATUSES = ('ACCEPTED', 'ACTIVE', 'COMPLETED')

RECURRING_SUMMARY = 'Unavailable (Recurring)'


def build_date_range(start_date: date | datetime | str, end_date: date | datetime | str) -> DateRange:
    """Normalize both ends to calendar dates; INVALID_DATE_RANGE if inverted"""
    start = to_calendar_date(start_date)
    end = to_calendar_date(end_date)
    if start > end:
        raise InvalidDateRange(start, end)
    return DateRange(start, end)


def normalize_days_of_week(values: Iterable[Any] | None) -> frozenset[int]:
    """Validate a weekday set (0 = Sunday ... 6 = Saturday)"""
    raw = list(values or [])
    days = set()
    for value in raw:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 6:
            raise InvalidRecurrencePattern(raw)
        days.add(value)
    if not days:
        raise InvalidRecurrencePattern(raw)
    return frozenset(days)


@dataclass(frozen=True)
class BookingSnapshot(ValueObject):
    """Booking as seen by the availability engine (read-only)"""
    id: UUID
    booking_number: str
    listing_id: str
    dates: DateRange
    status: str
    renter_id: str = ''


@dataclass(frozen=True)
class Conflict(ValueObject):
    """
    Overlap between a proposed date range and an existing commitment

    ``type`` is 'booking' or 'block'. A recurring pattern is reported as a
    single block conflict spanning its first and last overlapping
    occurrence, with ``recurring_block_id`` set.
    """
    BOOKING: ClassVar[str] = 'booking'
    BLOCK: ClassVar[str] = 'block'

    type: str
    id: UUID
    start_date: date
    end_date: date
    booking_number: str | None = None
    reason: str | None = None
    recurring_block_id: UUID | None = None

    @classmethod
    def from_booking(cls, booking: BookingSnapshot) -> 'Conflict':
        return cls(
            type=cls.BOOKING,
            id=booking.id,
            start_date=booking.dates.start_date,
            end_date=booking.dates.end_date,
            booking_number=booking.booking_number,
        )

    @classmethod
    def from_block(cls, block: 'AvailabilityBlock') -> 'Conflict':
        return cls(
            type=cls.BLOCK,
            id=block.id,
            start_date=block.start_date,
            end_date=block.end_date,
            reason=block.reason or None,
        )

    @classmethod
    def from_pattern(cls, pattern: 'RecurringBlock', first: date, last: date) -> 'Conflict':
        return cls(
            type=cls.BLOCK,
            id=pattern.id,
            start_date=first,
            end_date=last,
            reason=pattern.reason or None,
            recurring_block_id=pattern.id,
        )

    @property
    def is_booking(self) -> bool:
        return self.type == self.BOOKING

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            'type': self.type,
            'id': str(self.id),
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
        }
        if self.booking_number:
            data['booking_number'] = self.booking_number
        if self.reason:
            data['reason'] = self.reason
        if self.recurring_block_id:
            data['recurring_block_id'] = str(self.recurring_block_id)
        return data


@dataclass(kw_only=True, eq=False)
class AvailabilityBlock(Aggregate):
    """
    Availability Block Aggregate Root

    A concrete, inclusive date range during which a listing cannot be
    booked. Occurrences derived from a RecurringBlock use the same shape
    with ``is_recurring`` set; they are never persisted.

    Key invariants:
    - start_date <= end_date
    - never overlaps an ACCEPTED/ACTIVE booking of the listing at creation
      (enforced by the creation handler under the listing lock)
    """

    listing_id: str
    listing_type: ListingType
    dates: DateRange
    created_by: str
    reason: str = ''
    is_recurring: bool = False
    recurring_block_id: UUID | None = None

    @classmethod
    def create(
        cls,
        *,
        listing_id: str,
        listing_type: ListingType | str,
        start_date: date,
        end_date: date,
        created_by: str,
        reason: str = '',
    ) -> 'AvailabilityBlock':
        """Build a new one-off block and record BlockCreated"""
        from apps.availability.domain.events import BlockCreated

        block = cls(
            listing_id=str(listing_id),
            listing_type=ListingType(listing_type),
            dates=build_date_range(start_date, end_date),
            created_by=str(created_by),
            reason=reason or '',
        )
        block.add_event(BlockCreated(
            aggregate_id=block.id,
            block_id=block.id,
            listing_id=block.listing_id,
            listing_type=block.listing_type.value,
            dates=block.dates,
            created_by=block.created_by,
        ))
        return block

    @classmethod
    def occurrence(cls, pattern: 'RecurringBlock', day: date) -> 'AvailabilityBlock':
        """
        One-day block derived from a pattern

        The id is derived from (pattern id, day) so repeated generation
        yields identical occurrences.
        """
        return cls(
            id=uuid5(pattern.id, day.isoformat()),
            created_at=pattern.created_at,
            updated_at=pattern.updated_at,
            listing_id=pattern.listing_id,
            listing_type=pattern.listing_type,
            dates=DateRange.single_day(day),
            created_by=pattern.created_by,
            reason=pattern.reason,
            is_recurring=True,
            recurring_block_id=pattern.id,
        )

    @property
    def start_date(self) -> date:
        return self.dates.start_date

    @property
    def end_date(self) -> date:
        return self.dates.end_date

    def mark_deleted(self):
        from apps.availability.domain.events import BlockDeleted

        self.add_event(BlockDeleted(
            aggregate_id=self.id,
            block_id=self.id,
            listing_id=self.listing_id,
        ))

    def __str__(self):
        return f"Block {self.id} on {self.listing_type.value} {self.listing_id} ({self.dates})"


@dataclass(kw_only=True, eq=False)
class RecurringBlock(Aggregate):
    """
    Recurring Block Aggregate Root

    A weekly pattern: every date within [start_date, end_date] whose
    weekday index (0 = Sunday) is in ``days_of_week``. ``end_date`` of
    None means open-ended.

    State transitions:
    - ACTIVE -> CLOSED: split or truncated at a boundary date; end_date is
      set to the day before the boundary and the historical occurrences
      remain generatable
    - deleted entirely under scope 'all'
    """

    EDITABLE_FIELDS: ClassVar[tuple[str, ...]] = ('days_of_week', 'start_date', 'end_date', 'reason')

    listing_id: str
    listing_type: ListingType
    days_of_week: frozenset[int]
    start_date: date
    end_date: date | None = None
    created_by: str
    reason: str = ''
    split_from_id: UUID | None = None

    def __post_init__(self):
        self.days_of_week = normalize_days_of_week(self.days_of_week)
        self.listing_type = ListingType(self.listing_type)
        self._validate_bounds(self.start_date, self.end_date)

    @staticmethod
    def _validate_bounds(start_date: date, end_date: date | None):
        if end_date is not None and start_date > end_date:
            raise InvalidDateRange(start_date, end_date)

    @classmethod
    def create(
        cls,
        *,
        listing_id: str,
        listing_type: ListingType | str,
        days_of_week: Iterable[int],
        start_date: date,
        end_date: date | None = None,
        created_by: str,
        reason: str = '',
        split_from_id: UUID | None = None,
    ) -> 'RecurringBlock':
        from apps.availability.domain.events import RecurringBlockCreated

        pattern = cls(
            listing_id=str(listing_id),
            listing_type=ListingType(listing_type),
            days_of_week=normalize_days_of_week(days_of_week),
            start_date=to_calendar_date(start_date),
            end_date=to_calendar_date(end_date) if end_date is not None else None,
            created_by=str(created_by),
            reason=reason or '',
            split_from_id=split_from_id,
        )
        pattern.add_event(RecurringBlockCreated(
            aggregate_id=pattern.id,
            recurring_block_id=pattern.id,
            listing_id=pattern.listing_id,
            days_of_week=sorted(pattern.days_of_week),
        ))
        return pattern

    @property
    def is_open_ended(self) -> bool:
        return self.end_date is None

    def covers(self, day: date) -> bool:
        """Whether ``day`` falls inside the pattern's bounds"""
        if day < self.start_date:
            return False
        return self.end_date is None or day <= self.end_date

    def occurs_on(self, day: date) -> bool:
        from apps.availability.domain.recurrence import weekday_index

        return self.covers(day) and weekday_index(day) in self.days_of_week

    def bounded_window(self, range_start: date, range_end: date) -> DateRange | None:
        """Intersection of the query window with the pattern's bounds"""
        start = max(range_start, self.start_date)
        end = range_end if self.end_date is None else min(range_end, self.end_date)
        if start > end:
            return None
        return DateRange(start, end)

    def instances(self, range_start: date, range_end: date):
        """Lazy occurrences within the query window"""
        from apps.availability.domain.recurrence import generate_recurring_instances

        return generate_recurring_instances(self, range_start, range_end)

    def _clean_changes(self, changes: Mapping[str, Any]) -> dict[str, Any]:
        unknown = set(changes) - set(self.EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot change fields: {', '.join(sorted(unknown))}")

        cleaned = dict(changes)
        if 'days_of_week' in cleaned:
            cleaned['days_of_week'] = normalize_days_of_week(cleaned['days_of_week'])
        if 'start_date' in cleaned:
            if cleaned['start_date'] is None:
                raise InvalidDateRange(None, cleaned.get('end_date'), "Start date is required")
            cleaned['start_date'] = to_calendar_date(cleaned['start_date'])
        if cleaned.get('end_date') is not None:
            cleaned['end_date'] = to_calendar_date(cleaned['end_date'])
        if 'reason' in cleaned:
            cleaned['reason'] = cleaned['reason'] or ''
        return cleaned

    def apply_changes(self, changes: Mapping[str, Any]):
        """Mutate the pattern in place (scope 'all')"""
        from apps.availability.domain.events import RecurringBlockUpdated

        cleaned = self._clean_changes(changes)
        self._validate_bounds(
            cleaned.get('start_date', self.start_date),
            cleaned.get('end_date', self.end_date),
        )
        for name, value in cleaned.items():
            setattr(self, name, value)
        self.touch()

        self.add_event(RecurringBlockUpdated(
            aggregate_id=self.id,
            recurring_block_id=self.id,
            listing_id=self.listing_id,
            changed_fields=sorted(cleaned),
        ))

    def _close_before(self, boundary: date):
        if boundary <= self.start_date:
            raise InvalidDateRange(
                self.start_date,
                boundary - ONE_DAY,
                "Boundary must fall after the pattern's start date",
            )
        last_day = boundary - ONE_DAY
        if self.end_date is None or self.end_date > last_day:
            self.end_date = last_day
        self.touch()

    def split_at(self, boundary: date, changes: Mapping[str, Any]) -> 'RecurringBlock':
        """
        Split the pattern at ``boundary`` (scope 'future')

        This pattern is closed the day before ``boundary``. A new pattern
        starting on ``boundary`` takes ``changes`` merged over this
        pattern's fields. The original end date carries over unless
        ``changes`` replaces it. Returns the new pattern.
        """
        from apps.availability.domain.events import RecurringBlockSplit

        cleaned = self._clean_changes({k: v for k, v in changes.items() if k != 'start_date'})
        original_end = self.end_date

        merged = {
            'days_of_week': self.days_of_week,
            'end_date': original_end,
            'reason': self.reason,
            **cleaned,
        }
        # Validate the new segment before touching this one
        self._validate_bounds(boundary, merged['end_date'])

        self._close_before(boundary)
        successor = RecurringBlock.create(
            listing_id=self.listing_id,
            listing_type=self.listing_type,
            days_of_week=merged['days_of_week'],
            start_date=boundary,
            end_date=merged['end_date'],
            created_by=self.created_by,
            reason=merged['reason'],
            split_from_id=self.id,
        )

        self.add_event(RecurringBlockSplit(
            aggregate_id=self.id,
            original_id=self.id,
            new_id=successor.id,
            listing_id=self.listing_id,
            boundary=boundary,
        ))
        return successor

    def truncate_from(self, boundary: date):
        """Stop generating occurrences on or after ``boundary`` (scope 'future')"""
        from apps.availability.domain.events import RecurringBlockTruncated

        self._close_before(boundary)
        self.add_event(RecurringBlockTruncated(
            aggregate_id=self.id,
            recurring_block_id=self.id,
            listing_id=self.listing_id,
            boundary=boundary,
        ))

    def mark_deleted(self):
        from apps.availability.domain.events import RecurringBlockDeleted

        self.add_event(RecurringBlockDeleted(
            aggregate_id=self.id,
            recurring_block_id=self.id,
            listing_id=self.listing_id,
        ))

    def __str__(self):
        days = ','.join(str(day) for day in sorted(self.days_of_week))
        end = self.end_date.isoformat() if self.end_date else 'open'
        return f"RecurringBlock {self.id} [{days}] {self.start_date.isoformat()} - {end}"
