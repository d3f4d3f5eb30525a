"""
Common Value Objects

Value objects used across multiple domains:
- DateRange: an inclusive range of calendar days (first day to last day)

All date values entering the domain are calendar dates. Datetimes are
converted to UTC and truncated to their date by ``to_calendar_date`` so
that blocks, bookings and recurring occurrences are compared on the same
day boundaries.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterator

from shared.domain.base import ValueObject

ONE_DAY = timedelta(days=1)


def to_calendar_date(value: date | datetime | str) -> date:
    """
    Normalize a date-like value to a calendar date

    - date: returned as is
    - naive datetime: treated as UTC
    - aware datetime: converted to UTC, then truncated
    - str: ISO 8601 date or datetime
    """
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            value = datetime.fromisoformat(value.replace('Z', '+00:00'))

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()

    if isinstance(value, date):
        return value

    raise TypeError(f"Cannot convert {type(value).__name__} to a calendar date")


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Represents a range from start_date to end_date, both inclusive.
    A single-day range has start_date == end_date.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date > self.end_date:
            raise ValueError(
                f"Start date ({self.start_date}) must not be after end date ({self.end_date})"
            )

    @classmethod
    def single_day(cls, day: date) -> 'DateRange':
        return cls(day, day)

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Check if this range overlaps with another

        Both ends are inclusive: two ranges overlap unless one ends
        before the other starts.

        Examples:
            - DateRange(10, 15) overlaps with DateRange(15, 20) -> True
            - DateRange(10, 15) overlaps with DateRange(16, 20) -> False
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")

        return not (self.end_date < other.start_date or self.start_date > other.end_date)

    def intersection(self, other: 'DateRange') -> 'DateRange | None':
        """Return the overlapping part of two ranges, or None"""
        if not self.overlaps_with(other):
            return None
        return DateRange(
            max(self.start_date, other.start_date),
            min(self.end_date, other.end_date),
        )

    def contains(self, check_date: date) -> bool:
        """Check if a date is within this range (inclusive)"""
        return self.start_date <= check_date <= self.end_date

    def days(self) -> Iterator[date]:
        """Iterate over every calendar day in the range"""
        current = self.start_date
        while current <= self.end_date:
            yield current
            current += ONE_DAY

    def __len__(self) -> int:
        """Number of calendar days covered by the range"""
        return (self.end_date - self.start_date).days + 1

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
