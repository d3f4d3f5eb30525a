"""
Recurring Block Expansion

Expands a weekly RecurringBlock into concrete one-day occurrences within
a query window. Occurrences are derived on demand and never stored.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING, Iterator

from shared.domain.value_objects import to_calendar_date

if TYPE_CHECKING:  # pragma: no cover
    from apps.availability.domain.entities import AvailabilityBlock, RecurringBlock


def weekday_index(day: date) -> int:
    """Weekday with Sunday as 0 and Saturday as 6"""
    return (day.weekday() + 1) % 7


def next_matching_day(day: date, days_of_week: frozenset[int]) -> date:
    """First date on or after ``day`` whose weekday is in ``days_of_week``"""
    current = weekday_index(day)
    offset = min((target - current) % 7 for target in days_of_week)
    return day + timedelta(days=offset)


class RecurringInstances:
    """
    Lazy, restartable sequence of occurrences for one pattern

    Each iteration starts over from the beginning of the window, so the
    same object can be walked more than once (e.g. to count, then render).
    Iteration jumps from one matching weekday to the next instead of
    visiting every day in the window.
    """

    def __init__(self, pattern: 'RecurringBlock', range_start: date, range_end: date):
        self.pattern = pattern
        self.window = pattern.bounded_window(range_start, range_end)

    def dates(self) -> Iterator[date]:
        if self.window is None:
            return
        days = self.pattern.days_of_week
        current = next_matching_day(self.window.start_date, days)
        while current <= self.window.end_date:
            yield current
            current = next_matching_day(current + timedelta(days=1), days)

    def __iter__(self) -> Iterator['AvailabilityBlock']:
        from apps.availability.domain.entities import AvailabilityBlock

        for day in self.dates():
            yield AvailabilityBlock.occurrence(self.pattern, day)

    def first(self) -> date | None:
        return next(iter(self.dates()), None)

    def last(self) -> date | None:
        """Last occurrence, found by walking back from the window end"""
        if self.window is None:
            return None
        days = self.pattern.days_of_week
        current = self.window.end_date
        offset = min((weekday_index(current) - target) % 7 for target in days)
        current -= timedelta(days=offset)
        return current if current >= self.window.start_date else None

    def __bool__(self) -> bool:
        return self.first() is not None

    def __repr__(self):
        return f"RecurringInstances({self.pattern.id}, {self.window!r})"


def generate_recurring_instances(
    pattern: 'RecurringBlock',
    range_start: date,
    range_end: date,
) -> RecurringInstances:
    """
    Occurrences of ``pattern`` between ``range_start`` and ``range_end``

    Both bounds are inclusive and are normalized to calendar dates. An
    inverted range, or one outside the pattern's bounds, yields nothing.
    """
    start = to_calendar_date(range_start)
    end = to_calendar_date(range_end)
    return RecurringInstances(pattern, start, end)
