"""
Availability Queries

Read side of the availability engine: block listings, availability
checks, the per-day calendar, utilization analytics and iCalendar export.
Every windowed query is capped at ``max_query_days``.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional
import logging

from shared.domain.value_objects import DateRange

from apps.availability.domain.conflicts import ConflictDetector
from apps.availability.domain.entities import (
    CALENDAR_BOOKING_STATUSES,
    RECURRING_SUMMARY,
    AvailabilityBlock,
    BookingSnapshot,
    Conflict,
    ListingType,
    RecurringBlock,
    build_date_range,
)
from apps.availability.domain.exceptions import InvalidDateRange

logger = logging.getLogger(__name__)

ICAL_DOMAIN = 'vider-marketplace'
ICAL_PRODID = '-//Vider//Availability//EN'


# ===== Read models =====

@dataclass
class AvailabilityCheck:
    available: bool
    conflicts: List[Conflict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'available': self.available,
            'conflicts': [conflict.to_dict() for conflict in self.conflicts],
        }


@dataclass
class CalendarDay:
    """One day of a listing's calendar: available, blocked or booked"""
    AVAILABLE = 'available'
    BLOCKED = 'blocked'
    BOOKED = 'booked'

    date: date
    status: str
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {'date': self.date.isoformat(), 'status': self.status, **self.details}


@dataclass
class AvailabilityAnalytics:
    total_days: int
    total_blocks: int
    blocked_days: int
    booked_days: int
    available_days: int
    blocked_percentage: float
    utilization_rate: float

    def to_dict(self) -> dict:
        return dict(self.__dict__)


def _percentage(part: int, whole: int) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, 2)


def _days_within(dates: DateRange, window: DateRange) -> Iterable[date]:
    overlap = dates.intersection(window)
    return overlap.days() if overlap else ()


class AvailabilityQueries:
    """Queries over one listing's blocks, patterns and bookings"""

    def __init__(
        self,
        block_repo,
        pattern_repo,
        booking_reader,
        detector: ConflictDetector,
        max_query_days: int = 731,
    ):
        self.block_repo = block_repo
        self.pattern_repo = pattern_repo
        self.booking_reader = booking_reader
        self.detector = detector
        self.max_query_days = max_query_days

    def window(self, start_date, end_date) -> DateRange:
        """Validate a query window and enforce the size cap"""
        window = build_date_range(start_date, end_date)
        if len(window) > self.max_query_days:
            raise InvalidDateRange(
                window.start_date,
                window.end_date,
                f"Date range must not exceed {self.max_query_days} days",
            )
        return window

    # ----- Blocks and patterns -----

    def get_blocks(
        self,
        listing_id: str,
        listing_type: Optional[str] = None,
        start_date=None,
        end_date=None,
    ) -> List[AvailabilityBlock]:
        """One-off blocks of a listing, filtered by overlap when both bounds are given"""
        if start_date is not None and end_date is not None:
            dates = build_date_range(start_date, end_date)
            blocks = self.block_repo.list_for_listing(str(listing_id), dates.start_date, dates.end_date)
        else:
            blocks = self.block_repo.list_for_listing(str(listing_id))

        if listing_type:
            kind = ListingType(listing_type)
            blocks = [block for block in blocks if block.listing_type == kind]
        return sorted(blocks, key=lambda block: (block.start_date, block.end_date))

    def get_recurring_blocks(self, listing_id: str, listing_type: Optional[str] = None) -> List[RecurringBlock]:
        patterns = self.pattern_repo.list_for_listing(str(listing_id))
        if listing_type:
            kind = ListingType(listing_type)
            patterns = [pattern for pattern in patterns if pattern.listing_type == kind]
        return sorted(patterns, key=lambda pattern: pattern.start_date)

    def _occurrences(self, listing_id, listing_type, window: DateRange) -> List[AvailabilityBlock]:
        patterns = self.pattern_repo.list_for_listing(listing_id, window.start_date, window.end_date)
        if listing_type:
            kind = ListingType(listing_type)
            patterns = [pattern for pattern in patterns if pattern.listing_type == kind]

        occurrences = []
        for pattern in patterns:
            occurrences.extend(pattern.instances(window.start_date, window.end_date))
        return occurrences

    def _bookings(self, listing_id, window: DateRange) -> List[BookingSnapshot]:
        return self.booking_reader.overlapping(
            listing_id, window.start_date, window.end_date, CALENDAR_BOOKING_STATUSES
        )

    # ----- Availability -----

    def check_availability(self, listing_id: str, start_date, end_date) -> AvailabilityCheck:
        conflicts = self.detector.check_overlap(str(listing_id), start_date, end_date)
        return AvailabilityCheck(available=not conflicts, conflicts=conflicts)

    def get_calendar(self, listing_id: str, listing_type: Optional[str], start_date, end_date) -> List[CalendarDay]:
        """
        Day-by-day status of a listing

        Precedence per day: booked, then a one-off block, then a recurring
        occurrence, else available.
        """
        listing_id = str(listing_id)
        window = self.window(start_date, end_date)

        booked: Dict[date, BookingSnapshot] = {}
        for booking in self._bookings(listing_id, window):
            for day in _days_within(booking.dates, window):
                booked.setdefault(day, booking)

        blocked: Dict[date, AvailabilityBlock] = {}
        for block in self.get_blocks(listing_id, listing_type, window.start_date, window.end_date):
            for day in _days_within(block.dates, window):
                blocked.setdefault(day, block)

        recurring: Dict[date, AvailabilityBlock] = {}
        for occurrence in self._occurrences(listing_id, listing_type, window):
            recurring.setdefault(occurrence.start_date, occurrence)

        days = []
        for day in window.days():
            if day in booked:
                booking = booked[day]
                days.append(CalendarDay(day, CalendarDay.BOOKED, {
                    'booking_id': str(booking.id),
                    'booking_number': booking.booking_number,
                    'booking_status': booking.status,
                }))
            elif day in blocked:
                block = blocked[day]
                days.append(CalendarDay(day, CalendarDay.BLOCKED, {
                    'block_id': str(block.id),
                    'reason': block.reason,
                }))
            elif day in recurring:
                occurrence = recurring[day]
                days.append(CalendarDay(day, CalendarDay.BLOCKED, {
                    'block_id': str(occurrence.id),
                    'recurring_block_id': str(occurrence.recurring_block_id),
                    'reason': occurrence.reason,
                    'is_recurring': True,
                }))
            else:
                days.append(CalendarDay(day, CalendarDay.AVAILABLE))
        return days

    def get_analytics(self, listing_id: str, listing_type: Optional[str], start_date, end_date) -> AvailabilityAnalytics:
        listing_id = str(listing_id)
        window = self.window(start_date, end_date)

        blocks = self.get_blocks(listing_id, listing_type, window.start_date, window.end_date)
        occurrences = self._occurrences(listing_id, listing_type, window)

        blocked_days = set()
        for block in [*blocks, *occurrences]:
            blocked_days.update(_days_within(block.dates, window))

        booked_days = set()
        for booking in self._bookings(listing_id, window):
            booked_days.update(_days_within(booking.dates, window))

        total_days = len(window)
        available_days = total_days - len(blocked_days)

        return AvailabilityAnalytics(
            total_days=total_days,
            total_blocks=len(blocks) + len(occurrences),
            blocked_days=len(blocked_days),
            booked_days=len(booked_days),
            available_days=available_days,
            blocked_percentage=_percentage(len(blocked_days), total_days),
            utilization_rate=_percentage(len(booked_days), available_days),
        )

    # ----- iCalendar export -----

    def export_calendar(self, listing_id: str, listing_type: Optional[str], start_date, end_date) -> str:
        """RFC 5545 calendar with one all-day event per block, occurrence and booking"""
        listing_id = str(listing_id)
        window = self.window(start_date, end_date)
        stamp = datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')

        lines = [
            'BEGIN:VCALENDAR',
            'VERSION:2.0',
            f'PRODID:{ICAL_PRODID}',
            'CALSCALE:GREGORIAN',
            'METHOD:PUBLISH',
        ]

        for block in self.get_blocks(listing_id, listing_type, window.start_date, window.end_date):
            summary = f"Unavailable: {block.reason}" if block.reason else 'Unavailable'
            lines.extend(_vevent(f'block-{block.id}', block.dates, summary, stamp))

        for occurrence in self._occurrences(listing_id, listing_type, window):
            lines.extend(_vevent(
                f'recurring-{occurrence.id}',
                occurrence.dates,
                RECURRING_SUMMARY,
                stamp,
                description=occurrence.reason,
            ))

        for booking in self._bookings(listing_id, window):
            lines.extend(_vevent(
                f'booking-{booking.id}',
                booking.dates,
                f"Booking {booking.booking_number}",
                stamp,
                description=f"Status: {booking.status}",
            ))

        lines.append('END:VCALENDAR')
        return ''.join(_fold(line) + '\r\n' for line in lines)


def _escape(text: str) -> str:
    return (
        text.replace('\\', '\\\\')
        .replace(';', '\\;')
        .replace(',', '\\,')
        .replace('\r\n', '\\n')
        .replace('\n', '\\n')
    )


def _fold(line: str, limit: int = 75) -> str:
    """Fold content lines longer than ``limit`` octets"""
    encoded = line.encode('utf-8')
    if len(encoded) <= limit:
        return line

    parts = []
    current = ''
    size = 0
    budget = limit
    for char in line:
        width = len(char.encode('utf-8'))
        if size + width > budget:
            parts.append(current)
            current, size = '', 0
            budget = limit - 1
        current += char
        size += width
    parts.append(current)
    return '\r\n '.join(parts)


def _vevent(uid: str, dates: DateRange, summary: str, stamp: str, description: str = '') -> List[str]:
    # DTEND of an all-day event is exclusive
    end = date.fromordinal(dates.end_date.toordinal() + 1)
    lines = [
        'BEGIN:VEVENT',
        f'UID:{uid}@{ICAL_DOMAIN}',
        f'DTSTAMP:{stamp}',
        f'DTSTART;VALUE=DATE:{dates.start_date:%Y%m%d}',
        f'DTEND;VALUE=DATE:{end:%Y%m%d}',
        f'SUMMARY:{_escape(summary)}',
    ]
    if description:
        lines.append(f'DESCRIPTION:{_escape(description)}')
    lines.append('TRANSP:OPAQUE')
    lines.append('END:VEVENT')
    return lines
