"""
Conflict Detector

Finds every commitment on a listing that overlaps a proposed date range.
Pure query over injected repositories: no writes, safe to call repeatedly.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional
from uuid import UUID

from shared.domain.value_objects import DateRange

from apps.availability.domain.entities import (
    COMMITTED_BOOKING_STATUSES,
    Conflict,
    build_date_range,
)
from apps.availability.domain.repositories import (
    AvailabilityBlockRepository,
    BookingReader,
    RecurringBlockRepository,
)

logger = logging.getLogger(__name__)


class ConflictDetector:
    """
    Overlap checks against bookings, one-off blocks and recurring patterns

    Overlap is inclusive on both ends. A recurring pattern contributes at
    most one conflict, spanning its first and last occurrence inside the
    queried range.
    """

    def __init__(
        self,
        block_repo: AvailabilityBlockRepository,
        pattern_repo: RecurringBlockRepository,
        booking_reader: BookingReader,
    ):
        self.block_repo = block_repo
        self.pattern_repo = pattern_repo
        self.booking_reader = booking_reader

    def check_overlap(
        self,
        listing_id: str,
        start_date,
        end_date,
        exclude_block_id: Optional[UUID] = None,
        *,
        include_bookings: bool = True,
        include_blocks: bool = True,
        exclude_booking_id: Optional[UUID] = None,
    ) -> List[Conflict]:
        dates = build_date_range(start_date, end_date)
        listing_id = str(listing_id)

        conflicts: List[Conflict] = []
        if include_bookings:
            conflicts.extend(self._booking_conflicts(listing_id, dates, exclude_booking_id))
        if include_blocks:
            conflicts.extend(self._block_conflicts(listing_id, dates, exclude_block_id))
            conflicts.extend(self._pattern_conflicts(listing_id, dates, exclude_block_id))

        if conflicts:
            logger.debug(
                f"Found {len(conflicts)} conflicts for listing {listing_id} in {dates}"
            )
        return conflicts

    def _booking_conflicts(self, listing_id, dates: DateRange, exclude_booking_id) -> Iterable[Conflict]:
        bookings = self.booking_reader.overlapping(
            listing_id, dates.start_date, dates.end_date, COMMITTED_BOOKING_STATUSES
        )
        for booking in bookings:
            if booking.id == exclude_booking_id:
                continue
            if booking.dates.overlaps_with(dates):
                yield Conflict.from_booking(booking)

    def _block_conflicts(self, listing_id, dates: DateRange, exclude_block_id) -> Iterable[Conflict]:
        blocks = self.block_repo.list_for_listing(listing_id, dates.start_date, dates.end_date)
        for block in blocks:
            if block.id == exclude_block_id:
                continue
            if block.dates.overlaps_with(dates):
                yield Conflict.from_block(block)

    def _pattern_conflicts(self, listing_id, dates: DateRange, exclude_block_id) -> Iterable[Conflict]:
        patterns = self.pattern_repo.list_for_listing(listing_id, dates.start_date, dates.end_date)
        for pattern in patterns:
            if pattern.id == exclude_block_id:
                continue
            occurrences = pattern.instances(dates.start_date, dates.end_date)
            first = occurrences.first()
            if first is None:
                continue
            yield Conflict.from_pattern(pattern, first, occurrences.last())


# ===== Human-readable summaries =====

def format_date_span(start: date, end: date) -> str:
    """
    Short span label

    Examples:
        Jan 10 / Jan 10-15 / Jan 30-Feb 2 / Dec 30, 2023-Jan 2, 2024
    """
    if start == end:
        return f"{start:%b} {start.day}"
    if start.year != end.year:
        return f"{start:%b} {start.day}, {start.year}–{end:%b} {end.day}, {end.year}"
    if start.month != end.month:
        return f"{start:%b} {start.day}–{end:%b} {end.day}"
    return f"{start:%b} {start.day}–{end.day}"


def describe_conflict(conflict: Conflict) -> str:
    if conflict.is_booking:
        return f"Booking {conflict.booking_number}"
    reason = conflict.reason or 'unavailable'
    return f"Blocked: {reason} ({format_date_span(conflict.start_date, conflict.end_date)})"


def render_conflict_details(conflicts: Iterable[Conflict]) -> str:
    """e.g. ``Blocked: maintenance (Jan 10–15); Booking BK-1029``"""
    return '; '.join(describe_conflict(conflict) for conflict in conflicts)
