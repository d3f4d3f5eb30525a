"""Tests for overlap detection and conflict summaries."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest

from apps.availability.domain.conflicts import format_date_span, render_conflict_details
from apps.availability.domain.entities import AvailabilityBlock, Conflict, RecurringBlock
from apps.availability.domain.exceptions import InvalidDateRange
from apps.availability.tests.fakes import Engine


@pytest.fixture
def engine():
    return Engine()


def add_block(engine, start, end, listing_id="car-1", reason="maintenance"):
    block = AvailabilityBlock.create(
        listing_id=listing_id,
        listing_type="vehicle",
        start_date=start,
        end_date=end,
        created_by="provider-1",
        reason=reason,
    )
    engine.blocks.add(block)
    return block


def add_pattern(engine, days, start, end=None, listing_id="car-1"):
    pattern = RecurringBlock.create(
        listing_id=listing_id,
        listing_type="vehicle",
        days_of_week=days,
        start_date=start,
        end_date=end,
        created_by="provider-1",
        reason="weekly service",
    )
    engine.patterns.add(pattern)
    return pattern


def test_overlap_is_inclusive_on_both_ends(engine):
    block = add_block(engine, date(2024, 1, 10), date(2024, 1, 15))

    touching_end = engine.detector.check_overlap("car-1", date(2024, 1, 15), date(2024, 1, 20))
    touching_start = engine.detector.check_overlap("car-1", date(2024, 1, 5), date(2024, 1, 10))
    after = engine.detector.check_overlap("car-1", date(2024, 1, 16), date(2024, 1, 20))

    assert [c.id for c in touching_end] == [block.id]
    assert [c.id for c in touching_start] == [block.id]
    assert after == []


def test_only_committed_bookings_conflict(engine):
    accepted = engine.bookings.add("car-1", date(2024, 1, 10), date(2024, 1, 12), status="ACCEPTED")
    active = engine.bookings.add("car-1", date(2024, 1, 11), date(2024, 1, 13), status="ACTIVE")
    engine.bookings.add("car-1", date(2024, 1, 10), date(2024, 1, 12), status="PENDING")
    engine.bookings.add("car-1", date(2024, 1, 10), date(2024, 1, 12), status="CANCELLED")
    engine.bookings.add("car-1", date(2024, 1, 10), date(2024, 1, 12), status="COMPLETED")

    conflicts = engine.detector.check_overlap("car-1", date(2024, 1, 1), date(2024, 1, 31))

    assert {c.id for c in conflicts} == {accepted.id, active.id}
    assert all(c.type == Conflict.BOOKING for c in conflicts)
    assert {c.booking_number for c in conflicts} == {accepted.booking_number, active.booking_number}


def test_other_listings_are_ignored(engine):
    add_block(engine, date(2024, 1, 10), date(2024, 1, 15), listing_id="car-2")
    engine.bookings.add("car-2", date(2024, 1, 10), date(2024, 1, 12))

    assert engine.detector.check_overlap("car-1", date(2024, 1, 1), date(2024, 1, 31)) == []


def test_exclude_block_id_skips_block_and_pattern(engine):
    block = add_block(engine, date(2024, 1, 10), date(2024, 1, 15))
    pattern = add_pattern(engine, [1], date(2024, 1, 1), date(2024, 1, 31))

    without_block = engine.detector.check_overlap("car-1", date(2024, 1, 1), date(2024, 1, 31), block.id)
    without_pattern = engine.detector.check_overlap("car-1", date(2024, 1, 1), date(2024, 1, 31), pattern.id)

    assert [c.id for c in without_block] == [pattern.id]
    assert [c.id for c in without_pattern] == [block.id]


def test_exclude_booking_id(engine):
    booking = engine.bookings.add("car-1", date(2024, 1, 10), date(2024, 1, 12))

    conflicts = engine.detector.check_overlap(
        "car-1", date(2024, 1, 10), date(2024, 1, 12), exclude_booking_id=booking.id
    )

    assert conflicts == []


def test_recurring_pattern_reports_one_conflict_spanning_its_occurrences(engine):
    pattern = add_pattern(engine, [1, 3, 5], date(2024, 1, 1), date(2024, 3, 31))

    conflicts = engine.detector.check_overlap("car-1", date(2024, 1, 2), date(2024, 1, 28))

    assert len(conflicts) == 1
    conflict = conflicts[0]
    assert conflict.type == Conflict.BLOCK
    assert conflict.recurring_block_id == pattern.id
    assert conflict.start_date == date(2024, 1, 3)
    assert conflict.end_date == date(2024, 1, 26)
    assert conflict.reason == "weekly service"


def test_recurring_pattern_without_occurrence_in_range_does_not_conflict(engine):
    add_pattern(engine, [6], date(2024, 1, 1))

    # Monday to Friday
    assert engine.detector.check_overlap("car-1", date(2024, 1, 1), date(2024, 1, 5)) == []


def test_source_flags(engine):
    add_block(engine, date(2024, 1, 10), date(2024, 1, 15))
    engine.bookings.add("car-1", date(2024, 1, 10), date(2024, 1, 12))

    bookings_only = engine.detector.check_overlap("car-1", date(2024, 1, 1), date(2024, 1, 31), include_blocks=False)
    blocks_only = engine.detector.check_overlap("car-1", date(2024, 1, 1), date(2024, 1, 31), include_bookings=False)

    assert [c.type for c in bookings_only] == [Conflict.BOOKING]
    assert [c.type for c in blocks_only] == [Conflict.BLOCK]


def test_datetimes_compare_as_utc_calendar_days(engine):
    add_block(engine, date(2024, 1, 10), date(2024, 1, 15))
    almaty = timezone(timedelta(hours=5))

    # 2024-01-16 02:00 in UTC+5 is 2024-01-15 21:00 UTC
    conflicts = engine.detector.check_overlap(
        "car-1",
        datetime(2024, 1, 16, 2, 0, tzinfo=almaty),
        datetime(2024, 1, 18, 2, 0, tzinfo=almaty),
    )

    assert len(conflicts) == 1


def test_inverted_range_is_rejected(engine):
    with pytest.raises(InvalidDateRange):
        engine.detector.check_overlap("car-1", date(2024, 1, 15), date(2024, 1, 10))


def test_detector_has_no_side_effects(engine):
    add_block(engine, date(2024, 1, 10), date(2024, 1, 15))
    add_pattern(engine, [1], date(2024, 1, 1))

    first = engine.detector.check_overlap("car-1", date(2024, 1, 1), date(2024, 1, 31))
    second = engine.detector.check_overlap("car-1", date(2024, 1, 1), date(2024, 1, 31))

    assert first == second
    assert len(engine.blocks.blocks) == 1
    assert engine.outbox.entries == {}


def test_conflict_to_dict_omits_empty_fields():
    booking_conflict = Conflict(
        type=Conflict.BOOKING,
        id=uuid4(),
        start_date=date(2024, 1, 10),
        end_date=date(2024, 1, 12),
        booking_number="BK-1029",
    )

    data = booking_conflict.to_dict()

    assert data["type"] == "booking"
    assert data["booking_number"] == "BK-1029"
    assert data["start_date"] == "2024-01-10"
    assert "reason" not in data
    assert "recurring_block_id" not in data


@pytest.mark.parametrize(
    "start, end, expected",
    [
        (date(2024, 1, 10), date(2024, 1, 10), "Jan 10"),
        (date(2024, 1, 10), date(2024, 1, 15), "Jan 10–15"),
        (date(2024, 1, 30), date(2024, 2, 2), "Jan 30–Feb 2"),
        (date(2023, 12, 30), date(2024, 1, 2), "Dec 30, 2023–Jan 2, 2024"),
    ],
)
def test_format_date_span(start, end, expected):
    assert format_date_span(start, end) == expected


def test_render_conflict_details():
    conflicts = [
        Conflict(
            type=Conflict.BLOCK,
            id=uuid4(),
            start_date=date(2024, 1, 10),
            end_date=date(2024, 1, 15),
            reason="maintenance",
        ),
        Conflict(
            type=Conflict.BOOKING,
            id=uuid4(),
            start_date=date(2024, 1, 12),
            end_date=date(2024, 1, 13),
            booking_number="BK-1029",
        ),
        Conflict(type=Conflict.BLOCK, id=uuid4(), start_date=date(2024, 1, 20), end_date=date(2024, 1, 20)),
    ]

    assert render_conflict_details(conflicts) == (
        "Blocked: maintenance (Jan 10–15); Booking BK-1029; Blocked: unavailable (Jan 20)"
    )
