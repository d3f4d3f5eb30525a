"""Tests for blocking the same dates across several listings."""

from __future__ import annotations

from datetime import date

import pytest

from apps.availability.application.command_handlers import CreateBulkBlocksCommand
from apps.availability.tests.fakes import Engine


class FlakyBlockRepository:
    """Wraps a repository and fails writes for selected listings"""

    def __init__(self, inner, broken_listing):
        self.inner = inner
        self.broken_listing = broken_listing

    def add(self, block):
        if block.listing_id == self.broken_listing:
            raise RuntimeError("database is gone")
        self.inner.add(block)

    def __getattr__(self, name):
        return getattr(self.inner, name)


@pytest.fixture
def engine():
    return Engine()


def bulk_command(listing_ids, start=date(2024, 1, 10), end=date(2024, 1, 15)):
    return CreateBulkBlocksCommand(
        listing_ids=listing_ids,
        listing_type="vehicle",
        start_date=start,
        end_date=end,
        created_by="provider-1",
        reason="fleet inspection",
    )


def test_partial_success_reports_each_listing(engine):
    booking = engine.bookings.add("B", date(2024, 1, 12), date(2024, 1, 13), booking_number="BK-1029")

    result = engine.create_bulk.handle(bulk_command(["A", "B", "C"]))

    assert result.successful == ["A", "C"]
    assert len(result.failed) == 1
    failure = result.failed[0]
    assert failure.listing_id == "B"
    assert failure.reason == "BOOKING_CONFLICT"
    assert [c.id for c in failure.conflicts] == [booking.id]
    assert result.total == 3
    assert {block.listing_id for block in engine.blocks.blocks.values()} == {"A", "C"}
    assert [block.listing_id for block in result.blocks] == ["A", "C"]


def test_each_listing_is_locked_separately(engine):
    engine.create_bulk.handle(bulk_command(["A", "B", "C"]))

    assert engine.locker.acquired == ["A", "B", "C"]
    assert len(engine.outbox.entries) == 3


def test_invalid_range_fails_every_listing(engine):
    result = engine.create_bulk.handle(bulk_command(["A", "B"], start=date(2024, 1, 15), end=date(2024, 1, 10)))

    assert result.successful == []
    assert [f.reason for f in result.failed] == ["INVALID_DATE_RANGE", "INVALID_DATE_RANGE"]
    assert engine.blocks.blocks == {}


def test_unexpected_error_is_reported_as_internal_error(engine):
    engine.create_block.block_repo = FlakyBlockRepository(engine.blocks, broken_listing="B")

    result = engine.create_bulk.handle(bulk_command(["A", "B", "C"]))

    assert result.successful == ["A", "C"]
    [failure] = result.failed
    assert failure.listing_id == "B"
    assert failure.reason == "INTERNAL_ERROR"
    assert failure.conflicts == []


def test_result_serialization(engine):
    engine.bookings.add("B", date(2024, 1, 12), date(2024, 1, 13), booking_number="BK-1029")

    data = engine.create_bulk.handle(bulk_command(["A", "B"])).to_dict()

    assert data["successful"] == ["A"]
    assert data["failed"][0]["listing_id"] == "B"
    assert data["failed"][0]["reason"] == "BOOKING_CONFLICT"
    assert data["failed"][0]["conflicts"][0]["booking_number"] == "BK-1029"


def test_empty_request(engine):
    result = engine.create_bulk.handle(bulk_command([]))

    assert result.total == 0
    assert result.to_dict() == {"successful": [], "failed": []}
