"""Tests for one-off block creation and deletion."""

from __future__ import annotations

from datetime import date
from unittest import mock
from uuid import uuid4

import pytest

from apps.availability.application.command_handlers import CreateBlockCommand, DeleteBlockCommand
from apps.availability.domain.events import BlockCreated, BlockDeleted
from apps.availability.domain.exceptions import BlockNotFound, BookingConflict, InvalidDateRange
from apps.availability.tests.fakes import Engine


@pytest.fixture
def engine():
    return Engine()


def block_command(start, end, listing_id="car-1", reason="maintenance"):
    return CreateBlockCommand(
        listing_id=listing_id,
        listing_type="vehicle",
        start_date=start,
        end_date=end,
        created_by="provider-1",
        reason=reason,
    )


def test_create_block_persists_and_enqueues_notification(engine):
    block = engine.create_block.handle(block_command(date(2024, 1, 10), date(2024, 1, 15)))

    assert engine.blocks.get(block.id) is block
    assert block.start_date == date(2024, 1, 10)
    assert block.end_date == date(2024, 1, 15)
    assert block.reason == "maintenance"
    assert block.is_recurring is False
    assert engine.locker.acquired == ["car-1"]

    [entry] = engine.outbox.entries.values()
    assert entry["payload"]["block_id"] == str(block.id)
    assert entry["status"] == "pending"

    [event] = engine.committed_events
    assert isinstance(event, BlockCreated)
    assert event.block_id == block.id


def test_single_day_block_is_allowed(engine):
    block = engine.create_block.handle(block_command(date(2024, 1, 10), date(2024, 1, 10)))

    assert len(block.dates) == 1


def test_inverted_range_is_rejected_before_any_io(engine):
    with pytest.raises(InvalidDateRange) as excinfo:
        engine.create_block.handle(block_command(date(2024, 1, 15), date(2024, 1, 10)))

    assert excinfo.value.code == "INVALID_DATE_RANGE"
    assert engine.locker.acquired == []
    assert engine.blocks.blocks == {}
    assert engine.outbox.entries == {}


@pytest.mark.parametrize("status", ["ACCEPTED", "ACTIVE"])
def test_committed_booking_blocks_creation(engine, status):
    booking = engine.bookings.add("car-1", date(2024, 1, 12), date(2024, 1, 13), status=status)

    with pytest.raises(BookingConflict) as excinfo:
        engine.create_block.handle(block_command(date(2024, 1, 10), date(2024, 1, 15)))

    error = excinfo.value
    assert error.code == "BOOKING_CONFLICT"
    assert [c.id for c in error.conflicts] == [booking.id]
    assert error.conflicts[0].booking_number == booking.booking_number
    assert engine.blocks.blocks == {}
    assert engine.outbox.entries == {}
    assert engine.committed_events == []


def test_booking_sharing_a_boundary_day_conflicts(engine):
    engine.bookings.add("car-1", date(2024, 1, 15), date(2024, 1, 18))

    with pytest.raises(BookingConflict):
        engine.create_block.handle(block_command(date(2024, 1, 10), date(2024, 1, 15)))


@pytest.mark.parametrize("status", ["PENDING", "CANCELLED", "REJECTED", "COMPLETED"])
def test_uncommitted_bookings_do_not_prevent_blocking(engine, status):
    engine.bookings.add("car-1", date(2024, 1, 12), date(2024, 1, 13), status=status)

    block = engine.create_block.handle(block_command(date(2024, 1, 10), date(2024, 1, 15)))

    assert engine.blocks.get(block.id) is block


def test_blocks_may_overlap_each_other(engine):
    first = engine.create_block.handle(block_command(date(2024, 1, 10), date(2024, 1, 15)))
    second = engine.create_block.handle(block_command(date(2024, 1, 12), date(2024, 1, 20), reason="cleaning"))

    assert {first.id, second.id} == set(engine.blocks.blocks)


def test_datetime_inputs_are_stored_as_calendar_dates(engine):
    block = engine.create_block.handle(block_command("2024-01-10T08:30:00Z", "2024-01-15T23:59:00Z"))

    assert block.start_date == date(2024, 1, 10)
    assert block.end_date == date(2024, 1, 15)


def test_delete_block(engine):
    block = engine.create_block.handle(block_command(date(2024, 1, 10), date(2024, 1, 15)))

    engine.delete_block.handle(DeleteBlockCommand(block_id=block.id))

    assert engine.blocks.get(block.id) is None
    assert isinstance(engine.committed_events[-1], BlockDeleted)
    assert engine.locker.acquired == ["car-1", "car-1"]


def test_delete_unknown_block(engine):
    missing = uuid4()

    with pytest.raises(BlockNotFound) as excinfo:
        engine.delete_block.handle(DeleteBlockCommand(block_id=missing))

    assert excinfo.value.code == "NOT_FOUND"
    assert excinfo.value.to_dict()["id"] == str(missing)


@pytest.mark.django_db
def test_rejected_unit_of_work_logs_rollback_at_debug():
    from shared.application.uow import DjangoUnitOfWork

    with mock.patch("shared.application.uow.logger") as logger:
        with pytest.raises(BlockNotFound):
            with DjangoUnitOfWork():
                raise BlockNotFound(uuid4())

    logger.debug.assert_called_once()
    logger.warning.assert_not_called()
