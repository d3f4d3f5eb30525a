"""Tests for pending-booking conflict notifications and the outbox relay."""

from __future__ import annotations

from datetime import date
from unittest import mock

import pytest

from apps.availability.application.command_handlers import CreateBlockCommand, DeleteBlockCommand
from apps.availability.application.notifier import AVAILABILITY_CONFLICT, ConflictNotifier, OutboxRelay
from apps.availability.tests.fakes import Engine, FakeUnitOfWork, RecordingNotificationService


@pytest.fixture
def engine():
    return Engine()


def create_block(engine, start=date(2024, 1, 10), end=date(2024, 1, 15), listing_id="car-1"):
    return engine.create_block.handle(CreateBlockCommand(
        listing_id=listing_id,
        listing_type="vehicle",
        start_date=start,
        end_date=end,
        created_by="provider-1",
        reason="maintenance",
    ))


def make_relay(engine, service, max_attempts=5):
    notifier = ConflictNotifier(engine.bookings, service)
    return OutboxRelay(
        engine.outbox,
        engine.blocks,
        notifier,
        batch_size=10,
        max_attempts=max_attempts,
        uow_factory=FakeUnitOfWork,
    )


def test_notifies_creator_about_each_overlapping_pending_booking(engine):
    first = engine.bookings.add("car-1", date(2024, 1, 12), date(2024, 1, 13), status="PENDING", booking_number="BK-1")
    second = engine.bookings.add("car-1", date(2024, 1, 15), date(2024, 1, 16), status="PENDING", booking_number="BK-2")
    engine.bookings.add("car-1", date(2024, 1, 16), date(2024, 1, 20), status="PENDING", booking_number="BK-3")
    engine.bookings.add("car-2", date(2024, 1, 12), date(2024, 1, 13), status="PENDING", booking_number="BK-4")
    block = create_block(engine)
    service = RecordingNotificationService()

    sent = ConflictNotifier(engine.bookings, service).notify_block_created(block)

    assert sent == 2
    assert [n["metadata"]["bookingNumber"] for n in service.sent] == ["BK-1", "BK-2"]
    notification = service.sent[0]
    assert notification["user_id"] == "provider-1"
    assert notification["type"] == AVAILABILITY_CONFLICT
    assert notification["metadata"] == {
        "blockId": str(block.id),
        "bookingId": str(first.id),
        "bookingNumber": "BK-1",
    }
    assert "BK-1" in notification["message"]
    assert service.sent[1]["metadata"]["bookingId"] == str(second.id)


def test_one_failed_notification_does_not_stop_the_rest(engine):
    engine.bookings.add("car-1", date(2024, 1, 12), date(2024, 1, 13), status="PENDING", booking_number="BK-1")
    engine.bookings.add("car-1", date(2024, 1, 14), date(2024, 1, 14), status="PENDING", booking_number="BK-2")
    block = create_block(engine)
    service = RecordingNotificationService(fail_for={"BK-1"})

    sent = ConflictNotifier(engine.bookings, service).notify_block_created(block)

    assert sent == 1
    assert [n["metadata"]["bookingNumber"] for n in service.sent] == ["BK-2"]


def test_relay_delivers_pending_entries(engine):
    engine.bookings.add("car-1", date(2024, 1, 12), date(2024, 1, 13), status="PENDING")
    create_block(engine)
    create_block(engine, listing_id="car-2")
    service = RecordingNotificationService()

    result = make_relay(engine, service).drain()

    assert result.delivered == 2
    assert result.failed == 0
    assert result.notifications == 1
    assert engine.outbox.statuses() == ["delivered", "delivered"]
    assert make_relay(engine, service).drain().delivered == 0


def test_relay_skips_entries_for_deleted_blocks(engine):
    engine.bookings.add("car-1", date(2024, 1, 12), date(2024, 1, 13), status="PENDING")
    block = create_block(engine)
    engine.delete_block.handle(DeleteBlockCommand(block_id=block.id))
    service = RecordingNotificationService()

    result = make_relay(engine, service).drain()

    assert result.delivered == 1
    assert result.notifications == 0
    assert service.sent == []


def test_relay_retries_then_gives_up(engine):
    create_block(engine)
    relay = make_relay(engine, RecordingNotificationService(), max_attempts=2)
    relay.notifier = mock.Mock(notify_block_created=mock.Mock(side_effect=RuntimeError("boom")))

    first = relay.drain()
    [entry] = engine.outbox.entries.values()
    assert first.failed == 1
    assert entry["status"] == "pending"
    assert entry["attempts"] == 1
    assert entry["last_error"] == "boom"

    relay.drain()
    assert entry["status"] == "failed"
    assert entry["attempts"] == 2
    assert relay.drain().failed == 0


def test_block_created_handler_enqueues_dispatch():
    from apps.availability.handlers import schedule_conflict_notifications

    event = mock.Mock(block_id="b-1")
    with mock.patch("apps.availability.tasks.dispatch_conflict_notifications_task.delay") as delay:
        schedule_conflict_notifications(event)

    delay.assert_called_once_with()


def test_block_created_handler_survives_broker_outage():
    from apps.availability.handlers import schedule_conflict_notifications

    event = mock.Mock(block_id="b-1")
    with mock.patch(
        "apps.availability.tasks.dispatch_conflict_notifications_task.delay",
        side_effect=ConnectionError("broker down"),
    ) as delay:
        schedule_conflict_notifications(event)

    delay.assert_called_once_with()


@pytest.mark.django_db(transaction=True)
def test_database_error_for_one_booking_still_notifies_the_others():
    from apps.availability import services
    from apps.availability.models import NotificationOutbox
    from apps.bookings.models import Booking
    from apps.notifications.models import Notification

    def pending(start, end):
        return Booking.objects.create(
            listing_id="car-1",
            listing_type=Booking.ListingType.VEHICLE,
            renter_id="renter-1",
            start_date=start,
            end_date=end,
            status=Booking.Status.PENDING,
        )

    broken = pending(date(2024, 1, 12), date(2024, 1, 13))
    healthy = pending(date(2024, 1, 14), date(2024, 1, 15))
    real_create = Notification.objects.create

    def create(**fields):
        if fields["metadata"]["bookingNumber"] == broken.booking_number:
            fields["title"] = None
        return real_create(**fields)

    with mock.patch.object(Notification.objects, "create", side_effect=create):
        services.create_block(
            listing_id="car-1",
            listing_type="vehicle",
            start_date=date(2024, 1, 10),
            end_date=date(2024, 1, 15),
            created_by="provider-1",
            reason="maintenance",
        )
        services.dispatch_conflict_notifications()

    notified = [n.metadata["bookingNumber"] for n in Notification.objects.all()]
    assert notified == [healthy.booking_number]
    entry = NotificationOutbox.objects.get()
    assert entry.status == NotificationOutbox.Status.DELIVERED
    assert entry.attempts == 0
