"""
Conflict Notifier

Warns a block's creator about pending booking requests that the new block
overlaps. Runs outside the block-creation transaction, fed by the
notification outbox; nothing here can fail a block creation.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID
import logging

from shared.application.uow import DjangoUnitOfWork

from apps.availability.domain.entities import (
    PENDING_BOOKING_STATUS,
    AvailabilityBlock,
    BookingSnapshot,
)
from apps.availability.domain.repositories import OutboxEntry

logger = logging.getLogger(__name__)

AVAILABILITY_CONFLICT = 'AVAILABILITY_CONFLICT'


class ConflictNotifier:
    """Emits one AVAILABILITY_CONFLICT notification per overlapping pending booking"""

    def __init__(self, booking_reader, notification_service):
        self.booking_reader = booking_reader
        self.notification_service = notification_service

    def notify_block_created(self, block: AvailabilityBlock) -> int:
        """
        Notify ``block.created_by`` about overlapping pending bookings

        A failure to emit one notification is logged and the remaining
        bookings are still notified. Returns the number emitted.
        """
        bookings = self.booking_reader.overlapping(
            block.listing_id,
            block.start_date,
            block.end_date,
            (PENDING_BOOKING_STATUS,),
        )

        sent = 0
        for booking in bookings:
            try:
                self.notification_service.emit(
                    user_id=block.created_by,
                    type=AVAILABILITY_CONFLICT,
                    title="Blocked dates overlap a pending booking",
                    message=self._message(block, booking),
                    metadata={
                        'blockId': str(block.id),
                        'bookingId': str(booking.id),
                        'bookingNumber': booking.booking_number,
                    },
                )
                sent += 1
            except Exception as e:
                logger.error(
                    f"Failed to notify {block.created_by} about booking "
                    f"{booking.booking_number} for block {block.id}: {e}",
                    exc_info=True,
                )

        if sent:
            logger.info(f"Sent {sent} conflict notification(s) for block {block.id}")
        return sent

    @staticmethod
    def _message(block: AvailabilityBlock, booking: BookingSnapshot) -> str:
        return (
            f"Your new block ({block.dates}) overlaps pending booking "
            f"{booking.booking_number} ({booking.dates}). "
            f"Please review the booking request."
        )


@dataclass
class DrainResult:
    delivered: int = 0
    failed: int = 0
    notifications: int = 0


class OutboxRelay:
    """
    Drains the notification outbox

    Each entry is claimed and processed in its own transaction. A failed
    entry is rolled back, its attempt counted, and it is retried on the
    next drain until ``max_attempts`` is reached.
    """

    def __init__(
        self,
        outbox,
        block_repo,
        notifier: ConflictNotifier,
        *,
        batch_size: int = 100,
        max_attempts: int = 5,
        uow_factory=None,
    ):
        self.outbox = outbox
        self.block_repo = block_repo
        self.notifier = notifier
        self.batch_size = batch_size
        self.max_attempts = max_attempts
        self.uow_factory = uow_factory or DjangoUnitOfWork

    def drain(self) -> DrainResult:
        result = DrainResult()

        for entry_id in self.outbox.pending_ids(self.batch_size):
            try:
                with self.uow_factory():
                    entry = self.outbox.claim(entry_id)
                    if entry is None:
                        continue
                    result.notifications += self._process(entry)
                    self.outbox.mark_delivered(entry.id)
                result.delivered += 1
            except Exception as e:
                logger.error(f"Outbox entry {entry_id} failed: {e}", exc_info=True)
                with self.uow_factory():
                    gave_up = self.outbox.record_failure(entry_id, str(e), self.max_attempts)
                if gave_up:
                    logger.warning(
                        f"Outbox entry {entry_id} marked failed after {self.max_attempts} attempts"
                    )
                result.failed += 1

        if result.delivered or result.failed:
            logger.info(
                f"Outbox drained: {result.delivered} delivered, {result.failed} failed, "
                f"{result.notifications} notification(s)"
            )
        return result

    def _process(self, entry: OutboxEntry) -> int:
        block = self._load_block(entry.payload.get('block_id'))
        if block is None:
            logger.info(f"Outbox entry {entry.id}: block no longer exists, skipping")
            return 0
        return self.notifier.notify_block_created(block)

    def _load_block(self, block_id) -> Optional[AvailabilityBlock]:
        if not block_id:
            return None
        return self.block_repo.get(UUID(str(block_id)))
