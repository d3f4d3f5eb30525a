"""Message bus subscribers for availability events."""

from __future__ import annotations

import logging

from shared.application.message_bus import message_bus

from apps.availability.domain.events import BlockCreated

logger = logging.getLogger(__name__)


@message_bus.subscribe(BlockCreated)
def schedule_conflict_notifications(event: BlockCreated) -> None:
    """Hand the outbox to a Celery worker once the block is committed."""
    from apps.availability.tasks import dispatch_conflict_notifications_task

    try:
        dispatch_conflict_notifications_task.delay()
    except Exception as e:
        # The periodic drain picks the entry up later.
        logger.warning(f"Could not enqueue conflict notifications for block {event.block_id}: {e}")
