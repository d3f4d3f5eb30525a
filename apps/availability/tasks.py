"""Celery tasks for the availability domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import dispatch_conflict_notifications

logger = logging.getLogger(__name__)


@shared_task(name="availability.dispatch_conflict_notifications")
def dispatch_conflict_notifications_task() -> dict[str, int]:
    """
    Drain the conflict notification outbox.

    Enqueued after each committed block creation and also run by Celery
    Beat, so entries left behind by a broker outage are still delivered.

    Returns:
        dict: {"delivered": ..., "failed": ..., "notifications": ...}
    """
    result = dispatch_conflict_notifications()
    return {
        "delivered": result.delivered,
        "failed": result.failed,
        "notifications": result.notifications,
    }
