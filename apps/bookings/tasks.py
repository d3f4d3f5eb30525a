"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from .models import Booking

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.activate_started_bookings")
def activate_started_bookings() -> dict[str, int]:
    """
    ACCEPTED bookings whose start date has arrived become ACTIVE.

    Returns:
        dict: {"activated": number of bookings moved}
    """
    today = timezone.now().date()
    activated = Booking.objects.filter(
        status=Booking.Status.ACCEPTED,
        start_date__lte=today,
        end_date__gte=today,
    ).update(status=Booking.Status.ACTIVE, updated_at=timezone.now())

    if activated:
        logger.info(f"Activated {activated} bookings")
    return {"activated": activated}


@shared_task(name="bookings.complete_finished_bookings")
def complete_finished_bookings() -> dict[str, int]:
    """
    ACCEPTED/ACTIVE bookings whose last day has passed become COMPLETED.

    Returns:
        dict: {"completed": number of bookings moved}
    """
    today = timezone.now().date()
    completed = Booking.objects.filter(
        status__in=[Booking.Status.ACCEPTED, Booking.Status.ACTIVE],
        end_date__lt=today,
    ).update(status=Booking.Status.COMPLETED, updated_at=timezone.now())

    if completed:
        logger.info(f"Completed {completed} bookings")
    return {"completed": completed}
