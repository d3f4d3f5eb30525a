"""Tests for the periodic booking status tasks."""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.utils import timezone

from apps.bookings.models import Booking
from apps.bookings.tasks import activate_started_bookings, complete_finished_bookings


def make_booking(start, end, status):
    return Booking.objects.create(
        listing_id="car-1",
        listing_type=Booking.ListingType.VEHICLE,
        renter_id="renter-1",
        start_date=start,
        end_date=end,
        status=status,
    )


@pytest.mark.django_db
def test_activate_started_bookings():
    today = timezone.now().date()
    started = make_booking(today, today + timedelta(days=2), Booking.Status.ACCEPTED)
    upcoming = make_booking(today + timedelta(days=1), today + timedelta(days=2), Booking.Status.ACCEPTED)
    pending = make_booking(today, today, Booking.Status.PENDING)

    assert activate_started_bookings() == {"activated": 1}

    started.refresh_from_db()
    upcoming.refresh_from_db()
    pending.refresh_from_db()
    assert started.status == Booking.Status.ACTIVE
    assert upcoming.status == Booking.Status.ACCEPTED
    assert pending.status == Booking.Status.PENDING


@pytest.mark.django_db
def test_complete_finished_bookings():
    today = timezone.now().date()
    finished = make_booking(today - timedelta(days=3), today - timedelta(days=1), Booking.Status.ACTIVE)
    last_day = make_booking(today - timedelta(days=1), today, Booking.Status.ACTIVE)
    cancelled = make_booking(today - timedelta(days=3), today - timedelta(days=1), Booking.Status.CANCELLED)

    assert complete_finished_bookings() == {"completed": 1}

    finished.refresh_from_db()
    last_day.refresh_from_db()
    cancelled.refresh_from_db()
    assert finished.status == Booking.Status.COMPLETED
    assert last_day.status == Booking.Status.ACTIVE
    assert cancelled.status == Booking.Status.CANCELLED
