"""Domain services for booking workflows."""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from shared.application.uow import DjangoUnitOfWork

from apps.availability.domain.conflicts import ConflictDetector, render_conflict_details
from apps.availability.domain.entities import build_date_range
from apps.availability.domain.exceptions import BlockNotFound, ListingNotAvailable

from .models import Booking

logger = logging.getLogger(__name__)


class BookingStateError(Exception):
    """Raised when a booking cannot move to the requested status."""


def _detector() -> ConflictDetector:
    from apps.availability.services import build_detector

    return build_detector()


def _locker():
    from apps.availability.repositories import DjangoListingLocker

    return DjangoListingLocker()


def ensure_listing_is_available(
    listing_id: str,
    start_date,
    end_date,
    *,
    exclude_booking_id: Optional[UUID] = None,
    detector: Optional[ConflictDetector] = None,
) -> None:
    """
    Reject a booking that overlaps any block, recurring occurrence or
    committed booking on the listing.

    Raises:
        ListingNotAvailable: code VEHICLE_NOT_AVAILABLE, with the conflicts
            and a rendered ``details`` summary
    """
    detector = detector or _detector()
    conflicts = detector.check_overlap(
        str(listing_id),
        start_date,
        end_date,
        exclude_booking_id=exclude_booking_id,
    )
    if conflicts:
        details = render_conflict_details(conflicts)
        logger.info(f"Listing {listing_id} not available {start_date} - {end_date}: {details}")
        raise ListingNotAvailable(conflicts, details)


def create_booking_request(
    *,
    listing_id: str,
    listing_type: str,
    renter_id: str,
    start_date,
    end_date,
    locker=None,
) -> Booking:
    """Create a PENDING booking after checking availability under the listing lock."""
    dates = build_date_range(start_date, end_date)

    with DjangoUnitOfWork():
        (locker or _locker()).acquire(listing_id)
        ensure_listing_is_available(listing_id, dates.start_date, dates.end_date)
        booking = Booking.objects.create(
            listing_id=str(listing_id),
            listing_type=listing_type,
            renter_id=str(renter_id),
            start_date=dates.start_date,
            end_date=dates.end_date,
            status=Booking.Status.PENDING,
        )

    logger.info(f"Booking {booking.booking_number} requested for listing {listing_id}, dates {dates}")
    return booking


def accept_booking(booking_id: UUID, locker=None) -> Booking:
    """
    Move a PENDING booking to ACCEPTED.

    Availability is checked again under the listing lock, ignoring the
    booking itself, since blocks or other acceptances may have landed
    since the request was made.
    """
    with DjangoUnitOfWork():
        booking = Booking.objects.filter(pk=booking_id).first()
        if booking is None:
            raise BlockNotFound(booking_id, kind="booking")

        (locker or _locker()).acquire(booking.listing_id)
        booking.refresh_from_db()

        if booking.status != Booking.Status.PENDING:
            raise BookingStateError(f"Booking {booking.booking_number} is {booking.status}, not PENDING")

        ensure_listing_is_available(
            booking.listing_id,
            booking.start_date,
            booking.end_date,
            exclude_booking_id=booking.id,
        )
        booking.status = Booking.Status.ACCEPTED
        booking.save(update_fields=["status", "updated_at"])

    logger.info(f"Booking {booking.booking_number} accepted")
    return booking


def cancel_booking(booking_id: UUID) -> Booking:
    booking = Booking.objects.filter(pk=booking_id).first()
    if booking is None:
        raise BlockNotFound(booking_id, kind="booking")
    if booking.status in (Booking.Status.COMPLETED, Booking.Status.CANCELLED):
        raise BookingStateError(f"Booking {booking.booking_number} is already {booking.status}")

    booking.status = Booking.Status.CANCELLED
    booking.save(update_fields=["status", "updated_at"])
    logger.info(f"Booking {booking.booking_number} cancelled")
    return booking
