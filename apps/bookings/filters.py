"""FilterSet definitions for booking lists."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Booking


class BookingFilterSet(django_filters.FilterSet):
    """Bookings of a listing, optionally limited to those overlapping a date window."""

    listing_id = django_filters.CharFilter(field_name="listing_id", lookup_expr="exact")
    listing_type = django_filters.ChoiceFilter(choices=Booking.ListingType.choices)
    status = django_filters.MultipleChoiceFilter(choices=Booking.Status.choices)
    # Inclusive overlap with [start_date, end_date]
    start_date = django_filters.DateFilter(field_name="end_date", lookup_expr="gte")
    end_date = django_filters.DateFilter(field_name="start_date", lookup_expr="lte")

    class Meta:
        model = Booking
        fields = ["listing_id", "listing_type", "status"]
