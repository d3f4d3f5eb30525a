"""URL routing for the availability domain."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import (
    AvailabilityCheckView,
    BlockDetailView,
    BlockListCreateView,
    BulkBlockCreateView,
    ListingAnalyticsView,
    ListingCalendarExportView,
    ListingCalendarView,
    RecurringBlockDetailView,
    RecurringBlockInstancesView,
    RecurringBlockListCreateView,
)

app_name = "availability"

urlpatterns = [
    path("blocks/", BlockListCreateView.as_view(), name="block-list"),
    path("blocks/bulk/", BulkBlockCreateView.as_view(), name="block-bulk"),
    path("blocks/<uuid:block_id>/", BlockDetailView.as_view(), name="block-detail"),
    path("recurring/", RecurringBlockListCreateView.as_view(), name="recurring-list"),
    path("recurring/<uuid:recurring_block_id>/", RecurringBlockDetailView.as_view(), name="recurring-detail"),
    path(
        "recurring/<uuid:recurring_block_id>/instances/",
        RecurringBlockInstancesView.as_view(),
        name="recurring-instances",
    ),
    path("check/", AvailabilityCheckView.as_view(), name="check"),
    path("calendar/<str:listing_id>/", ListingCalendarView.as_view(), name="calendar"),
    path("analytics/<str:listing_id>/", ListingAnalyticsView.as_view(), name="analytics"),
    path("export/<str:listing_id>/", ListingCalendarExportView.as_view(), name="export"),
]
