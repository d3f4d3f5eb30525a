"""API views for the availability domain."""

from __future__ import annotations

from datetime import timedelta

from django.http import HttpResponse  # type: ignore
from django.utils import timezone  # type: ignore
from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from . import services
from .serializers import (
    AvailabilityBlockSerializer,
    AvailabilityCheckSerializer,
    BlockCreateSerializer,
    BlockListQuerySerializer,
    BulkBlockCreateSerializer,
    ConflictSerializer,
    ListingWindowSerializer,
    RecurringBlockCreateSerializer,
    RecurringBlockDeleteSerializer,
    RecurringBlockSerializer,
    RecurringBlockUpdateSerializer,
)


def _actor(request) -> str:  # type: ignore
    return str(request.user.pk)


def _window(request, *, days_before: int = 0, days_after: int = 0):  # type: ignore
    """Listing type and date window from query params, defaulting around today."""
    serializer = ListingWindowSerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    today = timezone.now().date()
    start = serializer.validated_data.get("start_date") or today - timedelta(days=days_before)
    end = serializer.validated_data.get("end_date") or today + timedelta(days=days_after)
    return serializer.validated_data.get("listing_type"), start, end


class BlockListCreateView(APIView):
    """Список и создание разовых блокировок."""

    permission_classes = [permissions.IsAuthenticatedOrReadOnly]

    def get(self, request):  # type: ignore
        query = BlockListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        blocks = services.get_blocks(
            query.validated_data["listing_id"],
            query.validated_data.get("listing_type"),
            query.validated_data.get("start_date"),
            query.validated_data.get("end_date"),
        )
        return Response(AvailabilityBlockSerializer(blocks, many=True).data)

    def post(self, request):  # type: ignore
        serializer = BlockCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        block = services.create_block(created_by=_actor(request), **serializer.validated_data)
        return Response(AvailabilityBlockSerializer(block).data, status=status.HTTP_201_CREATED)


class BlockDetailView(APIView):
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]

    def get(self, request, block_id):  # type: ignore
        block = services.get_block(block_id)
        return Response(AvailabilityBlockSerializer(block).data)

    def delete(self, request, block_id):  # type: ignore
        services.delete_block(block_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class BulkBlockCreateView(APIView):
    """Одна и та же блокировка на нескольких объявлениях; результат по каждому."""

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):  # type: ignore
        serializer = BulkBlockCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.create_bulk_blocks(created_by=_actor(request), **serializer.validated_data)
        payload = result.to_dict()
        payload["blocks"] = AvailabilityBlockSerializer(result.blocks, many=True).data
        return Response(payload, status=status.HTTP_201_CREATED)


class RecurringBlockListCreateView(APIView):
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]

    def get(self, request):  # type: ignore
        query = BlockListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        patterns = services.get_recurring_blocks(
            query.validated_data["listing_id"],
            query.validated_data.get("listing_type"),
        )
        return Response(RecurringBlockSerializer(patterns, many=True).data)

    def post(self, request):  # type: ignore
        serializer = RecurringBlockCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        pattern = services.create_recurring_block(created_by=_actor(request), **serializer.validated_data)
        return Response(RecurringBlockSerializer(pattern).data, status=status.HTTP_201_CREATED)


class RecurringBlockDetailView(APIView):
    """
    PATCH with scope 'all' edits the pattern; scope 'future' with an
    update_date returns the new segment. DELETE takes scope and
    delete_date from the body or query string.
    """

    permission_classes = [permissions.IsAuthenticatedOrReadOnly]

    def get(self, request, recurring_block_id):  # type: ignore
        pattern = services.get_recurring_block(recurring_block_id)
        return Response(RecurringBlockSerializer(pattern).data)

    def patch(self, request, recurring_block_id):  # type: ignore
        serializer = RecurringBlockUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        pattern = services.update_recurring_block(
            recurring_block_id,
            scope=serializer.validated_data["scope"],
            update_date=serializer.validated_data.get("update_date"),
            **serializer.changes(),
        )
        return Response(RecurringBlockSerializer(pattern).data)

    def delete(self, request, recurring_block_id):  # type: ignore
        serializer = RecurringBlockDeleteSerializer(data=request.data or request.query_params)
        serializer.is_valid(raise_exception=True)
        services.delete_recurring_block(
            recurring_block_id,
            scope=serializer.validated_data["scope"],
            delete_date=serializer.validated_data.get("delete_date"),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


class RecurringBlockInstancesView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, recurring_block_id):  # type: ignore
        _, start, end = _window(request, days_after=90)
        instances = services.get_recurring_instances(recurring_block_id, start, end)
        return Response(AvailabilityBlockSerializer(instances, many=True).data)


class AvailabilityCheckView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = AvailabilityCheckSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.check_availability(**serializer.validated_data)
        return Response({
            "available": result.available,
            "conflicts": ConflictSerializer(result.conflicts, many=True).data,
        })


class ListingCalendarView(APIView):
    """Календарь объявления по дням: available / blocked / booked."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, listing_id):  # type: ignore
        listing_type, start, end = _window(request, days_after=90)
        days = services.get_calendar(listing_id, listing_type, start, end)
        return Response({
            "listing_id": listing_id,
            "listing_type": listing_type,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "days": [day.to_dict() for day in days],
        })


class ListingAnalyticsView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, listing_id):  # type: ignore
        listing_type, start, end = _window(request, days_before=30)
        analytics = services.get_analytics(listing_id, listing_type, start, end)
        return Response(analytics.to_dict())


class ListingCalendarExportView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, listing_id):  # type: ignore
        listing_type, start, end = _window(request, days_after=365)
        content = services.export_calendar(listing_id, listing_type, start, end)
        filename = f"{listing_type or 'listing'}-{listing_id}-availability.ics"
        response = HttpResponse(content, content_type="text/calendar; charset=utf-8")
        response["Content-Disposition"] = f'attachment; filename="{filename}"'
        return response
