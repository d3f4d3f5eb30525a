"""DRF exception handler rendering availability errors."""

from __future__ import annotations

import logging

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore

from apps.availability.domain.exceptions import AvailabilityError

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    "INVALID_DATE_RANGE": status.HTTP_400_BAD_REQUEST,
    "INVALID_PATTERN": status.HTTP_400_BAD_REQUEST,
    "INVALID_SCOPE": status.HTTP_400_BAD_REQUEST,
    "BOOKING_CONFLICT": status.HTTP_409_CONFLICT,
    "VEHICLE_NOT_AVAILABLE": status.HTTP_409_CONFLICT,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
}


def exception_handler(exc, context):
    """Render AvailabilityError as ``{"error": {"code", "message", ...}}``; defer the rest to DRF."""
    if isinstance(exc, AvailabilityError):
        http_status = STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST)
        view = context.get("view")
        logger.info(
            f"{exc.code} in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}"
        )
        return Response({"error": exc.to_dict()}, status=http_status)

    return drf_exception_handler(exc, context)
