"""
Availability Domain Errors

A closed set of error kinds raised by the availability engine. Every
error carries a stable ``code`` and its structured payload as attributes;
the API layer renders them without parsing messages.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any, Iterable, Sequence

if TYPE_CHECKING:  # pragma: no cover
    from apps.availability.domain.entities import Conflict


class AvailabilityError(Exception):
    """Base class for all availability engine errors"""

    code = "AVAILABILITY_ERROR"
    default_message = "Availability operation failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def payload(self) -> dict[str, Any]:
        """Structured fields specific to the error kind"""
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.payload()}


class InvalidDateRange(AvailabilityError):
    """End date precedes start date"""

    code = "INVALID_DATE_RANGE"
    default_message = "End date must not be before start date"

    def __init__(self, start_date: date | None, end_date: date | None, message: str | None = None):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(message)

    def payload(self) -> dict[str, Any]:
        return {
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }


class InvalidRecurrencePattern(AvailabilityError):
    """Weekday set is empty or holds values outside 0-6"""

    code = "INVALID_PATTERN"
    default_message = "Days of week must be a non-empty set of values between 0 and 6"

    def __init__(self, days_of_week: Iterable[Any], message: str | None = None):
        self.days_of_week = list(days_of_week)
        super().__init__(message)

    def payload(self) -> dict[str, Any]:
        return {"days_of_week": self.days_of_week}


class InvalidScope(AvailabilityError):
    """Unknown mutation scope, or a 'future' scope without its boundary date"""

    code = "INVALID_SCOPE"
    default_message = "Scope must be 'all' or 'future'; 'future' requires a date"

    def __init__(self, scope: Any, message: str | None = None):
        self.scope = scope
        super().__init__(message)

    def payload(self) -> dict[str, Any]:
        return {"scope": str(self.scope) if self.scope is not None else None}


class _ConflictError(AvailabilityError):
    def __init__(self, conflicts: Sequence["Conflict"], message: str | None = None):
        self.conflicts = list(conflicts)
        super().__init__(message)

    def payload(self) -> dict[str, Any]:
        return {"conflicts": [conflict.to_dict() for conflict in self.conflicts]}


class BookingConflict(_ConflictError):
    """Block creation collides with a committed booking"""

    code = "BOOKING_CONFLICT"
    default_message = "Cannot block these dates: they overlap a confirmed booking"


class ListingNotAvailable(_ConflictError):
    """Booking creation collides with a block or another committed booking"""

    code = "VEHICLE_NOT_AVAILABLE"
    default_message = "Listing is not available for these dates"

    def __init__(self, conflicts: Sequence["Conflict"], details: str, message: str | None = None):
        self.details = details
        super().__init__(conflicts, message)

    def payload(self) -> dict[str, Any]:
        return {**super().payload(), "details": self.details}


class BlockNotFound(AvailabilityError):
    """Update or delete referencing an unknown block or pattern"""

    code = "NOT_FOUND"
    default_message = "Block not found"

    def __init__(self, entity_id: Any, kind: str = "block"):
        self.entity_id = entity_id
        self.kind = kind
        super().__init__(f"{kind.capitalize()} {entity_id} not found")

    def payload(self) -> dict[str, Any]:
        return {"id": str(self.entity_id), "kind": self.kind}
