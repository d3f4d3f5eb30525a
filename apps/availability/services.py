"""Public operations of the availability engine, wired to the Django repositories."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional
from uuid import UUID

from django.conf import settings  # type: ignore

from apps.availability.application.command_handlers import (
    BulkBlockResult,
    CreateBlockCommand,
    CreateBlockHandler,
    CreateBulkBlocksCommand,
    CreateBulkBlocksHandler,
    CreateRecurringBlockCommand,
    CreateRecurringBlockHandler,
    DeleteBlockCommand,
    DeleteBlockHandler,
    DeleteRecurringBlockCommand,
    DeleteRecurringBlockHandler,
    UpdateRecurringBlockCommand,
    UpdateRecurringBlockHandler,
)
from apps.availability.application.notifier import ConflictNotifier, DrainResult, OutboxRelay
from apps.availability.application.queries import (
    AvailabilityAnalytics,
    AvailabilityCheck,
    AvailabilityQueries,
    CalendarDay,
)
from apps.availability.domain import recurrence
from apps.availability.domain.conflicts import ConflictDetector
from apps.availability.domain.entities import AvailabilityBlock, Conflict, RecurringBlock
from apps.availability.domain.exceptions import BlockNotFound
from apps.availability.repositories import (
    DjangoAvailabilityBlockRepository,
    DjangoBookingReader,
    DjangoListingLocker,
    DjangoNotificationOutbox,
    DjangoRecurringBlockRepository,
)

logger = logging.getLogger(__name__)


def _setting(name: str, default: int) -> int:
    return int(getattr(settings, name, default))


def max_query_days() -> int:
    return _setting("AVAILABILITY_MAX_QUERY_DAYS", 731)


def build_detector() -> ConflictDetector:
    return ConflictDetector(
        DjangoAvailabilityBlockRepository(),
        DjangoRecurringBlockRepository(),
        DjangoBookingReader(),
    )


def build_queries() -> AvailabilityQueries:
    return AvailabilityQueries(
        DjangoAvailabilityBlockRepository(),
        DjangoRecurringBlockRepository(),
        DjangoBookingReader(),
        build_detector(),
        max_query_days=max_query_days(),
    )


def _create_block_handler() -> CreateBlockHandler:
    return CreateBlockHandler(
        DjangoAvailabilityBlockRepository(),
        build_detector(),
        DjangoNotificationOutbox(),
        DjangoListingLocker(),
    )


# ============================================================================
# BLOCKS
# ============================================================================

def create_block(
    *,
    listing_id: str,
    listing_type: str,
    start_date,
    end_date,
    created_by: str,
    reason: str = "",
) -> AvailabilityBlock:
    """Block a listing for a date range; rejected when a committed booking overlaps."""
    return _create_block_handler().handle(CreateBlockCommand(
        listing_id=listing_id,
        listing_type=listing_type,
        start_date=start_date,
        end_date=end_date,
        created_by=created_by,
        reason=reason,
    ))


def delete_block(block_id: UUID) -> None:
    DeleteBlockHandler(DjangoAvailabilityBlockRepository(), DjangoListingLocker()).handle(
        DeleteBlockCommand(block_id=block_id)
    )


def get_block(block_id: UUID) -> AvailabilityBlock:
    block = DjangoAvailabilityBlockRepository().get(block_id)
    if block is None:
        raise BlockNotFound(block_id)
    return block


def get_blocks(
    listing_id: str,
    listing_type: Optional[str] = None,
    start_date=None,
    end_date=None,
) -> List[AvailabilityBlock]:
    return build_queries().get_blocks(listing_id, listing_type, start_date, end_date)


def create_bulk_blocks(
    *,
    listing_ids: Iterable[str],
    listing_type: str,
    start_date,
    end_date,
    created_by: str,
    reason: str = "",
) -> BulkBlockResult:
    """Block the same dates on each listing independently; never raises per listing."""
    return CreateBulkBlocksHandler(_create_block_handler()).handle(CreateBulkBlocksCommand(
        listing_ids=list(listing_ids),
        listing_type=listing_type,
        start_date=start_date,
        end_date=end_date,
        created_by=created_by,
        reason=reason,
    ))


# ============================================================================
# RECURRING PATTERNS
# ============================================================================

def create_recurring_block(
    *,
    listing_id: str,
    listing_type: str,
    days_of_week: Iterable[int],
    start_date,
    created_by: str,
    end_date=None,
    reason: str = "",
) -> RecurringBlock:
    return CreateRecurringBlockHandler(DjangoRecurringBlockRepository(), DjangoListingLocker()).handle(
        CreateRecurringBlockCommand(
            listing_id=listing_id,
            listing_type=listing_type,
            days_of_week=list(days_of_week),
            start_date=start_date,
            end_date=end_date,
            created_by=created_by,
            reason=reason,
        )
    )


def get_recurring_block(recurring_block_id: UUID) -> RecurringBlock:
    pattern = DjangoRecurringBlockRepository().get(recurring_block_id)
    if pattern is None:
        raise BlockNotFound(recurring_block_id, kind="recurring block")
    return pattern


def get_recurring_blocks(listing_id: str, listing_type: Optional[str] = None) -> List[RecurringBlock]:
    return build_queries().get_recurring_blocks(listing_id, listing_type)


def generate_recurring_instances(pattern: RecurringBlock, range_start, range_end) -> recurrence.RecurringInstances:
    """Lazy, restartable occurrences of ``pattern`` inside the range."""
    return recurrence.generate_recurring_instances(pattern, range_start, range_end)


def get_recurring_instances(recurring_block_id: UUID, range_start, range_end) -> List[AvailabilityBlock]:
    """Occurrences of a stored pattern inside a capped window."""
    pattern = get_recurring_block(recurring_block_id)
    window = build_queries().window(range_start, range_end)
    return list(generate_recurring_instances(pattern, window.start_date, window.end_date))


def update_recurring_block(
    recurring_block_id: UUID,
    *,
    scope: str,
    update_date=None,
    **changes,
) -> RecurringBlock:
    """
    Change a pattern.

    scope 'all' edits it in place; scope 'future' splits it at
    ``update_date`` and returns the new segment.
    """
    return UpdateRecurringBlockHandler(DjangoRecurringBlockRepository(), DjangoListingLocker()).handle(
        UpdateRecurringBlockCommand(
            recurring_block_id=recurring_block_id,
            scope=scope,
            update_date=update_date,
            changes=changes,
        )
    )


def delete_recurring_block(recurring_block_id: UUID, *, scope: str, delete_date=None) -> None:
    DeleteRecurringBlockHandler(DjangoRecurringBlockRepository(), DjangoListingLocker()).handle(
        DeleteRecurringBlockCommand(
            recurring_block_id=recurring_block_id,
            scope=scope,
            delete_date=delete_date,
        )
    )


# ============================================================================
# CONFLICTS AND READ SIDE
# ============================================================================

def check_overlap(
    listing_id: str,
    start_date,
    end_date,
    exclude_block_id: Optional[UUID] = None,
    **options,
) -> List[Conflict]:
    return build_detector().check_overlap(listing_id, start_date, end_date, exclude_block_id, **options)


def check_availability(listing_id: str, start_date, end_date) -> AvailabilityCheck:
    return build_queries().check_availability(listing_id, start_date, end_date)


def get_calendar(listing_id: str, listing_type: Optional[str], start_date, end_date) -> List[CalendarDay]:
    return build_queries().get_calendar(listing_id, listing_type, start_date, end_date)


def get_analytics(listing_id: str, listing_type: Optional[str], start_date, end_date) -> AvailabilityAnalytics:
    return build_queries().get_analytics(listing_id, listing_type, start_date, end_date)


def export_calendar(listing_id: str, listing_type: Optional[str], start_date, end_date) -> str:
    return build_queries().export_calendar(listing_id, listing_type, start_date, end_date)


# ============================================================================
# NOTIFICATIONS
# ============================================================================

def build_outbox_relay() -> OutboxRelay:
    from apps.notifications.services import NotificationService

    return OutboxRelay(
        DjangoNotificationOutbox(),
        DjangoAvailabilityBlockRepository(),
        ConflictNotifier(DjangoBookingReader(), NotificationService()),
        batch_size=_setting("AVAILABILITY_OUTBOX_BATCH_SIZE", 100),
        max_attempts=_setting("AVAILABILITY_OUTBOX_MAX_ATTEMPTS", 5),
    )


def dispatch_conflict_notifications() -> DrainResult:
    """Deliver pending conflict notifications from the outbox."""
    return build_outbox_relay().drain()
