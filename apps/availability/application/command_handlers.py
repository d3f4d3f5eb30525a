"""
Availability Command Handlers

Use cases that write availability state. Each handler runs its
check-then-write inside one unit of work while holding the listing lock,
so conflicting writers on the same listing are serialized.

Commands:
- CreateBlockCommand: Create a one-off unavailability block
- DeleteBlockCommand: Remove a one-off block
- CreateRecurringBlockCommand: Create a weekly pattern
- UpdateRecurringBlockCommand: Change a pattern, in place or from a date on
- DeleteRecurringBlockCommand: Remove a pattern, entirely or from a date on
- CreateBulkBlocksCommand: Create the same block on many listings
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID
import logging

from shared.application.uow import AbstractUnitOfWork, DjangoUnitOfWork
from shared.domain.value_objects import to_calendar_date

from apps.availability.domain.conflicts import ConflictDetector
from apps.availability.domain.entities import (
    AvailabilityBlock,
    Conflict,
    RecurringBlock,
    Scope,
    build_date_range,
)
from apps.availability.domain.exceptions import (
    AvailabilityError,
    BlockNotFound,
    BookingConflict,
    InvalidScope,
)

logger = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], AbstractUnitOfWork]


# ===== Commands =====

@dataclass
class CreateBlockCommand:
    """Command to mark a listing unavailable for a date range"""
    listing_id: str
    listing_type: str
    start_date: Any
    end_date: Any
    created_by: str
    reason: str = ''


@dataclass
class DeleteBlockCommand:
    block_id: UUID


@dataclass
class CreateRecurringBlockCommand:
    """Command to create a weekly unavailability pattern"""
    listing_id: str
    listing_type: str
    days_of_week: List[int]
    start_date: Any
    created_by: str
    end_date: Any = None
    reason: str = ''


@dataclass
class UpdateRecurringBlockCommand:
    """
    Command to change a pattern

    ``changes`` holds only the fields being changed; an ``end_date`` of
    None makes the pattern open-ended. ``update_date`` is required for
    scope 'future'.
    """
    recurring_block_id: UUID
    scope: str
    changes: Dict[str, Any] = field(default_factory=dict)
    update_date: Any = None


@dataclass
class DeleteRecurringBlockCommand:
    recurring_block_id: UUID
    scope: str
    delete_date: Any = None


@dataclass
class CreateBulkBlocksCommand:
    """Command to block the same dates on several listings"""
    listing_ids: List[str]
    listing_type: str
    start_date: Any
    end_date: Any
    created_by: str
    reason: str = ''


# ===== Results =====

@dataclass
class BulkBlockFailure:
    """Why one listing of a bulk request was not blocked"""
    listing_id: str
    reason: str
    message: str
    conflicts: List[Conflict] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {
            'listing_id': self.listing_id,
            'reason': self.reason,
            'message': self.message,
        }
        if self.conflicts:
            data['conflicts'] = [conflict.to_dict() for conflict in self.conflicts]
        return data


@dataclass
class BulkBlockResult:
    """
    Per-listing outcome of a bulk request

    ``successful`` lists listing ids in request order; ``blocks`` holds
    the created block for each of them.
    """
    successful: List[str] = field(default_factory=list)
    failed: List[BulkBlockFailure] = field(default_factory=list)
    blocks: List[AvailabilityBlock] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.successful) + len(self.failed)

    def to_dict(self) -> dict:
        return {
            'successful': list(self.successful),
            'failed': [failure.to_dict() for failure in self.failed],
        }


# ===== Command Handlers =====

class _LockingHandler:
    """Shared wiring for handlers that write under the listing lock"""

    def __init__(self, locker, uow_factory: Optional[UnitOfWorkFactory] = None):
        self.locker = locker
        self.uow_factory = uow_factory or DjangoUnitOfWork


class CreateBlockHandler(_LockingHandler):
    """
    Handler for CreateBlock command

    Strategy:
    1. Validate the date range (no I/O on failure)
    2. Start transaction and lock the listing
    3. Check committed bookings only; other blocks may overlap freely
    4. Persist the block and its outbox entry in the same transaction
    5. Publish BlockCreated after commit
    """

    def __init__(self, block_repo, detector: ConflictDetector, outbox, locker, uow_factory=None):
        super().__init__(locker, uow_factory)
        self.block_repo = block_repo
        self.detector = detector
        self.outbox = outbox

    def handle(self, command: CreateBlockCommand) -> AvailabilityBlock:
        dates = build_date_range(command.start_date, command.end_date)
        listing_id = str(command.listing_id)

        logger.info(
            f"Creating block for {command.listing_type} {listing_id}, dates {dates}"
        )

        with self.uow_factory() as uow:
            self.locker.acquire(listing_id)

            conflicts = self.detector.check_overlap(
                listing_id,
                dates.start_date,
                dates.end_date,
                include_blocks=False,
            )
            if conflicts:
                logger.info(
                    f"Block on listing {listing_id} rejected: "
                    f"{len(conflicts)} committed booking(s) overlap {dates}"
                )
                raise BookingConflict(conflicts)

            block = AvailabilityBlock.create(
                listing_id=listing_id,
                listing_type=command.listing_type,
                start_date=dates.start_date,
                end_date=dates.end_date,
                created_by=command.created_by,
                reason=command.reason,
            )
            self.block_repo.add(block)
            self.outbox.enqueue_block_conflicts(block)
            uow.collect_events(block)

        logger.info(f"Block {block.id} created on listing {listing_id}")
        return block


class DeleteBlockHandler(_LockingHandler):

    def __init__(self, block_repo, locker, uow_factory=None):
        super().__init__(locker, uow_factory)
        self.block_repo = block_repo

    def handle(self, command: DeleteBlockCommand):
        with self.uow_factory() as uow:
            block = self.block_repo.get(command.block_id)
            if block is None:
                raise BlockNotFound(command.block_id)

            self.locker.acquire(block.listing_id)
            self.block_repo.delete(block.id)
            block.mark_deleted()
            uow.collect_events(block)

        logger.info(f"Block {block.id} deleted from listing {block.listing_id}")


class CreateRecurringBlockHandler(_LockingHandler):
    """
    Handler for CreateRecurringBlock command

    Patterns are not checked against bookings: occurrences are evaluated
    when a caller queries a window.
    """

    def __init__(self, pattern_repo, locker, uow_factory=None):
        super().__init__(locker, uow_factory)
        self.pattern_repo = pattern_repo

    def handle(self, command: CreateRecurringBlockCommand) -> RecurringBlock:
        pattern = RecurringBlock.create(
            listing_id=command.listing_id,
            listing_type=command.listing_type,
            days_of_week=command.days_of_week,
            start_date=command.start_date,
            end_date=command.end_date,
            created_by=command.created_by,
            reason=command.reason,
        )

        with self.uow_factory() as uow:
            self.locker.acquire(pattern.listing_id)
            self.pattern_repo.add(pattern)
            uow.collect_events(pattern)

        logger.info(f"Created {pattern} on listing {pattern.listing_id}")
        return pattern


class _PatternMutationHandler(_LockingHandler):

    def __init__(self, pattern_repo, locker, uow_factory=None):
        super().__init__(locker, uow_factory)
        self.pattern_repo = pattern_repo

    @staticmethod
    def _parse_scope(scope, boundary) -> tuple:
        scope = Scope.parse(scope)
        if scope is Scope.FUTURE:
            if boundary is None:
                raise InvalidScope(scope.value, "Scope 'future' requires a date")
            boundary = to_calendar_date(boundary)
        return scope, boundary

    def _load_locked(self, pattern_id: UUID) -> RecurringBlock:
        """Load a pattern, lock its listing, then re-read it under the lock"""
        pattern = self.pattern_repo.get(pattern_id)
        if pattern is None:
            raise BlockNotFound(pattern_id, kind='recurring block')

        self.locker.acquire(pattern.listing_id)

        pattern = self.pattern_repo.get(pattern_id)
        if pattern is None:
            raise BlockNotFound(pattern_id, kind='recurring block')
        return pattern


class UpdateRecurringBlockHandler(_PatternMutationHandler):
    """
    Handler for UpdateRecurringBlock command

    - all: the pattern is changed in place and returned
    - future: the pattern is closed the day before ``update_date`` and a
      new pattern starting on ``update_date`` is returned. When
      ``update_date`` is on or before the pattern's start there is no
      history to keep and the change is applied in place.
    """

    def handle(self, command: UpdateRecurringBlockCommand) -> RecurringBlock:
        scope, boundary = self._parse_scope(command.scope, command.update_date)
        changes = dict(command.changes)
        if scope is Scope.FUTURE:
            changes.pop('start_date', None)

        with self.uow_factory() as uow:
            pattern = self._load_locked(command.recurring_block_id)

            if scope is Scope.ALL or boundary <= pattern.start_date:
                pattern.apply_changes(changes)
                self.pattern_repo.save(pattern)
                uow.collect_events(pattern)
                result = pattern
            else:
                successor = pattern.split_at(boundary, changes)
                self.pattern_repo.save(pattern)
                self.pattern_repo.add(successor)
                uow.collect_events(pattern)
                uow.collect_events(successor)
                result = successor

        logger.info(
            f"Updated recurring block {command.recurring_block_id} "
            f"(scope={scope.value}, boundary={boundary}) -> {result.id}"
        )
        return result


class DeleteRecurringBlockHandler(_PatternMutationHandler):
    """
    Handler for DeleteRecurringBlock command

    - all: the pattern row is removed
    - future: the pattern is truncated to end the day before
      ``delete_date``; removed when nothing before that date remains
    """

    def handle(self, command: DeleteRecurringBlockCommand):
        scope, boundary = self._parse_scope(command.scope, command.delete_date)

        with self.uow_factory() as uow:
            pattern = self._load_locked(command.recurring_block_id)

            if scope is Scope.ALL or boundary <= pattern.start_date:
                self.pattern_repo.delete(pattern.id)
                pattern.mark_deleted()
            else:
                pattern.truncate_from(boundary)
                self.pattern_repo.save(pattern)
            uow.collect_events(pattern)

        logger.info(
            f"Deleted recurring block {command.recurring_block_id} "
            f"(scope={scope.value}, boundary={boundary})"
        )


class CreateBulkBlocksHandler:
    """
    Handler for CreateBulkBlocks command

    Every listing goes through CreateBlockHandler on its own, with its own
    transaction and listing lock. A failure is recorded and processing
    moves on to the next listing.

    Invariant: len(successful) + len(failed) == len(listing_ids)
    """

    INTERNAL_ERROR = 'INTERNAL_ERROR'

    def __init__(self, create_handler: CreateBlockHandler):
        self.create_handler = create_handler

    def handle(self, command: CreateBulkBlocksCommand) -> BulkBlockResult:
        result = BulkBlockResult()

        logger.info(
            f"Bulk block on {len(command.listing_ids)} {command.listing_type} listing(s), "
            f"dates {command.start_date} - {command.end_date}"
        )

        for listing_id in command.listing_ids:
            try:
                block = self.create_handler.handle(CreateBlockCommand(
                    listing_id=listing_id,
                    listing_type=command.listing_type,
                    start_date=command.start_date,
                    end_date=command.end_date,
                    created_by=command.created_by,
                    reason=command.reason,
                ))
            except AvailabilityError as e:
                result.failed.append(BulkBlockFailure(
                    listing_id=str(listing_id),
                    reason=e.code,
                    message=e.message,
                    conflicts=list(getattr(e, 'conflicts', [])),
                ))
            except Exception as e:
                logger.error(f"Bulk block failed for listing {listing_id}: {e}", exc_info=True)
                result.failed.append(BulkBlockFailure(
                    listing_id=str(listing_id),
                    reason=self.INTERNAL_ERROR,
                    message="Unexpected error while creating block",
                ))
            else:
                result.successful.append(str(listing_id))
                result.blocks.append(block)

        logger.info(
            f"Bulk block finished: {len(result.successful)} created, {len(result.failed)} failed"
        )
        return result
