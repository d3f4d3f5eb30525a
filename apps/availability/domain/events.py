"""
Availability Domain Events

Events raised by availability aggregates. They are published on the
message bus after the unit of work that produced them commits.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List
from uuid import UUID

from shared.domain.base import DomainEvent
from shared.domain.value_objects import DateRange


# ===== One-off block events =====

@dataclass
class BlockCreated(DomainEvent):
    """
    Event: An availability block was created

    Triggers:
    - Dispatch the conflict notification outbox
    """
    block_id: UUID
    listing_id: str
    listing_type: str
    dates: DateRange
    created_by: str


@dataclass
class BlockDeleted(DomainEvent):
    """Event: A one-off availability block was removed"""
    block_id: UUID
    listing_id: str


# ===== Recurring pattern events =====

@dataclass
class RecurringBlockCreated(DomainEvent):
    """Event: A weekly unavailability pattern was created"""
    recurring_block_id: UUID
    listing_id: str
    days_of_week: List[int] = field(default_factory=list)


@dataclass
class RecurringBlockUpdated(DomainEvent):
    """Event: A pattern was changed in place (scope 'all')"""
    recurring_block_id: UUID
    listing_id: str
    changed_fields: List[str] = field(default_factory=list)


@dataclass
class RecurringBlockSplit(DomainEvent):
    """
    Event: A pattern was split at a boundary date (scope 'future')

    The original pattern now ends the day before ``boundary``; the new
    pattern starts on ``boundary``.
    """
    original_id: UUID
    new_id: UUID
    listing_id: str
    boundary: date


@dataclass
class RecurringBlockTruncated(DomainEvent):
    """Event: A pattern stops generating occurrences from ``boundary`` on"""
    recurring_block_id: UUID
    listing_id: str
    boundary: date


@dataclass
class RecurringBlockDeleted(DomainEvent):
    """Event: A pattern was removed entirely"""
    recurring_block_id: UUID
    listing_id: str
