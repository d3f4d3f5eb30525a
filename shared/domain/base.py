"""
Base Domain Classes

Building blocks shared by the availability and booking contexts:
- Entity: identity plus creation and modification timestamps
- ValueObject: immutable, compared by value
- Aggregate: consistency boundary that records domain events
- DomainEvent: a fact recorded by an aggregate, published after commit

Entities and events are keyword-only dataclasses so that subclasses can
declare required fields after the inherited defaults. Timestamps are
timezone-aware UTC.
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List
from uuid import UUID, uuid4


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(kw_only=True, eq=False)
class Entity(ABC):
    """
    Base class for all entities

    Two entities are equal if they are of the same class and share an id;
    every other attribute may change over the entity's life.
    """
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def touch(self):
        """Mark the entity as modified"""
        self.updated_at = utcnow()


@dataclass(frozen=True)
class ValueObject(ABC):
    """Immutable value without identity, equal when all attributes are equal"""


@dataclass(kw_only=True, eq=False)
class Aggregate(Entity):
    """
    Base class for aggregate roots

    Events recorded with ``add_event`` stay on the aggregate until a unit
    of work takes them with ``pull_events``; they are published only if
    that unit commits.
    """
    _events: List['DomainEvent'] = field(default_factory=list, repr=False, init=False)

    def add_event(self, event: 'DomainEvent'):
        self._events.append(event)

    @property
    def events(self) -> List['DomainEvent']:
        """Copy of the events recorded so far"""
        return self._events.copy()

    def pull_events(self) -> List['DomainEvent']:
        """Return the recorded events and forget them"""
        events, self._events = self._events, []
        return events


@dataclass(kw_only=True)
class DomainEvent:
    """Something that happened to an aggregate"""
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=utcnow)
    aggregate_id: UUID | None = None

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict:
        return {
            'event_id': str(self.event_id),
            'event_type': self.event_type,
            'occurred_at': self.occurred_at.isoformat(),
            'aggregate_id': str(self.aggregate_id) if self.aggregate_id else None,
        }
