"""EventStore boundary consumed by the feed.

The feed never talks to Supabase directly; it goes through an object that
implements :class:`EventStore`. ``SupabaseEventStore`` is the production
implementation.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from eventfeed.services.predicate import Predicate


class StoreError(Exception):
    """A query against the event store failed (network, auth or validation)."""

    def __init__(self, message: str, table: str | None = None) -> None:
        super().__init__(message)
        self.table = table


class EmptyPrecondition(Exception):
    """A required filter input is missing, so the result is empty by definition."""


class EventStore(Protocol):
    async def list_events(self, predicate: "Predicate", offset: int, limit: int) -> List[Dict[str, Any]]:
        ...

    async def count_events(self, predicate: "Predicate") -> int:
        ...

    async def list_event_ids_by_any_tag(self, tag_ids: Iterable[str]) -> List[str]:
        ...

    async def list_event_ids_rsvped_by(self, profile_id: str) -> List[str]:
        ...

    async def list_event_ids_cohosted_by(self, profile_id: str) -> List[str]:
        ...

    async def list_rsvps_for_events(self, event_ids: Iterable[str]) -> List[Dict[str, Any]]:
        ...
