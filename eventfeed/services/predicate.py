"""Tab-scoped query construction shared by the list and count fetches.

Building a feed query happens in two steps:

1. :func:`resolve_membership` runs the sub-queries whose results become
   filter inputs (events carrying any of the requested tags, events the
   profile RSVPed to, events the profile co-hosts). They run one after the
   other, before the main query is issued.
2. :func:`build_predicate` is a pure function turning the tab, the filters
   and the resolved id sets into a :class:`Predicate`. Both the paginated
   list and the count go through it, so they always agree on cardinality.

Stores translate a Predicate into their own query language;
:meth:`Predicate.matches` is the reference evaluation against one event.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import FrozenSet, Optional, Tuple

from eventfeed.models.event import Event
from eventfeed.models.feed import FeedFilters, TabType
from eventfeed.services.event_store import EmptyPrecondition, EventStore
from eventfeed.utils.dates import day_bounds, hours_ago, today_bounds
from eventfeed.utils.logger import logger

NEW_EVENT_WINDOW_HOURS = 24

Window = Tuple[datetime, datetime]


@dataclass(frozen=True)
class Membership:
    """Id sets resolved by sub-queries; None means the constraint does not apply."""

    tagged_ids: Optional[FrozenSet[str]] = None
    rsvped_ids: Optional[FrozenSet[str]] = None
    cohosted_ids: Optional[FrozenSet[str]] = None


@dataclass(frozen=True)
class Predicate:
    tab: TabType
    event_ids: Optional[FrozenSet[str]] = None
    hosted_by: Optional[str] = None
    cohosted_ids: FrozenSet[str] = frozenset()
    overlaps: Optional[Window] = None
    start_between: Optional[Window] = None
    start_after: Optional[datetime] = None
    end_before: Optional[datetime] = None
    created_since: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        """True when an id restriction resolved to nothing, so no query is needed."""
        return self.event_ids is not None and not self.event_ids

    @property
    def descending(self) -> bool:
        return self.tab.descending

    def matches(self, event: Event) -> bool:
        if self.event_ids is not None and event.id not in self.event_ids:
            return False
        if self.hosted_by is not None:
            if event.created_by != self.hosted_by and event.id not in self.cohosted_ids:
                return False
        if self.overlaps is not None:
            day_start, day_end = self.overlaps
            if event.start_date > day_end or event.end_date < day_start:
                return False
        if self.start_between is not None:
            low, high = self.start_between
            if not low <= event.start_date <= high:
                return False
        if self.start_after is not None and not event.start_date > self.start_after:
            return False
        if self.end_before is not None and not event.end_date < self.end_before:
            return False
        if self.created_since is not None and event.created_at < self.created_since:
            return False
        return True


async def resolve_membership(
    store: EventStore,
    tab: TabType,
    filters: FeedFilters,
    profile_id: str | None = None,
) -> Membership:
    """Run the membership sub-queries needed for ``tab`` and ``filters``.

    Raises EmptyPrecondition, without touching the store, when the tab needs a
    profile and none is given. Store failures propagate as StoreError.
    """
    if tab.needs_profile and not profile_id:
        raise EmptyPrecondition(f"tab {tab.value!r} requires a profile id")

    tagged_ids = None
    if filters.tag_ids:
        tagged_ids = frozenset(await store.list_event_ids_by_any_tag(sorted(filters.tag_ids)))
        if not tagged_ids:
            logger.debug("No events carry the selected tags", extra={"tags": sorted(filters.tag_ids)})
            return Membership(tagged_ids=tagged_ids)

    rsvped_ids = None
    cohosted_ids = None
    if tab is TabType.GOING:
        rsvped_ids = frozenset(await store.list_event_ids_rsvped_by(profile_id))
    elif tab is TabType.HOSTING:
        cohosted_ids = frozenset(await store.list_event_ids_cohosted_by(profile_id))

    return Membership(tagged_ids=tagged_ids, rsvped_ids=rsvped_ids, cohosted_ids=cohosted_ids)


def _intersect(current: Optional[FrozenSet[str]], other: FrozenSet[str]) -> FrozenSet[str]:
    return other if current is None else current & other


def build_predicate(
    tab: TabType,
    filters: FeedFilters,
    membership: Membership,
    now: datetime,
    profile_id: str | None = None,
) -> Predicate:
    """Turn a tab, its filters and resolved membership into a Predicate."""
    if tab.needs_profile and not profile_id:
        raise EmptyPrecondition(f"tab {tab.value!r} requires a profile id")

    event_ids = membership.tagged_ids
    overlaps = day_bounds(filters.selected_date) if filters.selected_date else None
    fields = {}

    if tab is TabType.TODAY:
        fields["start_between"] = today_bounds(now)
    elif tab is TabType.UPCOMING:
        fields["start_after"] = now
    elif tab is TabType.GOING:
        event_ids = _intersect(event_ids, membership.rsvped_ids or frozenset())
    elif tab is TabType.HOSTING:
        fields["hosted_by"] = profile_id
        fields["cohosted_ids"] = membership.cohosted_ids or frozenset()
    elif tab is TabType.PAST:
        fields["end_before"] = now
    elif tab is TabType.NEW:
        fields["created_since"] = hours_ago(now, NEW_EVENT_WINDOW_HOURS)

    return Predicate(tab=tab, event_ids=event_ids, overlaps=overlaps, **fields)
