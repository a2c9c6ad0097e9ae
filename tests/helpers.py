"""Shared test doubles for the event feed tests.

- InMemoryEventStore: an EventStore over plain row dicts that records every
  call, can be told to fail specific queries, and can hold list_events on a
  gate to simulate a slow response
- make_event: row factory shaped like the Supabase ``events`` select
- VirtualSleep: injectable sleep for driving refresh timers deterministically
"""

import asyncio
from datetime import datetime, timedelta

from eventfeed.models.event import Event
from eventfeed.services.event_store import StoreError
from eventfeed.utils.dates import LOCAL_TZ

NOW = datetime(2026, 10, 16, 8, 0, tzinfo=LOCAL_TZ)


def make_event(event_id, start, end=None, created_at=None, created_by="host-1", tags=(), **extra):
    row = {
        "id": event_id,
        "title": f"Event {event_id}",
        "description": None,
        "start_date": start,
        "end_date": end or start + timedelta(hours=1),
        "is_all_day": False,
        "timezone": "Europe/Zurich",
        "location_id": None,
        "location_text": "Main hall",
        "color": "#1a73e8",
        "created_by": created_by,
        "created_at": created_at or start - timedelta(days=7),
        "recurring_pattern_id": None,
        "is_recurring_instance": False,
        "profiles": {"id": created_by, "username": f"user-{created_by}"},
        "locations": None,
        "event_tags": [{"tags": {"id": tag, "name": tag.title()}} for tag in tags],
    }
    row.update(extra)
    return row


class InMemoryEventStore:
    def __init__(self, events=(), rsvps=(), co_hosts=(), fail_on=()):
        self.events = list(events)
        self.rsvps = list(rsvps)
        self.co_hosts = list(co_hosts)
        self.fail_on = set(fail_on)
        self.calls = []
        self.gate = None

    def _record(self, name, *args):
        self.calls.append((name, args))
        if name in self.fail_on:
            raise StoreError(f"{name} failed", table=name)

    def calls_to(self, name):
        return [args for call, args in self.calls if call == name]

    def _matching(self, predicate):
        return [row for row in self.events if predicate.matches(Event.model_validate(row))]

    async def list_events(self, predicate, offset, limit):
        self._record("list_events", predicate, offset, limit)
        if self.gate is not None:
            await self.gate.wait()
        rows = sorted(self._matching(predicate), key=lambda row: row["start_date"], reverse=predicate.descending)
        return rows[offset:offset + limit]

    async def count_events(self, predicate):
        self._record("count_events", predicate)
        return len(self._matching(predicate))

    async def list_event_ids_by_any_tag(self, tag_ids):
        self._record("list_event_ids_by_any_tag", list(tag_ids))
        wanted = set(tag_ids)
        events = [Event.model_validate(row) for row in self.events]
        return [event.id for event in events if wanted.intersection(event.tag_ids)]

    async def list_event_ids_rsvped_by(self, profile_id):
        self._record("list_event_ids_rsvped_by", profile_id)
        return [r["event_id"] for r in self.rsvps if r["profile_id"] == profile_id]

    async def list_event_ids_cohosted_by(self, profile_id):
        self._record("list_event_ids_cohosted_by", profile_id)
        return [c["event_id"] for c in self.co_hosts if c["profile_id"] == profile_id]

    async def list_rsvps_for_events(self, event_ids):
        self._record("list_rsvps_for_events", list(event_ids))
        wanted = set(event_ids)
        return [r for r in self.rsvps if r["event_id"] in wanted]


class VirtualSleep:
    """Sleep replacement whose clock only moves when ``advance`` is called."""

    def __init__(self):
        self.now = 0.0
        self._sleepers = []

    async def __call__(self, delay):
        fut = asyncio.get_running_loop().create_future()
        self._sleepers.append((self.now + delay, fut))
        await fut

    @property
    def pending(self):
        return sum(1 for _, fut in self._sleepers if not fut.done())

    async def settle(self):
        for _ in range(20):
            await asyncio.sleep(0)

    async def advance(self, seconds):
        await self.settle()
        self.now += seconds
        due = [fut for wake_at, fut in self._sleepers if wake_at <= self.now]
        self._sleepers = [(w, f) for w, f in self._sleepers if w > self.now]
        for fut in due:
            if not fut.done():
                fut.set_result(None)
        await self.settle()
