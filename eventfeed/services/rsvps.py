"""RSVP lookups shown next to feed entries (attendee avatars, "I'm going" state)."""
from __future__ import annotations

from typing import Dict, Iterable, List

from eventfeed.models.rsvp import MISSING_ATTENDEE, RSVP, Attendee
from eventfeed.services.event_store import EventStore, StoreError
from eventfeed.utils.logger import logger


async def fetch_event_rsvps(store: EventStore, event_ids: Iterable[str]) -> Dict[str, List[Attendee]]:
    """Group attendees by event for the given events."""
    event_ids = list(event_ids)
    if not event_ids:
        return {}

    logger.debug("Fetching RSVPs for events", extra={"count": len(event_ids)})
    try:
        rows = await store.list_rsvps_for_events(event_ids)
    except StoreError:
        logger.error("Error fetching RSVPs", extra={"count": len(event_ids)})
        raise

    attendees: Dict[str, List[Attendee]] = {}
    for row in rows:
        rsvp = RSVP.model_validate(row)
        attendees.setdefault(rsvp.event_id, []).append(rsvp.profiles or MISSING_ATTENDEE.model_copy())
    return attendees


async def fetch_user_rsvps(store: EventStore, profile_id: str | None) -> List[str]:
    """Ids of the events a profile has RSVPed to."""
    if not profile_id:
        return []
    try:
        return await store.list_event_ids_rsvped_by(profile_id)
    except StoreError:
        logger.error("Error fetching user RSVPs", extra={"profile_id": profile_id})
        raise
