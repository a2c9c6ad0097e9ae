"""Events router: tab feed pages, count badges and RSVP lookups.

StoreError is not caught here; the app-level handler in main turns it into
a 500.
"""
from __future__ import annotations

from datetime import date
from functools import lru_cache
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from eventfeed.models.event import Event
from eventfeed.models.feed import FeedFilters
from eventfeed.models.rsvp import Attendee
from eventfeed.services.event_feed import EVENTS_PER_PAGE, count_tab_events, fetch_feed_page
from eventfeed.services.event_store import EventStore
from eventfeed.services.rsvps import fetch_event_rsvps, fetch_user_rsvps
from eventfeed.services.supabase_client import SupabaseEventStore

router = APIRouter()


@lru_cache(maxsize=1)
def get_event_store() -> EventStore:
    return SupabaseEventStore()


class FeedPageOut(BaseModel):
    events: List[Event]
    page: int
    page_size: int
    has_more: bool


class CountOut(BaseModel):
    count: int


@router.get("", response_model=FeedPageOut)
async def list_events(
    tab: str = Query("all", description="today, upcoming, going, hosting, past, new or all"),
    tags: List[str] = Query(default=[], description="Tag ids; events with any of them match"),
    selected_date: Optional[date] = Query(None, alias="date"),
    profile_id: Optional[str] = Query(None),
    page: int = Query(0, ge=0),
    page_size: int = Query(EVENTS_PER_PAGE, ge=1, le=100),
    store: EventStore = Depends(get_event_store),
) -> FeedPageOut:
    """Return one page of a feed tab."""
    filters = FeedFilters(tag_ids=tags, selected_date=selected_date)
    result = await fetch_feed_page(store, tab, filters, page, page_size, profile_id)
    return FeedPageOut(events=result.events, page=page, page_size=page_size, has_more=result.has_more)


@router.get("/count", response_model=CountOut)
async def count_events(
    tab: str = Query("all"),
    tags: List[str] = Query(default=[]),
    selected_date: Optional[date] = Query(None, alias="date"),
    profile_id: Optional[str] = Query(None),
    store: EventStore = Depends(get_event_store),
) -> CountOut:
    """Return the number of events a tab would list, for badges."""
    filters = FeedFilters(tag_ids=tags, selected_date=selected_date)
    return CountOut(count=await count_tab_events(store, tab, filters, profile_id))


@router.get("/rsvps", response_model=Dict[str, List[Attendee]])
async def event_rsvps(
    event_ids: List[str] = Query(default=[]),
    store: EventStore = Depends(get_event_store),
) -> Dict[str, List[Attendee]]:
    return await fetch_event_rsvps(store, event_ids)


@router.get("/rsvps/{profile_id}", response_model=List[str])
async def user_rsvps(profile_id: str, store: EventStore = Depends(get_event_store)) -> List[str]:
    return await fetch_user_rsvps(store, profile_id)
