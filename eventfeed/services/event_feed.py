"""Paginated, filterable, auto-refreshing event feed.

``fetch_feed_page`` and ``count_tab_events`` are stateless: one page of a
tab, or the tab's total. ``EventFeedController`` keeps the incremental state
UI code needs for infinite scrolling (loaded pages, current page, whether
more rows exist) and re-queries the active page on a timer.
"""
from __future__ import annotations

import asyncio
import os
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from eventfeed.models.event import Event
from eventfeed.models.feed import FeedFilters, FeedPage, FeedState, TabType
from eventfeed.services.event_store import EmptyPrecondition, EventStore, StoreError
from eventfeed.services.predicate import Predicate, build_predicate, resolve_membership
from eventfeed.services.refresh_timer import RefreshTimer, Sleep
from eventfeed.utils.dates import local_now
from eventfeed.utils.logger import logger

EVENTS_PER_PAGE = int(os.getenv("EVENTS_PER_PAGE", "5"))
REFRESH_INTERVAL_SECONDS = float(os.getenv("EVENT_REFRESH_SECONDS", "60"))

Clock = Callable[[], datetime]


async def _predicate_for(
    store: EventStore,
    tab: TabType,
    filters: FeedFilters,
    profile_id: str | None,
    now: datetime,
) -> Optional[Predicate]:
    """Resolve membership and build the predicate; None means an empty result."""
    try:
        membership = await resolve_membership(store, tab, filters, profile_id)
        predicate = build_predicate(tab, filters, membership, now, profile_id)
    except EmptyPrecondition as exc:
        logger.debug("Empty feed precondition", extra={"tab": tab.value, "reason": str(exc)})
        return None
    if predicate.is_empty:
        return None
    return predicate


async def fetch_feed_page(
    store: EventStore,
    tab: "TabType | str",
    filters: FeedFilters | None = None,
    page: int = 0,
    page_size: int = EVENTS_PER_PAGE,
    profile_id: str | None = None,
    now: datetime | None = None,
) -> FeedPage:
    """Fetch one page of a tab. ``has_more`` is set when the page came back full."""
    tab = TabType.parse(tab)
    filters = filters or FeedFilters()
    now = now or local_now()

    predicate = await _predicate_for(store, tab, filters, profile_id, now)
    if predicate is None:
        return FeedPage(events=[], has_more=False)

    try:
        rows = await store.list_events(predicate, page * page_size, page_size)
    except StoreError:
        logger.error("Error fetching events", extra={"tab": tab.value, "page": page})
        raise
    events = [Event.model_validate(row) for row in rows]
    return FeedPage(events=events, has_more=len(events) == page_size)


async def fetch_tab_events(
    store: EventStore,
    tab: "TabType | str",
    filters: FeedFilters | None = None,
    page: int = 0,
    page_size: int = EVENTS_PER_PAGE,
    profile_id: str | None = None,
    now: datetime | None = None,
) -> List[Event]:
    page_result = await fetch_feed_page(store, tab, filters, page, page_size, profile_id, now)
    return page_result.events


async def count_tab_events(
    store: EventStore,
    tab: "TabType | str",
    filters: FeedFilters | None = None,
    profile_id: str | None = None,
    now: datetime | None = None,
) -> int:
    """Total number of events the tab would list across all pages."""
    tab = TabType.parse(tab)
    filters = filters or FeedFilters()
    now = now or local_now()

    predicate = await _predicate_for(store, tab, filters, profile_id, now)
    if predicate is None:
        return 0

    try:
        return await store.count_events(predicate)
    except StoreError:
        logger.error("Error counting events", extra={"tab": tab.value})
        raise


class EventFeedController:
    """Infinite-scroll state for one tab of the event feed.

    Pages are kept per slot: page 0 always replaces what was loaded and later
    pages append. A refresh re-reads the whole loaded window (pages 0 through
    the active one) in a single query and re-slices it, so rows inserted or
    deleted upstream never leave duplicates or stale entries behind. Every
    fetch is tagged with the generation and page it was issued under; a
    result that comes back after a reset or an input change is dropped.

    ``skip_reset`` only turns :meth:`reset` into a no-op for re-renders with
    unchanged inputs; an actual tab, filter or profile change always clears
    the loaded pages.

    The refresh timer is only armed by :meth:`start` (or ``async with``) and
    must be released with :meth:`aclose` (or :meth:`close` outside a loop).
    """

    def __init__(
        self,
        store: EventStore,
        tab: "TabType | str",
        filters: FeedFilters | None = None,
        profile_id: str | None = None,
        *,
        page_size: int = EVENTS_PER_PAGE,
        skip_reset: bool = False,
        refresh_interval: float = REFRESH_INTERVAL_SECONDS,
        clock: Clock = local_now,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._store = store
        self.tab = TabType.parse(tab)
        self.filters = filters or FeedFilters()
        self.profile_id = profile_id
        self.page_size = page_size
        self.skip_reset = skip_reset
        self._clock = clock

        self._pages: List[List[Event]] = []
        self._page = 0
        self._has_more = True
        self._generation = 0
        self._inflight: Optional[Tuple[int, int]] = None
        self._error: Optional[str] = None
        self._last_refresh_time: Optional[datetime] = None
        self._timer = RefreshTimer(refresh_interval, self.refresh, sleep=sleep, name=self._timer_name())

    # -- state -----------------------------------------------------------

    @property
    def events(self) -> List[Event]:
        return [event for page in self._pages for event in page]

    @property
    def page(self) -> int:
        return self._page

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def enabled(self) -> bool:
        return not (self.tab.needs_profile and not self.profile_id)

    @property
    def is_fetching(self) -> bool:
        return self._inflight is not None

    @property
    def timer(self) -> RefreshTimer:
        return self._timer

    @property
    def state(self) -> FeedState:
        return FeedState(
            tab=self.tab,
            events=self.events,
            page=self._page,
            has_more=self._has_more,
            is_loading=self.is_fetching and self._page == 0,
            is_fetching_more=self.is_fetching and self._page > 0,
            error=self._error,
            last_refresh_time=self._last_refresh_time,
        )

    # -- lifecycle -------------------------------------------------------

    def start(self) -> None:
        self._timer.start()

    def close(self) -> None:
        self._timer.stop()

    async def aclose(self) -> None:
        await self._timer.aclose()

    async def __aenter__(self) -> "EventFeedController":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _timer_name(self) -> str:
        return f"feed:{self.tab.value}"

    # -- inputs ----------------------------------------------------------

    def _invalidate(self) -> None:
        self._generation += 1
        self._inflight = None

    def set_tab(self, tab: "TabType | str") -> None:
        """Switch tabs: drop in-flight results, reset, and re-arm the refresh timer."""
        tab = TabType.parse(tab)
        if tab is self.tab:
            return
        self.tab = tab
        self._clear()
        if self._timer.running:
            self._timer.restart(name=self._timer_name())

    def set_filters(self, filters: FeedFilters) -> None:
        if filters == self.filters:
            return
        self.filters = filters
        self._clear()

    def set_profile(self, profile_id: str | None) -> None:
        if profile_id == self.profile_id:
            return
        self.profile_id = profile_id
        self._clear()

    # -- transitions -----------------------------------------------------

    def reset(self) -> None:
        if self.skip_reset:
            logger.info("Skipping reset due to skip_reset option", extra={"tab": self.tab.value})
            return
        self._clear()

    def _clear(self) -> None:
        logger.debug("Resetting events", extra={"tab": self.tab.value})
        self._invalidate()
        self._pages = []
        self._page = 0
        self._has_more = True
        self._error = None

    async def load(self) -> bool:
        """Fetch the current page. Returns False if the result was discarded or skipped."""
        if self.is_fetching:
            return False
        return await self._fetch(self._page)

    async def load_more(self) -> bool:
        """Fetch the next page, unless a fetch is running or the feed is exhausted."""
        if self.is_fetching or not self._has_more:
            logger.debug(
                "load_more ignored",
                extra={"tab": self.tab.value, "fetching": self.is_fetching, "has_more": self._has_more},
            )
            return False
        if not self._pages:
            return await self._fetch(self._page)

        self._page += 1
        try:
            return await self._fetch(self._page)
        except StoreError:
            self._page -= 1
            raise

    async def refresh(self) -> bool:
        """Re-read every loaded page in one query and re-slice it into pages."""
        self._last_refresh_time = self._clock()
        logger.info("Auto-refreshing events", extra={"tab": self.tab.value, "page": self._page})
        if self.is_fetching:
            return False

        window = (self._page + 1) * self.page_size
        result = await self._query((self._generation, self._page), 0, window)
        if result is None:
            return False

        rows = result.events
        self._pages = [rows[i:i + self.page_size] for i in range(0, len(rows), self.page_size)] or [[]]
        # the window may have shrunk below the active page
        self._page = min(self._page, len(self._pages) - 1)
        self._has_more = result.has_more
        self._error = None
        return True

    async def count(self) -> int:
        return await count_tab_events(self._store, self.tab, self.filters, self.profile_id, self._clock())

    # -- internals -------------------------------------------------------

    def _is_current(self, token: Tuple[int, int]) -> bool:
        return token == (self._generation, self._page)

    async def _query(self, token: Tuple[int, int], page: int, page_size: int) -> Optional[FeedPage]:
        """Run one page query under ``token``; None when the result went stale."""
        self._inflight = token
        try:
            result = await fetch_feed_page(
                self._store,
                self.tab,
                self.filters,
                page,
                page_size,
                self.profile_id,
                self._clock(),
            )
        except StoreError as exc:
            if not self._is_current(token):
                logger.debug("Discarding stale feed error", extra={"tab": self.tab.value, "page": page})
                return None
            self._error = str(exc)
            raise
        finally:
            if self._inflight == token:
                self._inflight = None

        if not self._is_current(token):
            logger.debug("Discarding stale feed page", extra={"tab": self.tab.value, "page": page})
            return None
        return result

    async def _fetch(self, page: int) -> bool:
        result = await self._query((self._generation, page), page, self.page_size)
        if result is None:
            return False

        if page == 0:
            self._pages = [result.events]
        elif page < len(self._pages):
            self._pages[page] = result.events
        else:
            self._pages.append(result.events)
        self._has_more = result.has_more
        self._error = None
        return True
