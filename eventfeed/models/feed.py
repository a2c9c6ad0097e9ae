"""Pydantic models describing feed requests and feed state."""
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import FrozenSet, List

from pydantic import BaseModel, ConfigDict, field_validator

from eventfeed.models.event import Event


class TabType(str, Enum):
    TODAY = "today"
    UPCOMING = "upcoming"
    GOING = "going"
    HOSTING = "hosting"
    PAST = "past"
    NEW = "new"
    ALL = "all"

    @classmethod
    def parse(cls, value: "str | TabType | None") -> "TabType":
        """Map a tab name to a TabType; unknown names mean the default/search view."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.ALL

    @property
    def needs_profile(self) -> bool:
        return self in (TabType.GOING, TabType.HOSTING)

    @property
    def descending(self) -> bool:
        return self is TabType.PAST


class FeedFilters(BaseModel):
    """Tag and day filters applied on top of a tab."""

    model_config = ConfigDict(frozen=True)

    tag_ids: FrozenSet[str] = frozenset()
    selected_date: date | None = None

    @field_validator("tag_ids", mode="before")
    @classmethod
    def _as_frozenset(cls, v):
        if v is None:
            return frozenset()
        if isinstance(v, str):
            return frozenset([v])
        return frozenset(v)


class FeedPage(BaseModel):
    events: List[Event] = []
    has_more: bool = False


class FeedState(BaseModel):
    """Snapshot of an EventFeedController, safe to hand to UI code."""

    tab: TabType
    events: List[Event] = []
    page: int = 0
    has_more: bool = True
    is_loading: bool = False
    is_fetching_more: bool = False
    error: str | None = None
    last_refresh_time: datetime | None = None
