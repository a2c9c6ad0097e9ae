"""Pydantic models for events and their joined associations."""
from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, field_validator


class EventProfile(BaseModel):
    id: str
    username: str | None = None


class EventLocation(BaseModel):
    name: str
    building: str | None = None
    floor: str | None = None


class Tag(BaseModel):
    id: str
    name: str


class EventTagLink(BaseModel):
    tags: Tag


class Event(BaseModel):
    """An event row as returned by the store, joins included."""

    id: str
    title: str
    description: str | None = None
    start_date: datetime
    end_date: datetime
    is_all_day: bool = False
    timezone: str = "Europe/Zurich"
    location_id: str | None = None
    location_text: str | None = None
    color: str | None = None
    speakers: str | None = None
    av_needs: str | None = None
    link: str | None = None
    created_by: str
    created_at: datetime
    recurring_pattern_id: str | None = None
    is_recurring_instance: bool = False
    parent_event_id: str | None = None
    is_exception: bool | None = None
    instance_date: str | None = None
    meerkat_enabled: bool | None = None
    meerkat_url: str | None = None
    profiles: EventProfile | None = None
    locations: EventLocation | None = None
    event_tags: List[EventTagLink] = []

    @field_validator("event_tags", mode="before")
    @classmethod
    def _tags_as_list(cls, v):
        # PostgREST returns null when the relation is empty or not embedded
        return v if isinstance(v, list) else []

    @property
    def tag_ids(self) -> List[str]:
        return [link.tags.id for link in self.event_tags]
