"""Pydantic models for RSVPs."""
from __future__ import annotations

from pydantic import BaseModel


class Attendee(BaseModel):
    id: str
    username: str | None = None
    avatar_url: str | None = None


MISSING_ATTENDEE = Attendee(id="-", username="-", avatar_url="")


class RSVP(BaseModel):
    event_id: str
    profile_id: str
    profiles: Attendee | None = None
