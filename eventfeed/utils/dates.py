"""Local wall-clock helpers for day boundaries.

"Today" and the selected-day filter are evaluated in the community's local
timezone, not in UTC.
"""
from __future__ import annotations

import os
from datetime import date, datetime, time, timedelta
from typing import Tuple
from zoneinfo import ZoneInfo

LOCAL_TZ = ZoneInfo(os.getenv("EVENTS_TIMEZONE", "Europe/Zurich"))

END_OF_DAY = time(23, 59, 59, 999000)


def local_now() -> datetime:
    return datetime.now(LOCAL_TZ)


def day_bounds(day: date, tz: ZoneInfo = LOCAL_TZ) -> Tuple[datetime, datetime]:
    """Return the first and last instant of ``day`` (00:00:00.000 to 23:59:59.999)."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day, END_OF_DAY, tzinfo=tz)
    return start, end


def today_bounds(now: datetime, tz: ZoneInfo = LOCAL_TZ) -> Tuple[datetime, datetime]:
    """Bounds of the local calendar day that contains ``now``."""
    return day_bounds(now.astimezone(tz).date(), tz)


def hours_ago(now: datetime, hours: int) -> datetime:
    return now - timedelta(hours=hours)
