"""Test fixtures for the event feed test suite.

Test doubles live in tests/helpers.py; this module wires them into fixtures:
- now / clock: the fixed "now" (2026-10-16 08:00 local) used by feed tests
- week_of_events: seven events at noon on consecutive days starting today
- store: an InMemoryEventStore seeded with week_of_events
"""

from datetime import timedelta

import pytest

from tests.helpers import NOW, InMemoryEventStore, make_event


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def week_of_events():
    return [make_event(f"day-{i}", NOW.replace(hour=12) + timedelta(days=i)) for i in range(7)]


@pytest.fixture
def store(week_of_events):
    return InMemoryEventStore(events=week_of_events)
