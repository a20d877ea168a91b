"""
pytest configuration and shared fixtures for the Vigil engine tests.

Every engine call takes an explicit reference time, so tests pin "now" to
a fixed instant and build events relative to it. Nothing here touches the
wall clock.
"""

import itertools

import pytest

from backend.models import NormalizedEvent

HOUR_MS = 60 * 60 * 1000

# 2026-01-01T00:00:00Z
FIXED_NOW_MS = 1_767_225_600_000


@pytest.fixture()
def now_ms():
    return FIXED_NOW_MS


@pytest.fixture()
def make_event(now_ms):
    """Factory for NormalizedEvent with sensible defaults.

    `hours_ago` sets the timestamp relative to the fixed now; pass
    `timestamp=None` explicitly for an unknown timestamp.
    """
    ids = itertools.count(1)
    unset = object()

    def _make(
        category="conflict",
        region="Testland",
        lat=0.0,
        lon=0.0,
        severity=None,
        hours_ago=0,
        timestamp=unset,
        id=None,
    ):
        if severity is None:
            severity = {"conflict": 3, "disaster": 3, "politics": 2, "health": 2}.get(category, 1)
        if timestamp is unset:
            timestamp = now_ms - int(hours_ago * HOUR_MS)
        return NormalizedEvent(
            id=id or f"evt-{next(ids)}",
            category=category,
            region=region,
            lat=lat,
            lon=lon,
            severity=severity,
            timestamp=timestamp,
        )

    return _make
