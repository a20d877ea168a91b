"""Vigil — Temporal Decay Weighting.

Step function turning an event's age into a weight. Hot zone clustering
uses it as the mass an event contributes to a cluster; regional scoring
deliberately does not use it.

    age <  6h  → 2.0
    age < 24h  → 1.5
    age >= 24h → 1.0
    unknown    → 0.5
"""

from datetime import datetime, timezone
from typing import Optional

from backend.models import NormalizedEvent

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS

# (max age in hours, weight), first match wins
DECAY_STEPS = (
    (6, 2.0),
    (24, 1.5),
)
STALE_WEIGHT = 1.0
UNKNOWN_WEIGHT = 0.5

TIME_WINDOWS = {
    "6h": 6 * HOUR_MS,
    "24h": 24 * HOUR_MS,
    "72h": 72 * HOUR_MS,
}


def current_millis() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def temporal_weight(event: NormalizedEvent, now_ms: Optional[int] = None) -> float:
    """Weight of an event by age. Future timestamps count as fresh."""
    if event.timestamp is None:
        return UNKNOWN_WEIGHT
    if now_ms is None:
        now_ms = current_millis()

    hours_ago = (now_ms - event.timestamp) / HOUR_MS
    for max_hours, weight in DECAY_STEPS:
        if hours_ago < max_hours:
            return weight
    return STALE_WEIGHT


def ordering_timestamp(event: NormalizedEvent, now_ms: Optional[int] = None) -> int:
    """Timestamp used for sorting only: unknown sorts as "now".

    This is not the same thing as the unknown-timestamp weight above and
    must not be used to compute one.
    """
    if event.timestamp is not None:
        return event.timestamp
    return now_ms if now_ms is not None else current_millis()


def is_within_time_window(
    event: NormalizedEvent, window_ms: int, now_ms: Optional[int] = None
) -> bool:
    """Whether the event falls inside the trailing window.

    Events with an unknown timestamp are only included in windows of a day
    or longer.
    """
    if event.timestamp is None:
        return window_ms >= DAY_MS
    if now_ms is None:
        now_ms = current_millis()
    return now_ms - event.timestamp <= window_ms


def format_age(timestamp: Optional[int], now_ms: Optional[int] = None) -> str:
    if timestamp is None:
        return "Unknown"
    if now_ms is None:
        now_ms = current_millis()

    diff = now_ms - timestamp
    if diff < HOUR_MS:
        return f"{max(diff, 0) // 60_000}m ago"
    if diff < DAY_MS:
        return f"{diff // HOUR_MS}h ago"
    return f"{diff // DAY_MS}d ago"
