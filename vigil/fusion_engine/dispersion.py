"""Vigil — Geographic Dispersion Layout.

Cosmetic repositioning of map markers so events that share (or nearly
share) coordinates can be told apart. The output is display-only and must
never be written back as an event's location.

Events are grouped by region label. Within a group, the event at position
`index` (input order) of `total` is placed on a golden-angle spiral:

    angle  = index * golden_angle        (≈ 2.399963 rad, 137.5°)
    radius = sqrt(index / total)

  - Large countries (listed in REGION_BOUNDS, group of 2+): offsets are
    scaled to 30% of the bounding box span and centred on the box centroid.
    The event's own coordinate is discarded for display.
  - Everything else: a jitter of at most 2.0° around the event's own
    coordinate. Display latitude is clamped to [-90, 90].

Index 0 of a jitter group is never moved. No randomness.
"""

import math
from collections import Counter
from typing import Iterable, Optional

from backend.models import DispersedEvent, NormalizedEvent, Placement, RegionFocus

GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))

BOUNDED_SPREAD = 0.30
JITTER_MAX_DEG = 2.0

# Approximate bounding boxes of large countries (degrees)
REGION_BOUNDS = {
    "United States": {"min_lat": 24.5, "max_lat": 49.0, "min_lon": -125.0, "max_lon": -66.0},
    "Russia":        {"min_lat": 45.0, "max_lat": 77.0, "min_lon": 30.0,   "max_lon": 169.0},
    "China":         {"min_lat": 20.0, "max_lat": 50.0, "min_lon": 75.0,   "max_lon": 132.0},
    "Canada":        {"min_lat": 41.0, "max_lat": 83.0, "min_lon": -141.0, "max_lon": -52.0},
    "Brazil":        {"min_lat": -34.0, "max_lat": 5.0, "min_lon": -74.0,  "max_lon": -34.0},
    "Australia":     {"min_lat": -44.0, "max_lat": -10.0, "min_lon": 113.0, "max_lon": 154.0},
    "India":         {"min_lat": 8.0,  "max_lat": 35.0, "min_lon": 68.0,   "max_lon": 97.0},
    "Argentina":     {"min_lat": -55.0, "max_lat": -22.0, "min_lon": -73.0, "max_lon": -53.0},
    "Kazakhstan":    {"min_lat": 40.0, "max_lat": 55.0, "min_lon": 47.0,   "max_lon": 87.0},
    "Algeria":       {"min_lat": 19.0, "max_lat": 37.0, "min_lon": -8.0,   "max_lon": 12.0},
    "Saudi Arabia":  {"min_lat": 16.0, "max_lat": 32.0, "min_lon": 35.0,   "max_lon": 56.0},
    "Mexico":        {"min_lat": 14.0, "max_lat": 33.0, "min_lon": -118.0, "max_lon": -86.0},
    "Indonesia":     {"min_lat": -11.0, "max_lat": 6.0, "min_lon": 95.0,   "max_lon": 141.0},
    "Libya":         {"min_lat": 20.0, "max_lat": 33.0, "min_lon": 10.0,   "max_lon": 25.0},
    "Iran":          {"min_lat": 25.0, "max_lat": 40.0, "min_lon": 44.0,   "max_lon": 63.0},
    "Mongolia":      {"min_lat": 42.0, "max_lat": 52.0, "min_lon": 88.0,   "max_lon": 120.0},
    "Peru":          {"min_lat": -18.0, "max_lat": 0.0, "min_lon": -81.0,  "max_lon": -68.0},
    "Chad":          {"min_lat": 7.0,  "max_lat": 23.0, "min_lon": 14.0,   "max_lon": 24.0},
    "Niger":         {"min_lat": 11.0, "max_lat": 24.0, "min_lon": 0.0,    "max_lon": 16.0},
}

# Map zoom for navigation presets; anything unlisted gets DEFAULT_ZOOM
ZOOM_LEVELS = {
    "Russia": 2.5,
    "Canada": 3.0,
    "United States": 4.0,
    "China": 4.0,
    "Brazil": 4.0,
    "Australia": 4.0,
    "India": 4.5,
    "Argentina": 4.0,
    "Kazakhstan": 4.5,
    "Algeria": 5.0,
    "Saudi Arabia": 5.0,
    "Mexico": 5.0,
    "Indonesia": 4.5,
    "Libya": 5.0,
    "Iran": 5.0,
    "Mongolia": 4.5,
    "Peru": 5.0,
}
DEFAULT_ZOOM = 5.0

# Labels that never make a useful navigation preset
_UNFOCUSABLE_REGIONS = {"Unknown", "Global"}


class PlacementCounter:
    """How many events of each region have been placed so far.

    Scoped to a single dispersion call; create a new one per call.
    """

    def __init__(self):
        self._placed: Counter = Counter()

    def next_index(self, region: str) -> int:
        index = self._placed[region]
        self._placed[region] += 1
        return index

    def reset(self) -> None:
        self._placed.clear()


def _spiral(index: int, total: int) -> tuple[float, float]:
    """Unit spiral offset (lat, lon) for position `index` of `total`."""
    angle = index * GOLDEN_ANGLE
    radius = math.sqrt(index / total)
    return radius * math.cos(angle), radius * math.sin(angle)


def bounds_center(bounds: dict) -> tuple[float, float]:
    return (
        (bounds["min_lat"] + bounds["max_lat"]) / 2,
        (bounds["min_lon"] + bounds["max_lon"]) / 2,
    )


def place_in_bounds(event: NormalizedEvent, bounds: dict, index: int, total: int) -> DispersedEvent:
    d_lat, d_lon = _spiral(index, total)
    center_lat, center_lon = bounds_center(bounds)
    return DispersedEvent(
        event=event,
        lat=center_lat + d_lat * (bounds["max_lat"] - bounds["min_lat"]) * BOUNDED_SPREAD,
        lon=center_lon + d_lon * (bounds["max_lon"] - bounds["min_lon"]) * BOUNDED_SPREAD,
        placement=Placement.BOUNDED,
    )


def jitter(event: NormalizedEvent, index: int, total: int) -> DispersedEvent:
    d_lat, d_lon = _spiral(index, total)
    return DispersedEvent(
        event=event,
        lat=max(-90.0, min(90.0, event.lat + d_lat * JITTER_MAX_DEG)),
        lon=event.lon + d_lon * JITTER_MAX_DEG,
        placement=Placement.JITTER,
    )


def disperse_events(
    events: Iterable[NormalizedEvent],
    placements: Optional[PlacementCounter] = None,
) -> list[DispersedEvent]:
    """Compute display positions for a snapshot, preserving input order.

    `placements` is reset before use, so a counter may be reused across
    calls but is never carried over between them.
    """
    events = list(events)
    totals = Counter(e.region for e in events)
    if placements is None:
        placements = PlacementCounter()
    placements.reset()

    dispersed = []
    for event in events:
        index = placements.next_index(event.region)
        total = totals[event.region]
        bounds = REGION_BOUNDS.get(event.region)
        if bounds is not None and total > 1:
            dispersed.append(place_in_bounds(event, bounds, index, total))
        else:
            dispersed.append(jitter(event, index, total))
    return dispersed


def top_regions(events: Iterable[NormalizedEvent], limit: int = 5) -> list[RegionFocus]:
    """Busiest regions with a map center for each, for navigation presets."""
    events = list(events)
    counts = Counter(e.region for e in events if e.region not in _UNFOCUSABLE_REGIONS)

    focus = []
    for region, count in counts.most_common(limit):
        bounds = REGION_BOUNDS.get(region)
        if bounds is not None:
            center = bounds_center(bounds)
        else:
            first = next(e for e in events if e.region == region)
            center = (first.lat, first.lon)
        focus.append(RegionFocus(
            region=region,
            count=count,
            center=center,
            zoom=ZOOM_LEVELS.get(region, DEFAULT_ZOOM),
        ))
    return focus
