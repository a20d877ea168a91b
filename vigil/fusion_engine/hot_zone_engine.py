"""Vigil — Hot Zone Clustering Engine.

Greedy single-pass clustering of geolocated events into hot zones.

Hot zone determination:
  - Events are visited in the given order
  - Each event joins the FIRST existing zone whose centroid lies within
    150 km (haversine, 6371 km sphere), otherwise it opens a new zone
  - A zone's centroid is the running average of its members weighted by
    temporal decay (fresh events pull harder)
  - Zones with intensity < 1.2 are dropped after clustering
  - Level: intensity ≥ 3 → critical, ≥ 2 → active, else watch

This is a first-fit online heuristic, not an optimal clustering: the
first event seen anchors a zone, so a different input order can yield
different zones for the same set of events. Pass canonical_order=True to
sort by (timestamp, id) first when set-equal snapshots must cluster
identically.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional

from backend.models import HotZone, HotZoneLevel, NormalizedEvent
from fusion_engine.temporal import current_millis, ordering_timestamp, temporal_weight

logger = logging.getLogger("vigil.fusion")

EARTH_RADIUS_KM = 6371.0

HOTZONE_RADIUS_KM = 150.0
HOTZONE_MIN_INTENSITY = 1.2

CRITICAL_INTENSITY = 3.0
ACTIVE_INTENSITY = 2.0


@dataclass
class _Zone:
    lat: float
    lon: float
    intensity: float
    count: int = 1

    def absorb(self, lat: float, lon: float, weight: float) -> None:
        total = self.intensity + weight
        self.lat = (self.lat * self.intensity + lat * weight) / total
        self.lon = (self.lon * self.intensity + lon * weight) / total
        self.intensity = total
        self.count += 1


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def classify_hot_zone(intensity: float) -> HotZoneLevel:
    if intensity >= CRITICAL_INTENSITY:
        return HotZoneLevel.CRITICAL
    if intensity >= ACTIVE_INTENSITY:
        return HotZoneLevel.ACTIVE
    return HotZoneLevel.WATCH


def canonical_sort(events: Iterable[NormalizedEvent], now_ms: int) -> list[NormalizedEvent]:
    """Order events by (timestamp, id); unknown timestamps sort as now."""
    return sorted(events, key=lambda e: (ordering_timestamp(e, now_ms), e.id))


def cluster_events(
    events: Iterable[NormalizedEvent],
    now_ms: Optional[int] = None,
    radius_km: float = HOTZONE_RADIUS_KM,
) -> list[HotZone]:
    """Run the first-fit pass and return every zone formed, unfiltered.

    The counts of the returned zones always add up to the number of events
    passed in.
    """
    if now_ms is None:
        now_ms = current_millis()

    zones: list[_Zone] = []
    for event in events:
        weight = temporal_weight(event, now_ms)
        zone = next(
            (z for z in zones if haversine_km(z.lat, z.lon, event.lat, event.lon) <= radius_km),
            None,
        )
        if zone is not None:
            zone.absorb(event.lat, event.lon, weight)
        else:
            zones.append(_Zone(lat=event.lat, lon=event.lon, intensity=weight))

    return [
        HotZone(
            lat=z.lat,
            lon=z.lon,
            count=z.count,
            intensity=z.intensity,
            level=classify_hot_zone(z.intensity),
        )
        for z in zones
    ]


def compute_hot_zones(
    events: Iterable[NormalizedEvent],
    now_ms: Optional[int] = None,
    radius_km: float = HOTZONE_RADIUS_KM,
    min_intensity: float = HOTZONE_MIN_INTENSITY,
    canonical_order: bool = False,
) -> list[HotZone]:
    """Compute hot zones from normalized events.

    Args:
        events: Geolocated events, clustered in the order given.
        now_ms: Reference time for temporal weighting (defaults to now).
        radius_km: Join distance between an event and a zone centroid.
        min_intensity: Zones lighter than this are dropped after clustering.
        canonical_order: Sort by (timestamp, id) before clustering.

    Returns:
        Retained zones sorted by intensity descending.
    """
    if now_ms is None:
        now_ms = current_millis()
    if canonical_order:
        events = canonical_sort(events, now_ms)

    zones = cluster_events(events, now_ms, radius_km)
    retained = [z for z in zones if z.intensity >= min_intensity]
    retained.sort(key=lambda z: z.intensity, reverse=True)

    logger.info(
        "[hot_zones] Computed %d hot zones (%d below intensity %.1f dropped)",
        len(retained), len(zones) - len(retained), min_intensity,
    )
    return retained
