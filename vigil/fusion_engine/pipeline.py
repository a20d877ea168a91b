"""Vigil — Snapshot pipeline.

Normalizes one snapshot of raw records and derives every view from it
with a single reference time. Nothing is kept between calls.
"""

import logging
from typing import Any, Iterable, Optional

from backend.models import SituationReport
from fusion_engine.dispersion import PlacementCounter, disperse_events
from fusion_engine.global_state import rank_regions, state_from_ranked
from fusion_engine.hot_zone_engine import (
    HOTZONE_MIN_INTENSITY,
    HOTZONE_RADIUS_KM,
    compute_hot_zones,
)
from fusion_engine.normalizer import normalize_batch
from fusion_engine.temporal import current_millis

logger = logging.getLogger("vigil.fusion")


def assess_snapshot(
    raw_events: Iterable[Any],
    now_ms: Optional[int] = None,
    radius_km: float = HOTZONE_RADIUS_KM,
    min_intensity: float = HOTZONE_MIN_INTENSITY,
    canonical_order: bool = False,
) -> SituationReport:
    """Run normalization, aggregation, clustering and dispersion for one snapshot."""
    if now_ms is None:
        now_ms = current_millis()

    normalized = normalize_batch(raw_events)
    events = normalized.events

    ranked = rank_regions(events)
    state = state_from_ranked(ranked, len(events), now_ms)
    hot_zones = compute_hot_zones(
        events,
        now_ms=now_ms,
        radius_km=radius_km,
        min_intensity=min_intensity,
        canonical_order=canonical_order,
    )
    dispersed = disperse_events(events, PlacementCounter())

    logger.info(
        "[situation] status=%s primary=%s events=%d rejected=%d zones=%d",
        state.status.value, state.primary_region or "-",
        len(events), normalized.rejected, len(hot_zones),
    )
    return SituationReport(
        global_state=state,
        regions=ranked,
        hot_zones=hot_zones,
        dispersed=dispersed,
        accepted=len(events),
        rejected=normalized.rejected,
        generated_at=now_ms,
    )
