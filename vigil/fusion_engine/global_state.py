"""Vigil — Regional Aggregator & Global Status Classifier.

Folds a snapshot of normalized events into per-region signals, classifies
each region, and derives one global escalation status.

Region score = sum of CATEGORY_WEIGHTS[category] * severity over the
region's events. Temporal decay is intentionally NOT applied here: region
classification reflects the cumulative signal in the snapshot, while hot
zones (see hot_zone_engine) emphasise recency.

Global status:
  ≥2 critical regions                    → critical
  exactly 1 critical and ≥1 escalating   → multi_region_escalation
  exactly 1 critical, or ≥1 escalating   → regional_escalation
  otherwise                              → stable
"""

import logging
from typing import Iterable, Optional

from backend.models import (
    Confidence,
    EventCategory,
    GlobalState,
    GlobalStatus,
    NormalizedEvent,
    RegionSignal,
    RegionStatus,
)
from fusion_engine.temporal import current_millis

logger = logging.getLogger("vigil.fusion")

CATEGORY_WEIGHTS = {
    EventCategory.CONFLICT: 5,
    EventCategory.DISASTER: 4,
    EventCategory.POLITICS: 3,
    EventCategory.HEALTH: 3,
    EventCategory.ECONOMY: 2,
}

CRITICAL_SCORE = 40
CRITICAL_MIN_CATEGORIES = 2
ESCALATING_SCORE = 25
MONITORING_SCORE = 10

HIGH_CONFIDENCE_EVENTS = 20
MEDIUM_CONFIDENCE_EVENTS = 10

SECONDARY_REGION_COUNT = 2


def score_event(event: NormalizedEvent) -> int:
    return CATEGORY_WEIGHTS[event.category] * event.severity


def classify_region(signal: RegionSignal) -> RegionStatus:
    if signal.total_score >= CRITICAL_SCORE and len(signal.categories) >= CRITICAL_MIN_CATEGORIES:
        return RegionStatus.CRITICAL
    if signal.total_score >= ESCALATING_SCORE:
        return RegionStatus.ESCALATING
    if signal.total_score >= MONITORING_SCORE:
        return RegionStatus.MONITORING
    return RegionStatus.STABLE


def aggregate_regions(events: Iterable[NormalizedEvent]) -> list[RegionSignal]:
    """Fold events into classified region signals, in first-encountered order.

    Region labels are opaque, case-sensitive keys.
    """
    signals: dict[str, RegionSignal] = {}

    for event in events:
        signal = signals.get(event.region)
        if signal is None:
            signal = signals[event.region] = RegionSignal(region=event.region)

        signal.total_score += score_event(event)
        signal.event_count += 1
        if event.category not in signal.categories:
            signal.categories.append(event.category)

    for signal in signals.values():
        signal.status = classify_region(signal)
    return list(signals.values())


def rank_regions(events: Iterable[NormalizedEvent]) -> list[RegionSignal]:
    """Region signals by score, highest first.

    Ties keep first-encountered order (the sort is stable). That tiebreak is
    implementation-defined: reordering an otherwise identical snapshot can
    change which tied region ranks first.
    """
    return sorted(aggregate_regions(events), key=lambda r: r.total_score, reverse=True)


def derive_global_status(statuses: Iterable[RegionStatus]) -> GlobalStatus:
    statuses = list(statuses)
    critical = statuses.count(RegionStatus.CRITICAL)
    escalating = statuses.count(RegionStatus.ESCALATING)

    if critical >= 2:
        return GlobalStatus.CRITICAL
    if critical == 1 and escalating >= 1:
        return GlobalStatus.MULTI_REGION_ESCALATION
    if critical == 1 or escalating >= 1:
        return GlobalStatus.REGIONAL_ESCALATION
    return GlobalStatus.STABLE


def _confidence(event_count: int) -> Confidence:
    if event_count > HIGH_CONFIDENCE_EVENTS:
        return Confidence.HIGH
    if event_count > MEDIUM_CONFIDENCE_EVENTS:
        return Confidence.MEDIUM
    return Confidence.LOW


def _drivers(primary: RegionSignal) -> list[str]:
    return [
        f"{primary.event_count} events in window",
        "Categories: " + ", ".join(c.value for c in primary.categories),
    ]


def state_from_ranked(
    ranked: list[RegionSignal], event_count: int, now_ms: Optional[int] = None
) -> GlobalState:
    """Build the GlobalState from already ranked region signals."""
    primary = ranked[0] if ranked else None
    state = GlobalState(
        status=derive_global_status(r.status for r in ranked),
        primary_region=primary.region if primary else None,
        secondary_regions=[r.region for r in ranked[1:1 + SECONDARY_REGION_COUNT]],
        confidence=_confidence(event_count),
        drivers=_drivers(primary) if primary else [],
        updated_at=now_ms if now_ms is not None else current_millis(),
    )
    logger.debug(
        "[global_state] %s across %d regions (primary: %s)",
        state.status.value, len(ranked), state.primary_region or "-",
    )
    return state


def build_global_state(
    events: Iterable[NormalizedEvent], now_ms: Optional[int] = None
) -> GlobalState:
    """Compute the global escalation state from a full snapshot.

    Always a full recompute; never derived from a previous GlobalState.
    An empty snapshot yields a stable state with low confidence.
    """
    events = list(events)
    return state_from_ranked(rank_regions(events), len(events), now_ms)


def is_primary_ao(state: GlobalState, region: Optional[str]) -> bool:
    """Whether `region` is the state's primary area of operations.

    Exact, case-sensitive match like every other region comparison; only
    surrounding whitespace is ignored. Canonical labels come from the
    normalizer.
    """
    if not region or not state.primary_region:
        return False
    return state.primary_region == region.strip()
