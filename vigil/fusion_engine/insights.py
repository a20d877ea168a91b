"""Vigil — Event relevance explanations against the current global state."""

from backend.models import EventCategory, GlobalState, GlobalStatus, NormalizedEvent

ESCALATION_PRONE = {EventCategory.CONFLICT, EventCategory.DISASTER}

FALLBACK_REASON = "Monitored as part of general situational awareness"


def why_this_event_matters(event: NormalizedEvent, state: GlobalState) -> list[str]:
    """Reasons an event is relevant, in a fixed rule order."""
    reasons = []

    if state.primary_region and event.region == state.primary_region:
        reasons.append("Occurs within current primary area of operations")

    if event.region in state.secondary_regions:
        reasons.append("Located in a secondary region of interest")

    category = event.category.value
    if any(category in driver.lower() for driver in state.drivers):
        reasons.append("Aligns with dominant signal drivers in the current global state")

    if event.category in ESCALATION_PRONE:
        reasons.append("High potential for escalation or cascading impact")

    if state.status != GlobalStatus.STABLE:
        reasons.append(f"Relevant under {state.status.value.replace('_', ' ')} conditions")

    return reasons or [FALLBACK_REASON]
