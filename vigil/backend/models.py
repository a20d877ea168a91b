"""Vigil — Unified Event Schema & Data Models."""

from pydantic import BaseModel, Field
from typing import Optional, Any
from enum import Enum


class EventCategory(str, Enum):
    """Categories the situational engine understands."""
    CONFLICT = "conflict"
    POLITICS = "politics"
    DISASTER = "disaster"
    HEALTH = "health"
    ECONOMY = "economy"


class RegionStatus(str, Enum):
    """Per-region escalation classification."""
    STABLE = "stable"
    MONITORING = "monitoring"
    ESCALATING = "escalating"
    CRITICAL = "critical"


class GlobalStatus(str, Enum):
    """System-wide escalation label."""
    STABLE = "stable"
    REGIONAL_ESCALATION = "regional_escalation"
    MULTI_REGION_ESCALATION = "multi_region_escalation"
    CRITICAL = "critical"


class Confidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class HotZoneLevel(str, Enum):
    WATCH = "watch"
    ACTIVE = "active"
    CRITICAL = "critical"


class Placement(str, Enum):
    """How a dispersed marker was placed."""
    BOUNDED = "bounded"   # spread across the region's bounding box
    JITTER = "jitter"     # small spiral around the event's own coordinate


class NormalizedEvent(BaseModel):
    """Canonical event. Only the Normalizer creates these."""
    id: str
    category: EventCategory
    region: str = "Unknown"
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    severity: int = Field(ge=1, le=3)
    timestamp: Optional[int] = None  # epoch ms; None = unknown

    model_config = {"frozen": True}


class RegionSignal(BaseModel):
    """Per-region aggregate, scoped to a single aggregation call."""
    region: str
    total_score: float = 0
    event_count: int = 0
    categories: list[EventCategory] = Field(default_factory=list)
    status: RegionStatus = RegionStatus.STABLE


class GlobalState(BaseModel):
    """Regional risk / escalation assessment for one snapshot."""
    status: GlobalStatus = GlobalStatus.STABLE
    primary_region: Optional[str] = None
    secondary_regions: list[str] = Field(default_factory=list)
    confidence: Confidence = Confidence.LOW
    drivers: list[str] = Field(default_factory=list)
    updated_at: int

    model_config = {"frozen": True}


class HotZone(BaseModel):
    """Spatial cluster of nearby events (weighted running centroid)."""
    lat: float
    lon: float
    count: int
    intensity: float
    level: HotZoneLevel

    model_config = {"frozen": True}


class DispersedEvent(BaseModel):
    """Display-only marker position. Never write lat/lon back as the event location."""
    event: NormalizedEvent
    lat: float
    lon: float
    placement: Placement

    model_config = {"frozen": True}


class RegionFocus(BaseModel):
    """Navigation preset for one of the busiest regions."""
    region: str
    count: int
    center: tuple[float, float]  # (lat, lon)
    zoom: float = 5.0


class SituationReport(BaseModel):
    """Everything derived from one snapshot of events."""
    global_state: GlobalState
    regions: list[RegionSignal] = Field(default_factory=list)
    hot_zones: list[HotZone] = Field(default_factory=list)
    dispersed: list[DispersedEvent] = Field(default_factory=list)
    accepted: int = 0
    rejected: int = 0
    generated_at: int


# ─── API request envelopes ─────────────────────────

class SnapshotRequest(BaseModel):
    """A snapshot of raw event records posted by the dashboard."""
    events: list[dict[str, Any]] = Field(default_factory=list)
    now: Optional[int] = Field(default=None, description="Reference time in epoch ms")


class TopRegionsRequest(SnapshotRequest):
    limit: Optional[int] = Field(default=None, ge=1, le=50)


class WhyRequest(BaseModel):
    event: dict[str, Any]
    state: GlobalState


class PrimaryAORequest(BaseModel):
    state: GlobalState
    region: Optional[str] = None
