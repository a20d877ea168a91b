"""
Vigil — Main FastAPI Application
Stateless situational aggregation API: the dashboard posts a snapshot of
events and gets back the global state, hot zones and marker layout.
"""

import logging
import sys
import os

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import datetime, timezone
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from backend.config import settings
from backend.models import (
    PrimaryAORequest,
    SnapshotRequest,
    TopRegionsRequest,
    WhyRequest,
)
from fusion_engine.dispersion import PlacementCounter, disperse_events, top_regions
from fusion_engine.global_state import build_global_state, is_primary_ao
from fusion_engine.hot_zone_engine import compute_hot_zones
from fusion_engine.insights import why_this_event_matters
from fusion_engine.normalizer import EventRejected, normalize_batch, normalize_event
from fusion_engine.pipeline import assess_snapshot
from fusion_engine.temporal import current_millis

# ─── Logging ───────────────────────────────────────
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s │ %(name)-20s │ %(levelname)-7s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("vigil.api")


# ─── FastAPI App ───────────────────────────────────
app = FastAPI(
    title="Vigil",
    description="Situational Aggregation & Clustering Engine",
    version=settings.app_version,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _reference_time(req: SnapshotRequest) -> int:
    return req.now if req.now is not None else current_millis()


# ─── REST Endpoints ───────────────────────────────
@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "operational",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.post("/api/situation")
async def situation(req: SnapshotRequest):
    """Global state, region ranking, hot zones and dispersed markers for one snapshot."""
    return assess_snapshot(
        req.events,
        now_ms=_reference_time(req),
        radius_km=settings.hotzone_radius_km,
        min_intensity=settings.hotzone_min_intensity,
        canonical_order=settings.canonical_cluster_order,
    )


@app.post("/api/global-state")
async def global_state(req: SnapshotRequest):
    normalized = normalize_batch(req.events)
    return build_global_state(normalized.events, now_ms=_reference_time(req))


@app.post("/api/hot-zones")
async def hot_zones(req: SnapshotRequest):
    normalized = normalize_batch(req.events)
    zones = compute_hot_zones(
        normalized.events,
        now_ms=_reference_time(req),
        radius_km=settings.hotzone_radius_km,
        min_intensity=settings.hotzone_min_intensity,
        canonical_order=settings.canonical_cluster_order,
    )
    return {"count": len(zones), "zones": zones}


@app.post("/api/dispersion")
async def dispersion(req: SnapshotRequest):
    """Display-only marker positions."""
    normalized = normalize_batch(req.events)
    markers = disperse_events(normalized.events, PlacementCounter())
    return {"count": len(markers), "markers": markers}


@app.post("/api/top-regions")
async def busiest_regions(req: TopRegionsRequest):
    normalized = normalize_batch(req.events)
    focus = top_regions(normalized.events, limit=req.limit or settings.top_regions_limit)
    return {"count": len(focus), "regions": focus}


@app.post("/api/why")
async def why(req: WhyRequest):
    """Why an event matters under the given global state."""
    try:
        event = normalize_event(req.event)
    except EventRejected as e:
        logger.info("Rejected event in /api/why: %s", e.reason)
        raise HTTPException(status_code=422, detail=e.reason)
    return {"event_id": event.id, "reasons": why_this_event_matters(event, req.state)}


@app.post("/api/primary-ao")
async def primary_ao(req: PrimaryAORequest):
    return {"region": req.region, "primary": is_primary_ao(req.state, req.region)}


# ─── Run ───────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
    )
