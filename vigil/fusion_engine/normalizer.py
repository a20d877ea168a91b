"""Vigil — Event Normalizer.

Adapts heterogeneous source records into a canonical NormalizedEvent.
Records without usable coordinates or with a category outside the fixed
set are rejected here, before anything downstream can see them.
"""

import hashlib
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from backend.models import EventCategory, NormalizedEvent

logger = logging.getLogger("vigil.normalizer")

UNKNOWN_REGION = "Unknown"

# Accessor rules for the event time, highest priority first
TIMESTAMP_FIELDS = (
    "publishedAt",
    "published_at",
    "createdAt",
    "created_at",
    "timestamp",
    "date",
)

DB_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Severity when the source does not supply one
INFERRED_SEVERITY = {
    EventCategory.CONFLICT: 3,
    EventCategory.DISASTER: 3,
    EventCategory.POLITICS: 2,
    EventCategory.HEALTH: 2,
}
DEFAULT_SEVERITY = 1

# Alternative spellings → canonical region label (keys are casefolded)
REGION_ALIASES = {
    "russian federation": "Russia",
    "russia": "Russia",
    "usa": "United States",
    "us": "United States",
    "u.s.": "United States",
    "united states of america": "United States",
    "united states": "United States",
    "uk": "United Kingdom",
    "great britain": "United Kingdom",
    "united kingdom": "United Kingdom",
    "prc": "China",
    "people's republic of china": "China",
    "china": "China",
    "ksa": "Saudi Arabia",
    "saudi arabia": "Saudi Arabia",
    "uae": "United Arab Emirates",
    "dprk": "North Korea",
    "rok": "South Korea",
    "republic of korea": "South Korea",
    "iran, islamic republic of": "Iran",
    "drc": "DR Congo",
    "unknown": UNKNOWN_REGION,
    "democratic republic of the congo": "DR Congo",
}

_ws_re = re.compile(r"\s+")


class EventRejected(ValueError):
    """Raised when a raw record cannot become a NormalizedEvent."""

    def __init__(self, reason: str, raw: Any = None):
        super().__init__(reason)
        self.reason = reason
        self.raw = raw


@dataclass
class NormalizeResult:
    events: list[NormalizedEvent] = field(default_factory=list)
    rejected: int = 0


# ─── Timestamps ────────────────────────────────────

def _parse_db_timestamp(value: str) -> Optional[int]:
    """Parse "YYYY-MM-DD HH:MM:SS" as local wall-clock time."""
    try:
        dt = datetime.strptime(value, DB_TIMESTAMP_FORMAT)
    except ValueError:
        return None
    return int(dt.timestamp() * 1000)


def _datetime_to_millis(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def _parse_rfc2822(value: str) -> Optional[int]:
    """Parse feed-style dates such as "Sat, 10 Jan 2026 19:49:01 GMT"."""
    try:
        return _datetime_to_millis(parsedate_to_datetime(value))
    except (TypeError, ValueError):
        return None


def parse_timestamp(value: Any) -> Optional[int]:
    """Parse one candidate timestamp value into epoch milliseconds.

    Accepts numeric epoch milliseconds, ISO-8601 strings, database-style
    "YYYY-MM-DD HH:MM:SS" strings (local time), RFC 2822 strings as found in
    RSS pubDate fields, and datetime objects. Empty values, zero, NaN and
    booleans are treated as absent. Returns None rather than guessing.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if not math.isfinite(value) or value == 0:
            return None
        return int(value)

    if isinstance(value, datetime):
        return _datetime_to_millis(value)

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if " " in s and "T" not in s:
            parsed = _parse_db_timestamp(s)
            return parsed if parsed is not None else _parse_rfc2822(s)
        iso = s[:-1] + "+00:00" if s.endswith(("Z", "z")) else s
        try:
            return _datetime_to_millis(datetime.fromisoformat(iso))
        except ValueError:
            return _parse_rfc2822(s)

    return None


def resolve_timestamp(raw: Mapping[str, Any]) -> Optional[int]:
    """Walk TIMESTAMP_FIELDS in order; first value that parses wins."""
    for name in TIMESTAMP_FIELDS:
        parsed = parse_timestamp(raw.get(name))
        if parsed is not None:
            return parsed
    return None


# ─── Field helpers ─────────────────────────────────

def _coordinate(raw: Mapping[str, Any], keys: tuple[str, str], limit: float) -> float:
    value = None
    for key in keys:
        if raw.get(key) is not None:
            value = raw[key]
            break

    if value is None:
        raise EventRejected(f"missing {keys[0]}", raw)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise EventRejected(f"non-numeric {keys[0]}: {value!r}", raw)
    if not math.isfinite(value) or abs(value) > limit:
        raise EventRejected(f"{keys[0]} out of range: {value!r}", raw)
    return float(value)


def _category(raw: Mapping[str, Any]) -> EventCategory:
    value = raw.get("category")
    if isinstance(value, EventCategory):
        return value
    if not isinstance(value, str):
        raise EventRejected("missing category", raw)
    try:
        return EventCategory(value.strip().lower())
    except ValueError:
        raise EventRejected(f"unknown category: {value!r}", raw) from None


def canonical_region(value: Any) -> str:
    """Collapse whitespace and map known aliases to one label.

    The result is used as an opaque, case-sensitive key downstream.
    """
    if not isinstance(value, str):
        return UNKNOWN_REGION
    label = _ws_re.sub(" ", value).strip()
    if not label:
        return UNKNOWN_REGION
    return REGION_ALIASES.get(label.casefold(), label)


def infer_severity(category: EventCategory) -> int:
    return INFERRED_SEVERITY.get(category, DEFAULT_SEVERITY)


def _severity(raw: Mapping[str, Any], category: EventCategory) -> int:
    value = raw.get("severity")
    if value is None or isinstance(value, bool):
        return infer_severity(category)
    try:
        return max(1, min(3, int(value)))
    except (TypeError, ValueError, OverflowError):
        return infer_severity(category)


def stable_id(raw: Mapping[str, Any], timestamp: Optional[int]) -> str:
    base = "|".join([
        str(raw.get("source") or ""),
        str(raw.get("url") or ""),
        _ws_re.sub(" ", str(raw.get("title") or "")).strip(),
        str(timestamp or ""),
    ])
    return hashlib.sha256(base.encode("utf-8")).hexdigest()


# ─── Public API ────────────────────────────────────

def normalize_event(raw: Union[Mapping[str, Any], NormalizedEvent]) -> NormalizedEvent:
    """Validate and normalize a raw record into a NormalizedEvent.

    Raises EventRejected when coordinates are absent or non-numeric, or the
    category is not one of EventCategory.
    """
    if isinstance(raw, NormalizedEvent):
        return raw
    if not isinstance(raw, Mapping):
        raise EventRejected(f"expected a mapping, got {type(raw).__name__}", raw)

    lat = _coordinate(raw, ("lat", "latitude"), 90)
    lon = _coordinate(raw, ("lon", "longitude"), 180)
    category = _category(raw)
    timestamp = resolve_timestamp(raw)

    raw_id = raw.get("id")
    event_id = str(raw_id) if raw_id not in (None, "") else stable_id(raw, timestamp)

    return NormalizedEvent(
        id=event_id,
        category=category,
        region=canonical_region(raw.get("region") or raw.get("country")),
        lat=lat,
        lon=lon,
        severity=_severity(raw, category),
        timestamp=timestamp,
    )


def normalize_batch(raw_events: Iterable[Any]) -> NormalizeResult:
    """Normalize a batch of records, skipping invalid ones."""
    result = NormalizeResult()
    for raw in raw_events:
        try:
            result.events.append(normalize_event(raw))
        except (EventRejected, ValidationError) as e:
            result.rejected += 1
            title = raw.get("title") if isinstance(raw, Mapping) else None
            logger.warning("Rejected event: %s, raw: %s", e, title or raw)
    if result.rejected:
        logger.info(
            "Normalized %d events, rejected %d", len(result.events), result.rejected
        )
    return result
