"""
test_normalizer.py — Event Normalizer: coordinate/category validation,
timestamp accessor precedence, severity inference, region labels.

Run:
    pytest vigil/tests/test_normalizer.py -v
"""

from datetime import datetime, timezone

import pytest

from backend.models import EventCategory, NormalizedEvent
from fusion_engine.normalizer import (
    TIMESTAMP_FIELDS,
    EventRejected,
    canonical_region,
    normalize_batch,
    normalize_event,
    parse_timestamp,
    resolve_timestamp,
)


def _raw(**overrides):
    raw = {
        "id": "rss:1",
        "category": "conflict",
        "country": "Iran",
        "lat": 35.7,
        "lon": 51.4,
        "publishedAt": "2026-01-10T19:49:01Z",
    }
    raw.update(overrides)
    return raw


ISO_MS = int(datetime(2026, 1, 10, 19, 49, 1, tzinfo=timezone.utc).timestamp() * 1000)


# ── coordinates ─────────────────────────────────────────────────────────────

class TestCoordinates:

    @pytest.mark.parametrize("field", ["lat", "lon"])
    def test_missing_coordinate_rejected(self, field):
        raw = _raw()
        del raw[field]
        with pytest.raises(EventRejected):
            normalize_event(raw)

    @pytest.mark.parametrize("value", ["35.7", True, None, float("nan"), float("inf"), [35.7]])
    def test_non_numeric_latitude_rejected(self, value):
        with pytest.raises(EventRejected):
            normalize_event(_raw(lat=value))

    def test_out_of_range_rejected(self):
        with pytest.raises(EventRejected):
            normalize_event(_raw(lat=91.0))
        with pytest.raises(EventRejected):
            normalize_event(_raw(lon=-180.5))

    def test_zero_coordinates_are_valid(self):
        event = normalize_event(_raw(lat=0, lon=0))
        assert (event.lat, event.lon) == (0.0, 0.0)

    def test_latitude_longitude_aliases(self):
        raw = _raw()
        del raw["lat"], raw["lon"]
        raw.update(latitude=10.5, longitude=-3.25)
        event = normalize_event(raw)
        assert (event.lat, event.lon) == (10.5, -3.25)


# ── category & severity ─────────────────────────────────────────────────────

class TestCategory:

    def test_unknown_category_rejected(self):
        with pytest.raises(EventRejected, match="unknown category"):
            normalize_event(_raw(category="cyber"))

    def test_missing_category_rejected(self):
        raw = _raw()
        del raw["category"]
        with pytest.raises(EventRejected):
            normalize_event(raw)

    def test_category_is_trimmed_and_lowercased(self):
        assert normalize_event(_raw(category=" Disaster ")).category == EventCategory.DISASTER


class TestSeverity:

    @pytest.mark.parametrize("category,expected", [
        ("conflict", 3),
        ("disaster", 3),
        ("politics", 2),
        ("health",   2),
        ("economy",  1),
    ])
    def test_inferred_from_category(self, category, expected):
        assert normalize_event(_raw(category=category)).severity == expected

    @pytest.mark.parametrize("given,expected", [(1, 1), (2, 2), (3, 3), (5, 3), (0, 1), (-4, 1)])
    def test_explicit_severity_is_clamped(self, given, expected):
        assert normalize_event(_raw(category="economy", severity=given)).severity == expected

    def test_explicit_severity_overrides_inference(self):
        assert normalize_event(_raw(category="conflict", severity=1)).severity == 1

    def test_garbage_severity_falls_back_to_inference(self):
        assert normalize_event(_raw(category="health", severity="high")).severity == 2


# ── region ──────────────────────────────────────────────────────────────────

class TestRegion:

    def test_missing_region_is_unknown(self):
        raw = _raw()
        del raw["country"]
        assert normalize_event(raw).region == "Unknown"

    def test_region_field_preferred_over_country(self):
        assert normalize_event(_raw(region="Syria")).region == "Syria"

    @pytest.mark.parametrize("label,expected", [
        ("Russian Federation", "Russia"),
        ("USA", "United States"),
        ("  Iran  ", "Iran"),
        ("South   Sudan", "South Sudan"),
        ("", "Unknown"),
        (None, "Unknown"),
    ])
    def test_canonical_region(self, label, expected):
        assert canonical_region(label) == expected

    def test_case_is_preserved_for_unaliased_labels(self):
        assert canonical_region("iran") == "iran"


# ── timestamps ──────────────────────────────────────────────────────────────

class TestTimestamps:

    def test_accessor_order_is_fixed(self):
        assert TIMESTAMP_FIELDS[:5] == (
            "publishedAt", "published_at", "createdAt", "created_at", "timestamp",
        )

    def test_iso_8601(self):
        assert parse_timestamp("2026-01-10T19:49:01Z") == ISO_MS
        assert parse_timestamp("2026-01-10T20:49:01+01:00") == ISO_MS

    def test_db_format_is_local_time(self):
        expected = int(datetime(2026, 1, 10, 19, 49, 1).timestamp() * 1000)
        assert parse_timestamp("2026-01-10 19:49:01") == expected

    @pytest.mark.parametrize("value", [
        "Sat, 10 Jan 2026 19:49:01 GMT",
        "Sat, 10 Jan 2026 19:49:01 +0000",
        "Sat, 10 Jan 2026 20:49:01 +0100",
    ])
    def test_rfc_2822_feed_dates(self, value):
        assert parse_timestamp(value) == ISO_MS

    def test_rss_pubdate_keeps_event_fresh(self):
        event = normalize_event(_raw(publishedAt="Sat, 10 Jan 2026 19:49:01 GMT"))
        assert event.timestamp == ISO_MS

    def test_numeric_epoch_millis(self):
        assert parse_timestamp(ISO_MS) == ISO_MS
        assert parse_timestamp(float(ISO_MS)) == ISO_MS

    @pytest.mark.parametrize("value", [None, "", "   ", 0, True, float("nan"), "yesterday", "2026-13-45 99:00:00", {}])
    def test_unparseable_values(self, value):
        assert parse_timestamp(value) is None

    def test_first_parseable_field_wins(self):
        raw = {"publishedAt": ISO_MS, "created_at": 1, "timestamp": 2}
        assert resolve_timestamp(raw) == ISO_MS

    def test_unparseable_field_falls_through(self):
        raw = {"publishedAt": "not a date", "published_at": None, "created_at": ISO_MS}
        assert resolve_timestamp(raw) == ISO_MS

    def test_unknown_timestamp_is_none_not_now(self):
        raw = _raw(publishedAt="garbage")
        assert normalize_event(raw).timestamp is None


# ── identity & idempotence ─────────────────────────────────────────────────

class TestIdentity:

    def test_raw_id_is_kept(self):
        assert normalize_event(_raw(id=42)).id == "42"

    def test_missing_id_is_stable(self):
        raw = _raw(title="Strike reported", url="https://example.org/a", source="wire")
        del raw["id"]
        first = normalize_event(raw).id
        assert first == normalize_event(dict(raw)).id
        assert len(first) == 64

    def test_normalized_event_passes_through(self):
        event = normalize_event(_raw())
        assert normalize_event(event) is event

    @pytest.mark.parametrize("mode", ["python", "json"])
    def test_round_trip_is_idempotent(self, mode):
        for raw in (_raw(), _raw(publishedAt=None, severity=9), _raw(publishedAt="2026-01-10 19:49:01")):
            once = normalize_event(raw)
            twice = normalize_event(once.model_dump(mode=mode))
            assert twice == once

    def test_events_are_immutable(self):
        event = normalize_event(_raw())
        with pytest.raises(Exception):
            event.lat = 0.0


# ── batch ───────────────────────────────────────────────────────────────────

class TestNormalizeBatch:

    def test_rejects_are_counted_and_skipped(self):
        raws = [_raw(id="a"), _raw(id="b", lat=None), "not a record", _raw(id="c", category="nuclear"), _raw(id="d")]
        result = normalize_batch(raws)
        assert [e.id for e in result.events] == ["a", "d"]
        assert result.rejected == 3

    def test_empty_batch(self):
        result = normalize_batch([])
        assert result.events == []
        assert result.rejected == 0

    def test_accepts_normalized_events(self):
        event = NormalizedEvent(id="x", category="economy", lat=1, lon=2, severity=1)
        assert normalize_batch([event]).events == [event]
