"""
tests/test_timeline.py - Chronicles Parsing Tests

Timestamps, document shapes, ordering and malformed input.
"""

import json

import pytest

from foresight.errors import InputError
from foresight.timeline import format_timestamp, load_timeline, parse_timeline, parse_timestamp


class TestTimestamps:
    """Test parse_timestamp and format_timestamp."""

    def test_iso_with_z(self):
        """ISO string with Z suffix parses to epoch ms."""
        assert parse_timestamp("1970-01-01T00:00:01Z") == 1000

    def test_naive_iso_is_utc(self):
        """Naive ISO strings are read as UTC."""
        assert parse_timestamp("1970-01-01T00:01:00") == 60_000

    def test_epoch_ms_passthrough(self):
        """Numbers are epoch milliseconds."""
        assert parse_timestamp(1_700_000_000_000) == 1_700_000_000_000

    def test_bool_rejected(self):
        """Booleans are not timestamps."""
        with pytest.raises(InputError):
            parse_timestamp(True)

    def test_garbage_rejected(self):
        """Unparseable strings raise InputError."""
        with pytest.raises(InputError, match="invalid timestamp"):
            parse_timestamp("yesterday")

    def test_format(self):
        """Formatting gives millisecond precision and a Z suffix."""
        assert format_timestamp(0) == "1970-01-01T00:00:00.000Z"
        assert format_timestamp(60_500) == "1970-01-01T00:01:00.500Z"

    def test_format_parse_round_trip(self):
        """parse(format(ms)) == ms."""
        assert parse_timestamp(format_timestamp(1_735_689_600_123)) == 1_735_689_600_123


class TestParseTimeline:
    """Test parse_timeline."""

    def test_chronicles_object(self):
        """{timeline: [...], phases: [...]} is accepted."""
        timeline = parse_timeline({
            "timeline": [{"timestamp": 0, "events": [], "metrics": {"glyphCount": 1}}],
            "phases": [{"name": "Genesis"}],
        })
        assert len(timeline) == 1
        assert timeline[0].metric("glyphCount") == 1.0

    def test_bare_list(self):
        """A bare list of time points is accepted."""
        timeline = parse_timeline([{"timestamp": "2025-01-01T00:00:00Z"}])
        assert len(timeline) == 1
        assert timeline[0].events == ()
        assert timeline[0].metrics is None

    def test_sorted_by_time(self):
        """Points are ordered by timestamp."""
        timeline = parse_timeline([{"timestamp": 2000}, {"timestamp": 1000}])
        assert [p.time for p in timeline] == [1000, 2000]

    def test_missing_metric_is_zero(self):
        """Absent metrics read as 0.0."""
        timeline = parse_timeline([{"timestamp": 0, "metrics": {"glyphCount": 3}}])
        assert timeline[0].metric("totalLove") == 0.0
        assert timeline.series("glyphCount") == ((0, 3.0),)

    def test_events_parsed(self):
        """Events keep type, description and impact (default 0)."""
        timeline = parse_timeline([{
            "timestamp": 0,
            "events": [{"type": "birth", "description": "Seed planted"}],
        }])
        event = timeline[0].events[0]
        assert (event.type, event.description, event.impact) == ("birth", "Seed planted", 0.0)

    def test_missing_timestamp_rejected(self):
        """A time point without a timestamp raises InputError."""
        with pytest.raises(InputError):
            parse_timeline([{"events": []}])

    def test_event_without_description_rejected(self):
        """An event must carry a description."""
        with pytest.raises(InputError):
            parse_timeline([{"timestamp": 0, "events": [{"type": "birth"}]}])

    def test_scalar_document_rejected(self):
        """A non-object, non-list document raises InputError."""
        with pytest.raises(InputError):
            parse_timeline("timeline")


class TestLoadTimeline:
    """Test load_timeline."""

    def test_loads_file(self, tmp_path):
        """Reads a chronicles file from disk."""
        path = tmp_path / "chronicles.json"
        path.write_text(json.dumps({"timeline": [{"timestamp": 5}]}))
        assert load_timeline(str(path))[0].time == 5

    def test_missing_file(self, tmp_path):
        """A missing file raises InputError."""
        with pytest.raises(InputError, match="not found"):
            load_timeline(str(tmp_path / "absent.json"))

    def test_invalid_json(self, tmp_path):
        """Undecodable JSON raises InputError."""
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(InputError, match="not valid JSON"):
            load_timeline(str(path))
