"""
foresight/timeline.py - Historical Timeline Parsing

Turns a chronicles document (or a bare list of time points) into ordered
TimePoint values for the analyzer. Malformed input raises InputError.

Accepted shapes:
    {"timeline": [TimePoint, ...], "phases": [...]}
    [TimePoint, ...]

TimePoint:
    {"timestamp": ISO-8601 string | epoch ms,
     "events": [{"type", "description", "impact"?, "subject"?, "timestamp"?}],
     "metrics": {"glyphCount"?, "totalLove"?, "connectionCount"?}}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .errors import InputError
from .validation import compile_schema, read_json, require_valid


_EVENT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["type", "description"],
    "properties": {
        "type": {"type": "string"},
        "description": {"type": "string"},
        "impact": {"type": "number"},
        "subject": {"type": "string"},
        "timestamp": {"type": ["string", "number"]},
    },
}

_TIME_POINT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["timestamp"],
    "properties": {
        "timestamp": {"type": ["string", "number"]},
        "events": {"type": ["array", "null"], "items": _EVENT_SCHEMA},
        "metrics": {
            "type": ["object", "null"],
            "additionalProperties": {"type": ["number", "null"]},
        },
    },
}

TIMELINE_JSON_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Chronicles",
    "oneOf": [
        {
            "type": "object",
            "required": ["timeline"],
            "properties": {
                "timeline": {"type": "array", "items": _TIME_POINT_SCHEMA},
                "phases": {"type": "array"},
            },
        },
        {"type": "array", "items": _TIME_POINT_SCHEMA},
    ],
}

_TIMELINE_VALIDATOR = compile_schema(TIMELINE_JSON_SCHEMA)


def parse_timestamp(value: Union[str, int, float], source: str = "timestamp") -> int:
    """
    Convert an ISO-8601 string or epoch milliseconds to epoch milliseconds.

    Naive ISO strings are read as UTC.
    """
    if isinstance(value, bool):
        raise InputError(f"invalid timestamp {value!r}", source=source)
    if isinstance(value, (int, float)):
        return int(value)
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except (AttributeError, ValueError) as exc:
        raise InputError(f"invalid timestamp {value!r}", source=source) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(round(parsed.timestamp() * 1000))


def format_timestamp(epoch_ms: int) -> str:
    """Epoch milliseconds -> ISO-8601 UTC string with millisecond precision."""
    moment = datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class TimelineEvent:
    """Discrete garden event (birth, death, connection, mutation, milestone)."""
    type: str
    description: str
    impact: float = 0.0
    subject: Optional[str] = None


@dataclass(frozen=True)
class TimePoint:
    """One historical snapshot: when, what happened, and the metrics."""
    time: int  # epoch ms
    events: Tuple[TimelineEvent, ...] = ()
    metrics: Optional[Dict[str, float]] = None

    def metric(self, name: str) -> float:
        """Metric value, 0.0 when absent."""
        if not self.metrics:
            return 0.0
        value = self.metrics.get(name)
        return float(value) if value is not None else 0.0


@dataclass(frozen=True)
class Timeline:
    """Chronologically ordered time points."""
    points: Tuple[TimePoint, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    def __getitem__(self, index):
        return self.points[index]

    def series(self, metric: str) -> Tuple[Tuple[int, float], ...]:
        """(time, value) pairs for one metric."""
        return tuple((p.time, p.metric(metric)) for p in self.points)


def _parse_event(data: Mapping[str, Any]) -> TimelineEvent:
    return TimelineEvent(
        type=data["type"],
        description=data["description"],
        impact=float(data.get("impact", 0.0)),
        subject=data.get("subject"),
    )


def parse_timeline(document: Any, source: str = "timeline") -> Timeline:
    """
    Validate and parse a chronicles document.

    Points are stably sorted by timestamp.

    Raises:
        InputError: If the document is malformed
    """
    if isinstance(document, Timeline):
        return document
    require_valid(_TIMELINE_VALIDATOR, document, source)
    raw_points = document["timeline"] if isinstance(document, dict) else document

    points = []
    for i, raw in enumerate(raw_points):
        metrics = raw.get("metrics")
        points.append(TimePoint(
            time=parse_timestamp(raw["timestamp"], source=f"{source}[{i}].timestamp"),
            events=tuple(_parse_event(e) for e in raw.get("events") or ()),
            metrics=dict(metrics) if metrics is not None else None,
        ))
    points.sort(key=lambda p: p.time)
    return Timeline(points=tuple(points))


def load_timeline(path: str) -> Timeline:
    """Read and parse a chronicles JSON file."""
    return parse_timeline(read_json(path), source=str(path))
