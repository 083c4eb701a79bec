"""
foresight/types_model.py - Prediction Model Dataclasses

Pattern, GrowthCurve and PredictionModel. Immutable: produced by the
analyzer, read-only input to every simulation until retrained.

Map-typed fields (correlations, growth curves) are explicit dicts with a
defined JSON shape, so from_dict(to_dict(model)) == model.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from .constants import CurveType, PatternType
from .validation import compile_schema, require_valid


_UNIT_INTERVAL = {"type": "number", "minimum": 0.0, "maximum": 1.0}

_PATTERN_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["type", "trigger", "outcome", "probability", "timeToEffect", "impactRadius"],
    "properties": {
        "type": {"enum": [t.value for t in PatternType]},
        "trigger": {"type": "string"},
        "outcome": {"type": "string"},
        "probability": _UNIT_INTERVAL,
        "timeToEffect": {"type": "number"},
        "impactRadius": _UNIT_INTERVAL,
    },
}

_CURVE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["type", "parameters", "confidenceInterval"],
    "properties": {
        "type": {"enum": [t.value for t in CurveType]},
        "parameters": {"type": "array", "items": {"type": "number"}},
        "confidenceInterval": _UNIT_INTERVAL,
    },
}

MODEL_JSON_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "PredictionModel",
    "type": "object",
    "required": ["patterns"],
    "properties": {
        "patterns": {"type": "array", "items": _PATTERN_SCHEMA},
        "correlations": {
            "type": "object",
            "additionalProperties": {"type": "array", "items": {"type": "string"}},
        },
        "growthCurves": {"type": "object", "additionalProperties": _CURVE_SCHEMA},
        "criticalMass": {"type": "number"},
    },
}

_MODEL_VALIDATOR = compile_schema(MODEL_JSON_SCHEMA)


@dataclass(frozen=True)
class Pattern:
    """Observed or inferred cause -> effect tendency."""
    type: PatternType
    trigger: str
    outcome: str
    probability: float
    time_to_effect: float  # ms
    impact_radius: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "trigger": self.trigger,
            "outcome": self.outcome,
            "probability": self.probability,
            "timeToEffect": self.time_to_effect,
            "impactRadius": self.impact_radius,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Pattern:
        return cls(
            type=PatternType(data["type"]),
            trigger=data["trigger"],
            outcome=data["outcome"],
            probability=float(data["probability"]),
            time_to_effect=float(data["timeToEffect"]),
            impact_radius=float(data["impactRadius"]),
        )


@dataclass(frozen=True)
class GrowthCurve:
    """Parametric model of one metric's historical trajectory."""
    type: CurveType
    parameters: Tuple[float, ...]
    confidence_interval: float

    def __post_init__(self) -> None:
        if not isinstance(self.parameters, tuple):
            object.__setattr__(self, "parameters", tuple(self.parameters))

    @property
    def rate(self) -> float:
        """Slope-like scalar; 0.0 when the curve carries no parameters."""
        return self.parameters[0] if self.parameters else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "parameters": list(self.parameters),
            "confidenceInterval": self.confidence_interval,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GrowthCurve:
        return cls(
            type=CurveType(data["type"]),
            parameters=tuple(float(p) for p in data["parameters"]),
            confidence_interval=float(data["confidenceInterval"]),
        )


@dataclass(frozen=True)
class PredictionModel:
    """
    Trained model consumed by the simulator.

    Attributes:
        patterns: Consolidated patterns, in discovery order
        correlations: event type -> co-occurring event types
        growth_curves: metric name -> fitted curve
        critical_mass: Glyph count preceding the steepest historical growth
    """
    patterns: Tuple[Pattern, ...] = ()
    correlations: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    growth_curves: Dict[str, GrowthCurve] = field(default_factory=dict)
    critical_mass: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "patterns", tuple(self.patterns))
        object.__setattr__(
            self, "correlations",
            {k: frozenset(v) for k, v in self.correlations.items()}
        )
        object.__setattr__(self, "growth_curves", dict(self.growth_curves))

    def curve(self, metric: str) -> Optional[GrowthCurve]:
        return self.growth_curves.get(metric)

    def curve_rate(self, metric: str) -> float:
        """Rate parameter of a metric's curve, 0.0 if the curve is missing."""
        curve = self.growth_curves.get(metric)
        return curve.rate if curve is not None else 0.0

    def patterns_of_type(self, pattern_type: PatternType) -> Tuple[Pattern, ...]:
        return tuple(p for p in self.patterns if p.type == pattern_type)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "patterns": [p.to_dict() for p in self.patterns],
            "correlations": {k: sorted(v) for k, v in sorted(self.correlations.items())},
            "growthCurves": {k: c.to_dict() for k, c in sorted(self.growth_curves.items())},
            "criticalMass": self.critical_mass,
        }

    def to_json(self, pretty: bool = False) -> str:
        if pretty:
            return json.dumps(self.to_dict(), indent=2)
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Any, source: str = "model") -> PredictionModel:
        """
        Build a model from its JSON shape.

        Raises:
            InputError: If the document does not match MODEL_JSON_SCHEMA
        """
        require_valid(_MODEL_VALIDATOR, data, source)
        return cls(
            patterns=tuple(Pattern.from_dict(p) for p in data["patterns"]),
            correlations={k: frozenset(v) for k, v in data.get("correlations", {}).items()},
            growth_curves={
                k: GrowthCurve.from_dict(c) for k, c in data.get("growthCurves", {}).items()
            },
            critical_mass=float(data.get("criticalMass", 0.0)),
        )
