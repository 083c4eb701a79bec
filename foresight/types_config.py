"""
foresight/types_config.py - Simulation Inputs and Scenario Presets

SimulatedAction, Constraints and SimulationParameters, plus the three
canonical what-if scenarios used by generate_alternatives.
Frozen dataclasses, no behavior beyond (de)serialization.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .constants import (
    ActionType,
    DEFAULT_BRANCHES,
    DEFAULT_MONTE_CARLO_RUNS,
    DEFAULT_TIME_HORIZON_MS,
)
from .errors import InputError
from .validation import compile_schema, require_valid


ACTION_JSON_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["type"],
    "properties": {
        "type": {"enum": [a.value for a in ActionType]},
        "target": {"type": ["string", "null"]},
        "parameters": {"type": "object"},
        "timestamp": {"type": ["string", "null"]},
    },
}

PARAMETERS_JSON_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "SimulationParameters",
    "type": "object",
    "properties": {
        "timeHorizon": {"type": "number", "minimum": 0},
        "branches": {"type": "integer", "minimum": 1},
        "monteCarloRuns": {"type": "integer", "minimum": 1},
        "constraints": {
            "type": ["object", "null"],
            "properties": {
                "maxGlyphs": {"type": ["number", "null"]},
                "minLove": {"type": ["number", "null"]},
                "requiredConnections": {
                    "type": ["array", "null"],
                    "items": {"type": "string"},
                },
            },
        },
    },
}

_ACTION_VALIDATOR = compile_schema(ACTION_JSON_SCHEMA)
_PARAMETERS_VALIDATOR = compile_schema(PARAMETERS_JSON_SCHEMA)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class SimulatedAction:
    """Explicit, caller-specified intervention."""
    type: ActionType
    target: Optional[str] = None
    parameters: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type.value,
            "parameters": dict(self.parameters),
            "timestamp": self.timestamp,
        }
        if self.target is not None:
            data["target"] = self.target
        return data

    @classmethod
    def from_dict(cls, data: Any, source: str = "action") -> SimulatedAction:
        require_valid(_ACTION_VALIDATOR, data, source)
        return cls(
            type=ActionType(data["type"]),
            target=data.get("target"),
            parameters=dict(data.get("parameters") or {}),
            timestamp=data.get("timestamp"),
        )

    @classmethod
    def make(cls, action_type: str, target: Optional[str] = None) -> SimulatedAction:
        """Build an action stamped with the current time."""
        return cls(type=ActionType(action_type), target=target, timestamp=_now_iso())


def actions_from_list(items: Any, source: str = "actions") -> Tuple[SimulatedAction, ...]:
    """Parse a JSON list of actions."""
    if not isinstance(items, list):
        raise InputError("expected a list of actions", source=source)
    return tuple(
        SimulatedAction.from_dict(item, source=f"{source}[{i}]")
        for i, item in enumerate(items)
    )


@dataclass(frozen=True)
class Constraints:
    max_glyphs: Optional[float] = None
    min_love: Optional[float] = None
    required_connections: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.max_glyphs is not None:
            data["maxGlyphs"] = self.max_glyphs
        if self.min_love is not None:
            data["minLove"] = self.min_love
        if self.required_connections:
            data["requiredConnections"] = list(self.required_connections)
        return data


@dataclass(frozen=True)
class SimulationParameters:
    """
    Simulation parameters.

    Attributes:
        time_horizon: How far to simulate, in ms
        branches: How many alternatives the caller wants to rank
        monte_carlo_runs: Seeded iterations per branch
        constraints: Optional desirability constraints
    """
    time_horizon: int = DEFAULT_TIME_HORIZON_MS
    branches: int = DEFAULT_BRANCHES
    monte_carlo_runs: int = DEFAULT_MONTE_CARLO_RUNS
    constraints: Optional[Constraints] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "timeHorizon": self.time_horizon,
            "branches": self.branches,
            "monteCarloRuns": self.monte_carlo_runs,
        }
        if self.constraints is not None:
            data["constraints"] = self.constraints.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Any, source: str = "parameters") -> SimulationParameters:
        require_valid(_PARAMETERS_VALIDATOR, data, source)
        return cls(
            time_horizon=int(data.get("timeHorizon", DEFAULT_TIME_HORIZON_MS)),
            branches=int(data.get("branches", DEFAULT_BRANCHES)),
            monte_carlo_runs=int(data.get("monteCarloRuns", DEFAULT_MONTE_CARLO_RUNS)),
            constraints=constraints_from_mapping(data.get("constraints")),
        )


# =============================================================================
# CANONICAL SCENARIOS (generate_alternatives)
# =============================================================================

@dataclass(frozen=True)
class Scenario:
    """Named hypothesis with its action recipe."""
    name: str
    hypothesis: str
    recipe: Tuple[Tuple[str, Optional[str]], ...]  # (action type, target)

    def actions(self) -> List[SimulatedAction]:
        return [SimulatedAction.make(kind, target) for kind, target in self.recipe]


SCENARIO_AGGRESSIVE_GROWTH = Scenario(
    name="AGGRESSIVE_GROWTH",
    hypothesis="What if we plant many seeds rapidly?",
    recipe=(("plant", None), ("plant", None), ("plant", None), ("nurture", None)),
)

SCENARIO_DEEP_CONNECTIONS = Scenario(
    name="DEEP_CONNECTIONS",
    hypothesis="What if we prioritize deep connections?",
    recipe=(("connect", None), ("nurture", None), ("connect", None)),
)

SCENARIO_RAPID_MUTATION = Scenario(
    name="RAPID_MUTATION",
    hypothesis="What if we encourage rapid mutation?",
    recipe=(("mutate", "first-seed"), ("plant", None), ("mutate", "toolmaker")),
)

CANONICAL_SCENARIOS: Sequence[Scenario] = (
    SCENARIO_AGGRESSIVE_GROWTH,
    SCENARIO_DEEP_CONNECTIONS,
    SCENARIO_RAPID_MUTATION,
)


def constraints_from_mapping(raw: Optional[Mapping[str, Any]]) -> Optional[Constraints]:
    """Build Constraints from keyword-style options, None when all unset."""
    if not raw:
        return None
    constraints = Constraints(
        max_glyphs=raw.get("maxGlyphs"),
        min_love=raw.get("minLove"),
        required_connections=tuple(raw.get("requiredConnections") or ()),
    )
    if constraints == Constraints():
        return None
    return constraints
