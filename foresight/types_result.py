"""
foresight/types_result.py - Outcome and Branch Dataclasses

PredictedOutcome (one per simulation step) and WhatIfBranch (aggregated,
scored hypothetical future). Immutable result containers.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from .types_config import SimulatedAction
from .types_state import GardenMetrics


@dataclass(frozen=True)
class PredictedOutcome:
    """State metrics, events and warnings at one virtual timestamp."""
    timestamp: str
    state: GardenMetrics
    events: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "events", tuple(self.events))
        object.__setattr__(self, "warnings", tuple(self.warnings))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "state": self.state.to_dict(),
            "events": list(self.events),
            "warnings": list(self.warnings),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PredictedOutcome:
        return cls(
            timestamp=data["timestamp"],
            state=GardenMetrics.from_dict(data["state"]),
            events=tuple(data.get("events", ())),
            warnings=tuple(data.get("warnings") or ()),
        )


@dataclass(frozen=True)
class WhatIfBranch:
    """
    One aggregated, scored hypothetical future.

    Attributes:
        id: Branch identifier
        hypothesis: Caller's question in plain words
        starting_point: ISO timestamp the virtual clock started from
        actions: Interventions simulated
        outcomes: Step-aligned outcomes averaged across runs
        probability: Plausibility score in [0, 1]
        desirability: Favorability score in [-1, 1]
        truncated: True when the wall-clock budget cut the simulation short
        runs_completed: Runs that contributed outcomes
        runs_failed: Runs excluded after raising
    """
    id: str
    hypothesis: str
    starting_point: str
    actions: Tuple[SimulatedAction, ...]
    outcomes: Tuple[PredictedOutcome, ...]
    probability: float
    desirability: float
    truncated: bool = False
    runs_completed: int = 0
    runs_failed: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "actions", tuple(self.actions))
        object.__setattr__(self, "outcomes", tuple(self.outcomes))

    @property
    def final_outcome(self):
        return self.outcomes[-1] if self.outcomes else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "hypothesis": self.hypothesis,
            "startingPoint": self.starting_point,
            "actions": [a.to_dict() for a in self.actions],
            "outcomes": [o.to_dict() for o in self.outcomes],
            "probability": self.probability,
            "desirability": self.desirability,
            "truncated": self.truncated,
            "runsCompleted": self.runs_completed,
            "runsFailed": self.runs_failed,
        }

    def to_json(self, pretty: bool = False) -> str:
        if pretty:
            return json.dumps(self.to_dict(), indent=2)
        return json.dumps(self.to_dict(), separators=(",", ":"))


@dataclass(frozen=True)
class RunResult:
    """Outcomes of one Monte Carlo run, keyed by its seed."""
    seed: int
    outcomes: Tuple[PredictedOutcome, ...] = field(default_factory=tuple)
    truncated: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "outcomes", tuple(self.outcomes))
