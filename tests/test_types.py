"""
tests/test_types.py - Dataclass and Serialization Tests

Model, state, action and parameter shapes: JSON (de)serialization,
immutability, and InputError on malformed documents.
"""

import json

import pytest

from foresight.constants import ActionType, CurveType, PatternType
from foresight.errors import InputError
from foresight.types_config import (
    CANONICAL_SCENARIOS,
    Constraints,
    SimulatedAction,
    SimulationParameters,
    actions_from_list,
    constraints_from_mapping,
)
from foresight.types_model import GrowthCurve, Pattern, PredictionModel
from foresight.types_result import PredictedOutcome, WhatIfBranch
from foresight.types_state import Connection, GardenMetrics, GardenState, Genetics, Glyph


@pytest.fixture
def model():
    return PredictionModel(
        patterns=(
            Pattern(PatternType.GROWTH, "Seed planted", "Connection formed", 0.7, 3_600_000.0, 0.3),
            Pattern(PatternType.MUTATION, "Surge", "Glyph mutated", 0.6, 60_000.0, 0.7),
        ),
        correlations={"birth": {"connection", "mutation"}, "connection": {"birth"}},
        growth_curves={"glyphCount": GrowthCurve(CurveType.EXPONENTIAL, (0.002,), 0.7)},
        critical_mass=4.0,
    )


@pytest.fixture
def state():
    return GardenState(
        glyphs=(
            Glyph("first-seed", "Seed", Genetics(0.6, 440.0), planted="2025-01-01T00:00:00Z"),
            Glyph("toolmaker", "Entity", Genetics(0.9)),
        ),
        connections=(Connection("first-seed", "toolmaker", 0.8),),
    )


class TestPredictionModel:
    """Test PredictionModel serialization."""

    def test_round_trip(self, model):
        """from_dict(to_dict(model)) reproduces the model."""
        restored = PredictionModel.from_dict(json.loads(model.to_json()))
        assert restored == model

    def test_correlations_serialize_as_sorted_lists(self, model):
        """Correlation sets become sorted JSON lists."""
        data = model.to_dict()
        assert data["correlations"]["birth"] == ["connection", "mutation"]

    def test_correlations_are_frozen(self, model):
        """Correlation values are frozensets."""
        assert isinstance(model.correlations["birth"], frozenset)

    def test_growth_curves_keyed_by_metric(self, model):
        """growthCurves is an object keyed by metric name."""
        data = model.to_dict()
        assert data["growthCurves"]["glyphCount"]["type"] == "exponential"
        assert data["growthCurves"]["glyphCount"]["parameters"] == [0.002]

    def test_invalid_probability_rejected(self, model):
        """Pattern probability outside [0, 1] raises InputError."""
        data = model.to_dict()
        data["patterns"][0]["probability"] = 2.0
        with pytest.raises(InputError):
            PredictionModel.from_dict(data)

    def test_missing_patterns_rejected(self):
        """A model document without patterns raises InputError."""
        with pytest.raises(InputError, match="patterns"):
            PredictionModel.from_dict({"criticalMass": 1})

    def test_curve_rate_missing_metric(self, model):
        """curve_rate is 0.0 for an unknown metric."""
        assert model.curve_rate("totalLove") == 0.0
        assert model.curve_rate("glyphCount") == 0.002

    def test_rate_without_parameters(self):
        """A curve with no parameters has rate 0.0."""
        assert GrowthCurve(CurveType.CHAOTIC, (), 0.1).rate == 0.0

    def test_patterns_of_type(self, model):
        """patterns_of_type filters by category."""
        growth = model.patterns_of_type(PatternType.GROWTH)
        assert [p.trigger for p in growth] == ["Seed planted"]


class TestGardenState:
    """Test snapshot value semantics."""

    def test_round_trip(self, state):
        """from_dict(to_dict(state)) reproduces the state."""
        assert GardenState.from_dict(json.loads(state.to_json())) == state

    def test_transformations_do_not_mutate(self, state):
        """add/replace/remove return new snapshots."""
        grown = state.add_glyphs(Glyph("new", "Seed", Genetics(0.5)))
        changed = state.replace_glyph(state.glyphs[0].with_love(0.1))
        assert len(state.glyphs) == 2, "Original snapshot should be unchanged"
        assert len(grown.glyphs) == 3
        assert state.glyphs[0].love_factor == 0.6
        assert changed.glyphs[0].love_factor == 0.1

    def test_remove_glyph_drops_connections(self, state):
        """Removing a glyph removes every connection touching it."""
        pruned = state.remove_glyph("toolmaker")
        assert [g.id for g in pruned.glyphs] == ["first-seed"]
        assert pruned.connections == ()

    def test_find(self, state):
        """find returns the glyph or None."""
        assert state.find("toolmaker").type == "Entity"
        assert state.find("missing") is None

    def test_missing_love_factor_defaults(self):
        """Glyph without genetics gets loveFactor 0."""
        parsed = GardenState.from_dict({"glyphs": [{"id": "g", "type": "Seed"}]})
        assert parsed.glyphs[0].love_factor == 0.0

    def test_malformed_state_rejected(self):
        """A glyph without an id raises InputError."""
        with pytest.raises(InputError):
            GardenState.from_dict({"glyphs": [{"type": "Seed"}]})

    def test_metrics_camel_case(self):
        """GardenMetrics serializes with camelCase keys."""
        metrics = GardenMetrics(3, 1.5, 0.5, 0.33)
        assert metrics.to_dict() == {
            "glyphCount": 3,
            "totalLove": 1.5,
            "connectionDensity": 0.5,
            "diversityIndex": 0.33,
        }


class TestActionsAndParameters:
    """Test SimulatedAction and SimulationParameters."""

    def test_action_from_dict(self):
        """Actions parse their type into ActionType."""
        action = SimulatedAction.from_dict({"type": "mutate", "target": "toolmaker"})
        assert action.type == ActionType.MUTATE
        assert action.target == "toolmaker"
        assert action.parameters == {}

    def test_unknown_action_rejected(self):
        """An unknown action type raises InputError."""
        with pytest.raises(InputError):
            SimulatedAction.from_dict({"type": "water"})

    def test_actions_from_list_requires_list(self):
        """A non-list actions document raises InputError."""
        with pytest.raises(InputError):
            actions_from_list({"type": "plant"})

    def test_make_stamps_timestamp(self):
        """make() stamps an ISO timestamp."""
        action = SimulatedAction.make("plant")
        assert action.timestamp is not None and action.timestamp.endswith("Z")

    def test_parameters_defaults(self):
        """Defaults: one hour, 3 branches, 10 runs, no constraints."""
        params = SimulationParameters.from_dict({})
        assert params.time_horizon == 3_600_000
        assert params.branches == 3
        assert params.monte_carlo_runs == 10
        assert params.constraints is None

    def test_parameters_camel_case(self):
        """camelCase keys and nested constraints parse."""
        params = SimulationParameters.from_dict({
            "timeHorizon": 600_000,
            "monteCarloRuns": 2,
            "constraints": {"maxGlyphs": 50, "requiredConnections": ["a"]},
        })
        assert params.time_horizon == 600_000
        assert params.constraints == Constraints(max_glyphs=50, required_connections=("a",))

    def test_zero_runs_rejected(self):
        """monteCarloRuns must be at least 1."""
        with pytest.raises(InputError):
            SimulationParameters.from_dict({"monteCarloRuns": 0})

    def test_empty_constraints_are_none(self):
        """All-unset constraints collapse to None."""
        assert constraints_from_mapping({"maxGlyphs": None, "minLove": None}) is None
        assert constraints_from_mapping({}) is None


class TestScenarios:
    """Test canonical scenario presets."""

    def test_three_scenarios_in_order(self):
        """Aggressive growth, deep connections, rapid mutation."""
        hypotheses = [s.hypothesis for s in CANONICAL_SCENARIOS]
        assert hypotheses == [
            "What if we plant many seeds rapidly?",
            "What if we prioritize deep connections?",
            "What if we encourage rapid mutation?",
        ]

    def test_recipes(self):
        """Each scenario expands into its action sequence."""
        kinds = [[a.type.value for a in s.actions()] for s in CANONICAL_SCENARIOS]
        assert kinds == [
            ["plant", "plant", "plant", "nurture"],
            ["connect", "nurture", "connect"],
            ["mutate", "plant", "mutate"],
        ]
        targets = [a.target for a in CANONICAL_SCENARIOS[2].actions()]
        assert targets == ["first-seed", None, "toolmaker"]


class TestBranchSerialization:
    """Test WhatIfBranch JSON shape."""

    def test_to_dict_shape(self):
        """Branch serializes with camelCase keys including run counters."""
        outcome = PredictedOutcome("2025-01-01T00:01:00.000Z", GardenMetrics(1, 0.5, 0.0, 1.0),
                                   events=["e"], warnings=["w"])
        branch = WhatIfBranch(
            id="branch-1",
            hypothesis="What if?",
            starting_point="2025-01-01T00:00:00.000Z",
            actions=[SimulatedAction(ActionType.PLANT)],
            outcomes=[outcome],
            probability=0.5,
            desirability=0.1,
            runs_completed=2,
        )
        data = json.loads(branch.to_json())
        assert data["startingPoint"] == "2025-01-01T00:00:00.000Z"
        assert data["runsCompleted"] == 2
        assert data["runsFailed"] == 0
        assert data["truncated"] is False
        assert data["outcomes"][0]["state"]["glyphCount"] == 1
        assert PredictedOutcome.from_dict(data["outcomes"][0]) == outcome
        assert branch.final_outcome == outcome
