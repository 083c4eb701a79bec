"""
tests/test_cycle.py - Single Monte Carlo Run Tests

Step counts, strictly increasing timestamps, per-seed determinism and the
wall-clock deadline.
"""

import time

import pytest

from foresight.constants import ActionType, CurveType, HOUR_MS, PatternType
from foresight.cycle import execute_run, run_single_simulation
from foresight.errors import SimulationTimeout
from foresight.timeline import format_timestamp, parse_timestamp
from foresight.types_config import SimulatedAction
from foresight.types_model import GrowthCurve, Pattern, PredictionModel
from foresight.types_state import GardenState, Genetics, Glyph

START_MS = parse_timestamp("2025-01-01T00:00:00Z")


@pytest.fixture
def model():
    return PredictionModel(
        patterns=(Pattern(PatternType.GROWTH, "Seed planted", "Connection formed", 0.5, 1.0, 0.3),),
        growth_curves={"glyphCount": GrowthCurve(CurveType.EXPONENTIAL, (0.5,), 0.7)},
        critical_mass=3.0,
    )


@pytest.fixture
def state():
    return GardenState(glyphs=tuple(Glyph(f"g{i}", "Seed", Genetics(0.6)) for i in range(4)))


@pytest.fixture
def actions():
    return (
        SimulatedAction(ActionType.PLANT, timestamp="2025-01-01T00:00:00Z"),
        SimulatedAction(ActionType.CONNECT),
    )


class TestStepSchedule:
    """Test outcome counts and timestamps."""

    def test_zero_horizon_no_actions(self, model, state):
        """Horizon 0 and no actions yields no outcomes."""
        assert run_single_simulation(model, state, [], 0, seed=1, start_ms=START_MS) == ()

    def test_actions_then_evolution(self, model, state, actions):
        """Two actions, then five-minute steps until the horizon."""
        outcomes = run_single_simulation(model, state, actions, HOUR_MS, seed=1, start_ms=START_MS)
        # clock 120_000 after actions; steps while clock < 3_600_000 -> 12
        assert len(outcomes) == 14, f"Expected 14 outcomes, got {len(outcomes)}"
        assert outcomes[0].timestamp == format_timestamp(START_MS + 60_000)
        assert outcomes[1].timestamp == format_timestamp(START_MS + 120_000)
        assert outcomes[2].timestamp == format_timestamp(START_MS + 420_000)

    def test_actions_only_with_zero_horizon(self, model, state, actions):
        """Action outcomes are recorded even when the horizon is 0."""
        outcomes = run_single_simulation(model, state, actions, 0, seed=1, start_ms=START_MS)
        assert len(outcomes) == 2

    def test_strictly_increasing_timestamps(self, model, state, actions):
        """Timestamps strictly increase within a run."""
        outcomes = run_single_simulation(model, state, actions, 2 * HOUR_MS, seed=3, start_ms=START_MS)
        times = [parse_timestamp(o.timestamp) for o in outcomes]
        assert all(a < b for a, b in zip(times, times[1:])), "Timestamps must strictly increase"

    def test_action_outcome_metrics(self, model, state, actions):
        """The plant step adds one glyph; the connect step adds one connection."""
        outcomes = run_single_simulation(model, state, actions, 0, seed=1, start_ms=START_MS)
        assert outcomes[0].state.glyph_count == 5
        assert outcomes[1].state.connection_density == pytest.approx(1 / 5)

    def test_natural_steps_carry_events(self, model, state):
        """Evolution steps report natural events from the model."""
        outcomes = run_single_simulation(model, state, [], HOUR_MS, seed=1, start_ms=START_MS)
        assert "Garden reaches critical mass - rapid evolution expected" in outcomes[0].events


class TestDeterminism:
    """Test per-seed determinism."""

    def test_same_seed_identical(self, model, state, actions):
        """Identical inputs give byte-identical outcomes."""
        a = run_single_simulation(model, state, actions, HOUR_MS, seed=11, start_ms=START_MS)
        b = run_single_simulation(model, state, actions, HOUR_MS, seed=11, start_ms=START_MS)
        assert [o.to_dict() for o in a] == [o.to_dict() for o in b]

    def test_seed_changes_outcomes(self, model, state, actions):
        """Different seeds plant different genetics."""
        a = run_single_simulation(model, state, actions, 0, seed=1, start_ms=START_MS)
        b = run_single_simulation(model, state, actions, 0, seed=2, start_ms=START_MS)
        assert a[0].state.total_love != b[0].state.total_love

    def test_input_state_untouched(self, model, state, actions):
        """The starting snapshot is never modified."""
        before = state.to_dict()
        run_single_simulation(model, state, actions, HOUR_MS, seed=1, start_ms=START_MS)
        assert state.to_dict() == before


class TestDeadline:
    """Test the wall-clock deadline."""

    def test_expired_deadline_raises_with_partial(self, model, state, actions):
        """A past deadline raises SimulationTimeout before the first step."""
        with pytest.raises(SimulationTimeout) as info:
            run_single_simulation(model, state, actions, HOUR_MS, seed=1, start_ms=START_MS,
                                  deadline=time.time() - 1)
        assert info.value.partial_outcomes == []

    def test_execute_run_folds_timeout(self, model, state, actions):
        """execute_run returns a truncated result instead of raising."""
        result = execute_run(model, state, actions, HOUR_MS, 1, START_MS, deadline=time.time() - 1)
        assert result.truncated is True
        assert result.outcomes == ()

    def test_execute_run_complete(self, model, state, actions):
        """Without a deadline the run completes."""
        result = execute_run(model, state, actions, 0, 5, START_MS)
        assert result.seed == 5
        assert result.truncated is False
        assert len(result.outcomes) == 2
