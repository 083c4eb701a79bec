"""
tests/test_actions.py - Action Semantics Tests

plant, connect, mutate, nurture, prune; cascades; natural evolution.
"""

import numpy as np
import pytest

from foresight.actions import apply_action, evolve_state, predict_cascades
from foresight.constants import ActionType, CurveType, PatternType
from foresight.types_config import SimulatedAction
from foresight.types_model import GrowthCurve, Pattern, PredictionModel
from foresight.types_state import Connection, GardenState, Genetics, Glyph


@pytest.fixture
def garden():
    return GardenState(
        glyphs=(
            Glyph("first-seed", "Seed", Genetics(0.5)),
            Glyph("toolmaker", "Seed", Genetics(0.95)),
            Glyph("weed", "Seed", Genetics(0.2)),
        ),
        connections=(Connection("weed", "toolmaker", 0.6),),
    )


def _act(kind, target=None):
    return SimulatedAction(type=ActionType(kind), target=target, timestamp="2025-01-01T00:00:00Z")


class TestPlant:
    """Test the plant action."""

    def test_appends_seed(self, garden):
        """Plant appends one Seed glyph named by step and seed."""
        planted = apply_action(garden, _act("plant"), np.random.default_rng(7), step=2, seed=7)
        new = planted.glyphs[-1]
        assert len(planted.glyphs) == 4
        assert new.id == "simulated-2-7"
        assert new.type == "Seed"
        assert new.planted == "2025-01-01T00:00:00Z"
        assert 0.5 <= new.love_factor < 1.0, f"loveFactor out of range: {new.love_factor}"
        assert 200.0 <= new.genetics.resonance_freq < 800.0

    def test_caller_state_untouched(self, garden):
        """The input snapshot is never modified."""
        apply_action(garden, _act("plant"), np.random.default_rng(1))
        assert len(garden.glyphs) == 3

    def test_seeded(self, garden):
        """Same seed, same planted genetics."""
        a = apply_action(garden, _act("plant"), np.random.default_rng(3), seed=3)
        b = apply_action(garden, _act("plant"), np.random.default_rng(3), seed=3)
        assert a == b


class TestConnect:
    """Test the connect action."""

    def test_connects_first_two(self, garden):
        """A connection joins the first two glyphs."""
        linked = apply_action(garden, _act("connect"), np.random.default_rng(1))
        new = linked.connections[-1]
        assert (new.source, new.target) == ("first-seed", "toolmaker")
        assert 0.5 <= new.strength < 1.0

    def test_needs_two_glyphs(self):
        """Fewer than two glyphs is a no-op."""
        lonely = GardenState(glyphs=(Glyph("solo", "Seed", Genetics(0.5)),))
        assert apply_action(lonely, _act("connect"), np.random.default_rng(1)) == lonely


class TestMutateNurturePrune:
    """Test mutate, nurture and prune."""

    def test_mutate_target(self, garden):
        """Mutate multiplies love by 1.2 and promotes to Entity."""
        mutated = apply_action(garden, _act("mutate", "first-seed"), np.random.default_rng(1))
        glyph = mutated.find("first-seed")
        assert glyph.type == "Entity"
        assert glyph.love_factor == pytest.approx(0.6)

    def test_mutate_is_not_clamped(self, garden):
        """Mutation may push love above 1.0."""
        mutated = apply_action(garden, _act("mutate", "toolmaker"), np.random.default_rng(1))
        assert mutated.find("toolmaker").love_factor == pytest.approx(1.14)

    def test_mutate_missing_target(self, garden):
        """Unknown or absent target leaves the state unchanged."""
        assert apply_action(garden, _act("mutate", "ghost"), np.random.default_rng(1)) == garden
        assert apply_action(garden, _act("mutate"), np.random.default_rng(1)) == garden

    def test_nurture_clamps(self, garden):
        """Nurture multiplies love by 1.1, capped at 1.0."""
        nurtured = apply_action(garden, _act("nurture"), np.random.default_rng(1))
        loves = [g.love_factor for g in nurtured.glyphs]
        assert loves == [pytest.approx(0.55), 1.0, pytest.approx(0.22)]

    def test_prune_target(self, garden):
        """Prune removes the target and its connections."""
        pruned = apply_action(garden, _act("prune", "toolmaker"), np.random.default_rng(1))
        assert [g.id for g in pruned.glyphs] == ["first-seed", "weed"]
        assert pruned.connections == ()

    def test_prune_without_target_removes_weakest(self, garden):
        """Without a target, the least-loved glyph goes."""
        pruned = apply_action(garden, _act("prune"), np.random.default_rng(1))
        assert pruned.find("weed") is None
        assert len(pruned.glyphs) == 2

    def test_prune_missing_target(self, garden):
        """Unknown target is a no-op."""
        assert apply_action(garden, _act("prune", "ghost"), np.random.default_rng(1)) == garden

    def test_prune_empty_garden(self):
        """Nothing to prune in an empty garden."""
        assert apply_action(GardenState(), _act("prune"), np.random.default_rng(1)) == GardenState()


class TestCascades:
    """Test predict_cascades."""

    @staticmethod
    def _model(probability):
        return PredictionModel(patterns=(
            Pattern(PatternType.GROWTH, "Seed planted", "Connection formed", probability, 1.0, 0.3),
            Pattern(PatternType.MUTATION, "Surge", "Mutation", 1.0, 1.0, 0.7),
        ))

    def test_certain_growth_pattern(self):
        """Probability 1.0 always cascades; non-growth patterns never do."""
        assert predict_cascades(self._model(1.0), _act("plant"), np.random.default_rng(5)) == ["Connection formed"]

    def test_impossible_growth_pattern(self):
        """Probability 0.0 never cascades."""
        assert predict_cascades(self._model(0.0), _act("plant"), np.random.default_rng(5)) == []

    def test_only_plant_cascades(self):
        """Other actions produce no cascade events."""
        assert predict_cascades(self._model(1.0), _act("nurture"), np.random.default_rng(5)) == []


class TestEvolveState:
    """Test evolve_state."""

    @staticmethod
    def _model(rate):
        return PredictionModel(growth_curves={"glyphCount": GrowthCurve(CurveType.EXPONENTIAL, (rate,), 0.7)})

    def test_growth(self, garden):
        """Count grows to floor(count * (1 + rate * dt / 1e6))."""
        # 3 * (1 + 1.0 * 1_000_000 / 1_000_000) = 6
        evolved = evolve_state(garden, self._model(1.0), 1_000_000, seed=4)
        assert len(evolved.glyphs) == 6
        assert [g.id for g in evolved.glyphs[3:]] == ["evolved-4-3", "evolved-4-4", "evolved-4-5"]
        for glyph in evolved.glyphs[3:]:
            assert glyph.type == "Seed"
            assert 0.3 <= glyph.love_factor < 0.7

    def test_deterministic(self, garden):
        """Same seed, same evolved glyphs."""
        model = self._model(1.0)
        assert evolve_state(garden, model, 1_000_000, 9) == evolve_state(garden, model, 1_000_000, 9)

    def test_floor_blocks_small_growth(self, garden):
        """Growth below one whole glyph adds nothing."""
        assert evolve_state(garden, self._model(1e-6), 300_000, 1) == garden

    def test_negative_rate_never_shrinks(self, garden):
        """Natural evolution only adds glyphs."""
        assert evolve_state(garden, self._model(-1.0), 300_000, 1) == garden

    def test_missing_curve(self, garden):
        """Without a glyphCount curve the state is unchanged."""
        assert evolve_state(garden, PredictionModel(), 300_000, 1) == garden
