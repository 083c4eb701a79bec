"""
tests/test_measurement.py - Snapshot Measurement Tests

Metric extraction, natural events and warning detection.
"""

import pytest

from foresight.constants import (
    EVENT_CRITICAL_MASS,
    EVENT_HIGH_DIVERSITY,
    EVENT_LOVE_SATURATED,
    WARNING_ISOLATION,
    WARNING_LOVE_DEPLETION,
    WARNING_MONOCULTURE,
    WARNING_OVERPOPULATION,
)
from foresight.measurement import detect_warnings, extract_metrics, predict_natural_events
from foresight.types_model import PredictionModel
from foresight.types_state import Connection, GardenMetrics, GardenState, Genetics, Glyph


def _garden(loves, types=None, connections=0):
    types = types or ["Seed"] * len(loves)
    glyphs = tuple(Glyph(f"g{i}", t, Genetics(love)) for i, (love, t) in enumerate(zip(loves, types)))
    links = tuple(Connection("g0", "g1", 0.5) for _ in range(connections))
    return GardenState(glyphs=glyphs, connections=links)


class TestExtractMetrics:
    """Test extract_metrics."""

    def test_empty_garden(self):
        """No glyphs gives all-zero metrics."""
        assert extract_metrics(GardenState()) == GardenMetrics(0, 0.0, 0.0, 0.0)

    def test_formulas(self):
        """Count, love sum, connections per glyph, distinct types per glyph."""
        metrics = extract_metrics(_garden([0.5, 0.25, 0.25, 1.0], ["Seed", "Seed", "Entity", "Seed"], 2))
        assert metrics.glyph_count == 4
        assert metrics.total_love == pytest.approx(2.0)
        assert metrics.connection_density == 0.5
        assert metrics.diversity_index == 0.5


class TestDetectWarnings:
    """Test detect_warnings."""

    def test_overpopulation_only(self):
        """101 glyphs, love 50, density 0.9, diversity 0.5: overpopulation only."""
        assert detect_warnings(GardenMetrics(101, 50.0, 0.9, 0.5)) == [WARNING_OVERPOPULATION]

    def test_healthy_garden(self):
        """A balanced garden raises no warnings."""
        assert detect_warnings(GardenMetrics(10, 8.0, 1.0, 0.3)) == []

    def test_co_occurring(self):
        """Several warnings may fire together, in check order."""
        assert detect_warnings(GardenMetrics(200, 1.0, 0.1, 0.01)) == [
            WARNING_OVERPOPULATION,
            WARNING_LOVE_DEPLETION,
            WARNING_ISOLATION,
            WARNING_MONOCULTURE,
        ]

    def test_empty_garden(self):
        """An empty garden is isolated and monocultural, not love-depleted."""
        assert detect_warnings(GardenMetrics(0, 0.0, 0.0, 0.0)) == [WARNING_ISOLATION, WARNING_MONOCULTURE]


class TestNaturalEvents:
    """Test predict_natural_events."""

    def test_all_events(self):
        """Above critical mass, saturated love, high diversity."""
        state = _garden([1.0, 1.0, 1.0], ["Seed", "Entity", "Tool"])
        events = predict_natural_events(state, PredictionModel(critical_mass=2))
        assert events == [EVENT_CRITICAL_MASS, EVENT_LOVE_SATURATED, EVENT_HIGH_DIVERSITY]

    def test_below_critical_mass(self):
        """Glyph count must exceed critical mass."""
        state = _garden([0.1, 0.1, 0.1])
        assert predict_natural_events(state, PredictionModel(critical_mass=3)) == []

    def test_no_events_for_empty_garden(self):
        """Empty garden with zero critical mass produces nothing."""
        assert predict_natural_events(GardenState(), PredictionModel()) == []
