"""
foresight/measurement.py - Snapshot Measurement Functions

Metric extraction, natural-event prediction and warning detection.
Pure functions of a snapshot (and the model, for critical mass).
"""

from .constants import (
    EVENT_CRITICAL_MASS,
    EVENT_HIGH_DIVERSITY,
    EVENT_LOVE_SATURATED,
    HIGH_DIVERSITY_THRESHOLD,
    ISOLATION_DENSITY_THRESHOLD,
    LOVE_DEPLETION_RATIO,
    LOVE_SATURATION_RATIO,
    MONOCULTURE_DIVERSITY_THRESHOLD,
    OVERPOPULATION_THRESHOLD,
    WARNING_ISOLATION,
    WARNING_LOVE_DEPLETION,
    WARNING_MONOCULTURE,
    WARNING_OVERPOPULATION,
)
from .types_model import PredictionModel
from .types_state import GardenMetrics, GardenState


def extract_metrics(state: GardenState) -> GardenMetrics:
    """
    Summarize a snapshot.

    Formulas:
        glyphCount = |glyphs|
        totalLove = sum of loveFactor
        connectionDensity = |connections| / glyphCount (0 with no glyphs)
        diversityIndex = |distinct glyph types| / max(glyphCount, 1)

    Args:
        state: Garden snapshot

    Returns:
        GardenMetrics for the snapshot
    """
    glyph_count = state.glyph_count
    total_love = sum(g.love_factor for g in state.glyphs)
    distinct_types = len({g.type for g in state.glyphs})

    return GardenMetrics(
        glyph_count=glyph_count,
        total_love=total_love,
        connection_density=len(state.connections) / glyph_count if glyph_count > 0 else 0.0,
        diversity_index=distinct_types / max(glyph_count, 1),
    )


def predict_natural_events(state: GardenState, model: PredictionModel) -> list:
    """
    Events the garden produces on its own during a natural-evolution step.

    Args:
        state: Snapshot after evolution
        model: Trained model (critical mass threshold)

    Returns:
        list of fixed event strings, in check order
    """
    metrics = extract_metrics(state)
    events = []

    if metrics.glyph_count > model.critical_mass:
        events.append(EVENT_CRITICAL_MASS)

    if metrics.total_love > metrics.glyph_count * LOVE_SATURATION_RATIO:
        events.append(EVENT_LOVE_SATURATED)

    if metrics.diversity_index > HIGH_DIVERSITY_THRESHOLD:
        events.append(EVENT_HIGH_DIVERSITY)

    return events


def detect_warnings(metrics: GardenMetrics) -> list:
    """
    Risk conditions, each yielding at most one fixed warning string.

    Args:
        metrics: Metrics of the snapshot to check

    Returns:
        list of warnings, in check order (may be empty)
    """
    warnings = []

    if metrics.glyph_count > OVERPOPULATION_THRESHOLD:
        warnings.append(WARNING_OVERPOPULATION)

    if metrics.total_love < metrics.glyph_count * LOVE_DEPLETION_RATIO:
        warnings.append(WARNING_LOVE_DEPLETION)

    if metrics.connection_density < ISOLATION_DENSITY_THRESHOLD:
        warnings.append(WARNING_ISOLATION)

    if metrics.diversity_index < MONOCULTURE_DIVERSITY_THRESHOLD:
        warnings.append(WARNING_MONOCULTURE)

    return warnings
