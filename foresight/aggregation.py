"""
foresight/aggregation.py - Run Aggregation and Branch Scoring

Collapses Monte Carlo runs into one outcome sequence, then scores it:
  - probability: warning decay x growth-curve alignment, per outcome
  - desirability: love, connectivity, diversity and warnings of the final
    outcome, minus constraint penalties
"""

import math
from typing import List, Optional, Sequence

import numpy as np

from .constants import (
    CONSTRAINT_PENALTY,
    DENSITY_SCORE_WEIGHT,
    DIVERSITY_SCORE_WEIGHT,
    LOVE_SCORE_SCALE,
    LOVE_SCORE_WEIGHT,
    WARNING_PROBABILITY_DECAY,
    WARNING_SCORE_PENALTY,
)
from .errors import AggregationError
from .types_config import Constraints
from .types_model import PredictionModel
from .types_result import PredictedOutcome, WhatIfBranch
from .types_state import GardenMetrics
from .validation import clamp


# =============================================================================
# AGGREGATION
# =============================================================================

def _union_in_order(groups: Sequence[Sequence[str]]) -> List[str]:
    seen = {}
    for group in groups:
        for item in group:
            seen.setdefault(item, None)
    return list(seen)


def aggregate_simulations(results: Sequence[Sequence[PredictedOutcome]]) -> tuple:
    """
    Step-wise aggregation across runs.

    Steps 0..min_len-1 are aggregated: metrics are arithmetic means, events and
    warnings are the deduplicated union in first-seen order, and the timestamp
    is taken from the first run.

    Args:
        results: One outcome sequence per run

    Returns:
        tuple of PredictedOutcome ((), when there are no runs)
    """
    if not results:
        return ()

    steps = min(len(run) for run in results)
    aggregated = []
    for t in range(steps):
        outcomes = [run[t] for run in results]
        aggregated.append(PredictedOutcome(
            timestamp=outcomes[0].timestamp,
            state=GardenMetrics(
                glyph_count=float(np.mean([o.state.glyph_count for o in outcomes])),
                total_love=float(np.mean([o.state.total_love for o in outcomes])),
                connection_density=float(np.mean([o.state.connection_density for o in outcomes])),
                diversity_index=float(np.mean([o.state.diversity_index for o in outcomes])),
            ),
            events=_union_in_order([o.events for o in outcomes]),
            warnings=_union_in_order([o.warnings for o in outcomes]),
        ))
    return tuple(aggregated)


# =============================================================================
# SCORING
# =============================================================================

def calculate_branch_probability(outcomes: Sequence[PredictedOutcome], model: PredictionModel,
                                 initial_glyph_count: int) -> float:
    """
    Plausibility of an outcome sequence under the model.

    Per outcome:
        p *= 0.9 ** |warnings|
        p *= 1 - |expected_rate - glyphCount / max(initial, 1)|

    The alignment factor may go negative for any single outcome; the product
    is clamped to [0, 1] only at the end. An empty sequence scores 1.0.

    Args:
        outcomes: Aggregated outcomes
        model: Model whose glyphCount curve supplies expected_rate (0 if absent)
        initial_glyph_count: Glyph count of the starting snapshot
    """
    expected_growth = model.curve_rate("glyphCount")
    baseline = initial_glyph_count or 1

    probability = 1.0
    for outcome in outcomes:
        probability *= WARNING_PROBABILITY_DECAY ** len(outcome.warnings)
        actual_growth = outcome.state.glyph_count / baseline
        probability *= 1 - abs(expected_growth - actual_growth)

    return clamp(probability, 0.0, 1.0)


def evaluate_desirability(outcomes: Sequence[PredictedOutcome],
                          constraints: Optional[Constraints] = None) -> float:
    """
    Favorability of the final outcome, clamped to [-1, 1]; 0 with no outcomes.

    Formula:
        tanh(love / 10) * 0.3 + tanh(density) * 0.3 + diversity * 0.2
        - 0.1 * |warnings|
        - 0.5 if maxGlyphs is set and exceeded
        - 0.5 if minLove is set and not met
    """
    if not outcomes:
        return 0.0
    final = outcomes[-1]
    metrics = final.state

    score = 0.0
    score += math.tanh(metrics.total_love / LOVE_SCORE_SCALE) * LOVE_SCORE_WEIGHT
    score += math.tanh(metrics.connection_density) * DENSITY_SCORE_WEIGHT
    score += metrics.diversity_index * DIVERSITY_SCORE_WEIGHT
    score -= len(final.warnings) * WARNING_SCORE_PENALTY

    if constraints is not None:
        if constraints.max_glyphs is not None and metrics.glyph_count > constraints.max_glyphs:
            score -= CONSTRAINT_PENALTY
        if constraints.min_love is not None and metrics.total_love < constraints.min_love:
            score -= CONSTRAINT_PENALTY

    return clamp(score, -1.0, 1.0)


def rank_branches(branches: Sequence[WhatIfBranch], limit: Optional[int] = None) -> List[WhatIfBranch]:
    """Most desirable first; ties keep their input order."""
    ranked = sorted(branches, key=lambda b: b.desirability, reverse=True)
    if limit is not None:
        return ranked[:limit]
    return ranked


# =============================================================================
# STOPRULES
# =============================================================================

def stoprule_all_runs_failed(failures: Sequence[str], runs: int) -> None:
    """
    Abort a simulation whose every Monte Carlo run raised.

    Raises:
        AggregationError: Always (carries the per-run failure messages)
    """
    raise AggregationError(
        f"all {runs} Monte Carlo runs failed",
        failures=list(failures),
    )
