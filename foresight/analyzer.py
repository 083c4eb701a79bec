"""
foresight/analyzer.py - Pattern Analyzer

Learns a PredictionModel from a historical garden timeline:
  1. Pattern extraction: cause -> effect pairs between adjacent time points
  2. Consolidation: group by (type, trigger prefix), average the group
  3. Growth-curve fitting per tracked metric
  4. Correlation discovery: event types that co-occur within a time point
  5. Critical mass: glyph count just before the steepest growth spike

Also answers point predictions from the trained model (next event, growth
trajectory). Every training run leaves receipts in the analyzer's ledger.
"""

from __future__ import annotations

from collections import Counter, OrderedDict
from itertools import combinations
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Union

import numpy as np

from receipts import append_receipts, emit_receipt

from .config import ForesightConfig
from .constants import (
    BASE_IMPACT_RADIUS,
    BASE_PATTERN_PROBABILITY,
    BIRTH_CONNECTION_IMPACT,
    BIRTH_CONNECTION_PROBABILITY,
    CHAOS_CEILING,
    CONNECTION_CHAIN_IMPACT,
    CONNECTION_CHAIN_PROBABILITY,
    CORRELATION_MIN_COUNT,
    CurveType,
    DEFAULT_NEXT_EVENT,
    DEFAULT_NEXT_EVENT_PROBABILITY,
    DEFAULT_NEXT_EVENT_TIMEFRAME_MS,
    DEGENERATE_CONFIDENCE,
    DEGENERATE_GROWTH_RATE,
    EXPONENTIAL_RATE_TOLERANCE,
    FITTED_CONFIDENCE,
    HIGH_IMPACT_MUTATION_IMPACT,
    HIGH_IMPACT_MUTATION_PROBABILITY,
    HIGH_IMPACT_THRESHOLD,
    LOGISTIC_CEILING,
    LOGISTIC_SLOWDOWN_RATIO,
    MIN_CURVE_POINTS,
    MIN_TIMELINE_POINTS,
    OSCILLATION_AMPLITUDE,
    OUTCOME_PATTERN_TYPES,
    PATTERN_RETENTION_THRESHOLD,
    PatternType,
    TRAJECTORY_STEPS,
    TRIGGER_GROUP_PREFIX,
)
from .errors import InsufficientDataError
from .timeline import Timeline, TimelineEvent, parse_timeline, load_timeline
from .types_model import GrowthCurve, Pattern, PredictionModel
from .validation import read_json


# =============================================================================
# PATTERN EXTRACTION
# =============================================================================

def categorize_pattern(outcome_type: str) -> PatternType:
    """Pattern type follows the outcome: birth/connection grow, death decays."""
    return OUTCOME_PATTERN_TYPES.get(outcome_type, PatternType.CONNECTION)


def analyze_event_pair(trigger: TimelineEvent, outcome: TimelineEvent, time_delta: float) -> Pattern:
    """
    Classify one (trigger, outcome) pair with the fixed heuristic table.

    Args:
        trigger: Event at the earlier time point
        outcome: Event at the next time point
        time_delta: Wall-clock gap between the two time points, ms

    Returns:
        Pattern (retention is decided by the caller)
    """
    probability = BASE_PATTERN_PROBABILITY
    impact_radius = BASE_IMPACT_RADIUS

    if trigger.type == "birth" and outcome.type == "connection":
        probability = BIRTH_CONNECTION_PROBABILITY
        impact_radius = BIRTH_CONNECTION_IMPACT

    if trigger.type == "connection" and outcome.type == "connection":
        probability = CONNECTION_CHAIN_PROBABILITY
        impact_radius = CONNECTION_CHAIN_IMPACT

    if trigger.impact > HIGH_IMPACT_THRESHOLD and outcome.type == "mutation":
        probability = HIGH_IMPACT_MUTATION_PROBABILITY
        impact_radius = HIGH_IMPACT_MUTATION_IMPACT

    return Pattern(
        type=categorize_pattern(outcome.type),
        trigger=trigger.description,
        outcome=outcome.description,
        probability=probability,
        time_to_effect=float(time_delta),
        impact_radius=impact_radius,
    )


def extract_event_patterns(timeline: Timeline) -> List[Pattern]:
    """
    Cross every event of a time point with every event of the next one.

    Only pairs whose probability exceeds PATTERN_RETENTION_THRESHOLD survive.

    Raises:
        InsufficientDataError: Fewer than two time points
    """
    if len(timeline) < MIN_TIMELINE_POINTS:
        raise InsufficientDataError(
            f"pattern extraction needs {MIN_TIMELINE_POINTS} time points, got {len(timeline)}",
            points=len(timeline),
        )

    patterns = []
    for current, future in zip(timeline.points, timeline.points[1:]):
        if not current.events or not future.events:
            continue
        delta = future.time - current.time
        for trigger in current.events:
            for outcome in future.events:
                pattern = analyze_event_pair(trigger, outcome, delta)
                if pattern.probability > PATTERN_RETENTION_THRESHOLD:
                    patterns.append(pattern)
    return patterns


def consolidate_patterns(patterns: Sequence[Pattern]) -> List[Pattern]:
    """
    Merge patterns sharing (type, first 20 chars of trigger).

    Probability, time_to_effect and impact_radius become group means;
    trigger/outcome come from the group's first member. Group order follows
    first appearance.
    """
    grouped: "OrderedDict[Tuple[PatternType, str], List[Pattern]]" = OrderedDict()
    for pattern in patterns:
        key = (pattern.type, pattern.trigger[:TRIGGER_GROUP_PREFIX])
        grouped.setdefault(key, []).append(pattern)

    consolidated = []
    for group in grouped.values():
        representative = group[0]
        consolidated.append(Pattern(
            type=representative.type,
            trigger=representative.trigger,
            outcome=representative.outcome,
            probability=float(np.mean([p.probability for p in group])),
            time_to_effect=float(np.mean([p.time_to_effect for p in group])),
            impact_radius=float(np.mean([p.impact_radius for p in group])),
        ))
    return consolidated


# =============================================================================
# GROWTH CURVES
# =============================================================================

def degenerate_curve() -> GrowthCurve:
    """Low-confidence placeholder for timelines too short to fit."""
    return GrowthCurve(
        type=CurveType.EXPONENTIAL,
        parameters=(DEGENERATE_GROWTH_RATE,),
        confidence_interval=DEGENERATE_CONFIDENCE,
    )


def classify_curve(first_half_rate: float, second_half_rate: float) -> CurveType:
    """
    Pick a curve family from the two half-rates.

    Order: near-equal rates -> exponential; strong slowdown -> logistic;
    any negative rate -> oscillating; otherwise the exponential default.
    """
    curve_type = CurveType.EXPONENTIAL
    if abs(first_half_rate - second_half_rate) < EXPONENTIAL_RATE_TOLERANCE:
        curve_type = CurveType.EXPONENTIAL
    elif second_half_rate < first_half_rate * LOGISTIC_SLOWDOWN_RATIO:
        curve_type = CurveType.LOGISTIC
    elif first_half_rate < 0 or second_half_rate < 0:
        curve_type = CurveType.OSCILLATING
    return curve_type


def fit_growth_curve(series: Sequence[Tuple[int, float]]) -> GrowthCurve:
    """
    Fit a curve from the first, middle and last (time, value) points.

    Rates are value units per millisecond. The stored parameter is the overall
    first-to-last rate.

    Raises:
        InsufficientDataError: Fewer than three points, or a zero time span
            between the sampled points
    """
    if len(series) < MIN_CURVE_POINTS:
        raise InsufficientDataError(
            f"curve fitting needs {MIN_CURVE_POINTS} points, got {len(series)}",
            points=len(series),
        )

    first = series[0]
    mid = series[len(series) // 2]
    last = series[-1]
    if mid[0] == first[0] or last[0] == mid[0]:
        raise InsufficientDataError(
            "curve fitting needs distinct first, middle and last timestamps",
            points=len(series),
        )

    growth_rate = (last[1] - first[1]) / (last[0] - first[0])
    first_half_rate = (mid[1] - first[1]) / (mid[0] - first[0])
    second_half_rate = (last[1] - mid[1]) / (last[0] - mid[0])

    return GrowthCurve(
        type=classify_curve(first_half_rate, second_half_rate),
        parameters=(growth_rate,),
        confidence_interval=FITTED_CONFIDENCE,
    )


def evaluate_curve(curve: GrowthCurve, times: np.ndarray, seed: Optional[int] = None) -> np.ndarray:
    """Evaluate a curve's formula at the given times (ms)."""
    rate = curve.rate
    with np.errstate(over="ignore"):
        if curve.type == CurveType.EXPONENTIAL:
            return np.exp(rate * times)
        if curve.type == CurveType.LOGISTIC:
            return LOGISTIC_CEILING / (1.0 + np.exp(-rate * times))
        if curve.type == CurveType.OSCILLATING:
            return np.sin(rate * times) * OSCILLATION_AMPLITUDE + OSCILLATION_AMPLITUDE
    rng = np.random.default_rng(seed)
    return rng.uniform(0.0, CHAOS_CEILING, size=len(times))


# =============================================================================
# CORRELATIONS AND CRITICAL MASS
# =============================================================================

def find_correlations(timeline: Timeline) -> Dict[str, Set[str]]:
    """
    Event types that co-occur in one time point more than twice.

    Correlations are recorded in both directions.

    Raises:
        InsufficientDataError: Fewer than two time points
    """
    if len(timeline) < MIN_TIMELINE_POINTS:
        raise InsufficientDataError(
            f"correlation discovery needs {MIN_TIMELINE_POINTS} time points, got {len(timeline)}",
            points=len(timeline),
        )

    pair_counts: Counter = Counter()
    for point in timeline:
        if len(point.events) < 2:
            continue
        for a, b in combinations(point.events, 2):
            pair_counts[tuple(sorted((a.type, b.type)))] += 1

    correlations: Dict[str, Set[str]] = {}
    for (type1, type2), count in pair_counts.items():
        if count > CORRELATION_MIN_COUNT:
            correlations.setdefault(type1, set()).add(type2)
            correlations.setdefault(type2, set()).add(type1)
    return correlations


def identify_critical_mass(timeline: Timeline) -> float:
    """
    Glyph count preceding the steepest positive glyph growth rate.

    Pairs without metrics, or with no elapsed time, are skipped. Returns 0.0
    when no positive growth was observed.
    """
    critical_mass = 0.0
    max_growth_rate = 0.0
    for prev, curr in zip(timeline.points, timeline.points[1:]):
        if prev.metrics is None or curr.metrics is None:
            continue
        elapsed = curr.time - prev.time
        if elapsed <= 0:
            continue
        glyph_growth = (curr.metric("glyphCount") - prev.metric("glyphCount")) / elapsed
        if glyph_growth > max_growth_rate:
            max_growth_rate = glyph_growth
            critical_mass = prev.metric("glyphCount")
    return critical_mass


# =============================================================================
# PATTERN ANALYZER
# =============================================================================

TimelineInput = Union[Timeline, Mapping[str, Any], Sequence[Mapping[str, Any]]]


class PatternAnalyzer:
    """
    Trains and serves a PredictionModel.

    Usage:
        analyzer = PatternAnalyzer(config)
        model = analyzer.train_from_file(config.chronicles_path)
        analyzer.save(config.model_path)
    """

    def __init__(self, config: Optional[ForesightConfig] = None,
                 model: Optional[PredictionModel] = None):
        self.config = config or ForesightConfig()
        self._model = model or PredictionModel()
        self.receipt_ledger: List[dict] = []

    @property
    def model(self) -> PredictionModel:
        return self._model

    # -------------------------------------------------------------------------
    # Training
    # -------------------------------------------------------------------------

    def train(self, timeline: TimelineInput) -> PredictionModel:
        """
        Learn a model from an ordered historical timeline.

        Short timelines degrade gracefully: no patterns or correlations, and
        degenerate growth curves.

        Raises:
            InputError: If the timeline is malformed
        """
        parsed = parse_timeline(timeline)

        try:
            patterns = consolidate_patterns(extract_event_patterns(parsed))
            correlations = find_correlations(parsed)
        except InsufficientDataError as exc:
            self._record_insufficient("patterns", exc)
            patterns, correlations = [], {}

        growth_curves = {}
        for metric in self.config.tracked_metrics:
            try:
                growth_curves[metric] = fit_growth_curve(parsed.series(metric))
            except InsufficientDataError as exc:
                self._record_insufficient(f"curve:{metric}", exc)
                growth_curves[metric] = degenerate_curve()
            self._emit("growth_curve_fit", {
                "metric": metric,
                "curve_type": growth_curves[metric].type.value,
                "rate": growth_curves[metric].rate,
                "confidence": growth_curves[metric].confidence_interval,
            })

        self._model = PredictionModel(
            patterns=tuple(patterns),
            correlations=correlations,
            growth_curves=growth_curves,
            critical_mass=identify_critical_mass(parsed),
        )

        self._emit("model_trained", {
            "time_points": len(parsed),
            "patterns": len(self._model.patterns),
            "correlated_types": len(self._model.correlations),
            "critical_mass": self._model.critical_mass,
        })
        return self._model

    def train_from_file(self, path: Optional[str] = None) -> PredictionModel:
        """Train from a chronicles JSON file (defaults to config.chronicles_path)."""
        return self.train(load_timeline(path or self.config.chronicles_path))

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self, path: Optional[str] = None) -> str:
        """Write the model as JSON; returns the path written."""
        target = Path(path or self.config.model_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self._model.to_json(pretty=True), encoding="utf-8")
        return str(target)

    @classmethod
    def load(cls, path: str, config: Optional[ForesightConfig] = None) -> PatternAnalyzer:
        """
        Restore an analyzer from a saved model.

        Raises:
            InputError: Missing, unreadable or malformed model
        """
        model = PredictionModel.from_dict(read_json(path), source=str(path))
        return cls(config=config, model=model)

    # -------------------------------------------------------------------------
    # Predictions
    # -------------------------------------------------------------------------

    def predict_next_event(self, recent_events: Iterable[Any]) -> Dict[str, Any]:
        """
        Most probable next event given recent event descriptions.

        A pattern applies when its trigger's first word appears in any recent
        description. Events may be strings or mappings with a "description".

        Returns:
            {"event": str, "probability": float, "timeframe": ms}
        """
        descriptions = [_description_of(e) for e in recent_events]
        applicable = [
            p for p in self._model.patterns
            if any(p.trigger.split(" ")[0] in d for d in descriptions)
        ]

        if not applicable:
            return {
                "event": DEFAULT_NEXT_EVENT,
                "probability": DEFAULT_NEXT_EVENT_PROBABILITY,
                "timeframe": DEFAULT_NEXT_EVENT_TIMEFRAME_MS,
            }

        best = max(applicable, key=lambda p: p.probability)
        return {
            "event": best.outcome,
            "probability": best.probability,
            "timeframe": best.time_to_effect,
        }

    def predict_growth_trajectory(self, metric: str, horizon: float,
                                  seed: Optional[int] = None) -> List[float]:
        """
        Ten evenly spaced curve evaluations up to the horizon.

        Args:
            metric: Growth curve name (e.g. "glyphCount")
            horizon: Time horizon, ms
            seed: Seed for the chaotic curve's draws

        Returns:
            Ten values at t = horizon * i / 10, i = 1..10; [] if no curve
        """
        curve = self._model.curve(metric)
        if curve is None:
            return []
        steps = np.arange(1, TRAJECTORY_STEPS + 1, dtype=float)
        times = steps * (float(horizon) / TRAJECTORY_STEPS)
        return [float(v) for v in evaluate_curve(curve, times, seed=seed)]

    # -------------------------------------------------------------------------
    # Receipts
    # -------------------------------------------------------------------------

    def _record_insufficient(self, stage: str, exc: InsufficientDataError) -> None:
        self._emit("insufficient_data", {
            "stage": stage,
            "points": exc.points,
            "reason": str(exc),
        })

    def _emit(self, receipt_type: str, payload: Dict[str, Any]) -> dict:
        receipt = emit_receipt(receipt_type, {"tenant_id": self.config.tenant_id, **payload})
        self.receipt_ledger.append(receipt)
        if self.config.receipts_path:
            append_receipts([receipt], self.config.receipts_path)
        return receipt


def _description_of(event: Any) -> str:
    if isinstance(event, str):
        return event
    if isinstance(event, TimelineEvent):
        return event.description
    if isinstance(event, Mapping):
        return str(event.get("description", ""))
    return str(event)
