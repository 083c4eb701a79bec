"""
foresight - Garden Predictive Engine

Public API: learn patterns from a garden timeline, simulate what-if futures.
Flat, focused files. One file = one responsibility.
"""

# =============================================================================
# TYPES (Dataclasses)
# =============================================================================
from .types_model import Pattern, GrowthCurve, PredictionModel
from .types_state import Genetics, Glyph, Connection, GardenMetrics, GardenState
from .types_config import (
    SimulatedAction,
    Constraints,
    SimulationParameters,
    Scenario,
    SCENARIO_AGGRESSIVE_GROWTH,
    SCENARIO_DEEP_CONNECTIONS,
    SCENARIO_RAPID_MUTATION,
    CANONICAL_SCENARIOS,
    actions_from_list,
)
from .types_result import PredictedOutcome, WhatIfBranch, RunResult
from .timeline import Timeline, TimePoint, TimelineEvent, parse_timeline, load_timeline

# =============================================================================
# CONSTANTS AND ERRORS
# =============================================================================
from .constants import PatternType, CurveType, ActionType, RECEIPT_SCHEMA
from .errors import (
    ForesightError,
    InputError,
    InsufficientDataError,
    AggregationError,
    SimulationTimeout,
)

# =============================================================================
# CONFIGURATION
# =============================================================================
from .config import ForesightConfig

# =============================================================================
# PATTERN ANALYZER
# =============================================================================
from .analyzer import PatternAnalyzer, fit_growth_curve

# =============================================================================
# FUTURE SIMULATOR
# =============================================================================
from .cycle import run_single_simulation
from .measurement import extract_metrics, predict_natural_events, detect_warnings
from .aggregation import (
    aggregate_simulations,
    calculate_branch_probability,
    evaluate_desirability,
    rank_branches,
)
from .simulator import FutureSimulator

# =============================================================================
# EXPORT
# =============================================================================
from .export import export_branches, generate_report

# =============================================================================
# PUBLIC API
# =============================================================================
__all__ = [
    # Types
    "Pattern",
    "GrowthCurve",
    "PredictionModel",
    "Genetics",
    "Glyph",
    "Connection",
    "GardenMetrics",
    "GardenState",
    "SimulatedAction",
    "Constraints",
    "SimulationParameters",
    "Scenario",
    "PredictedOutcome",
    "WhatIfBranch",
    "RunResult",
    "Timeline",
    "TimePoint",
    "TimelineEvent",
    # Scenario presets
    "SCENARIO_AGGRESSIVE_GROWTH",
    "SCENARIO_DEEP_CONNECTIONS",
    "SCENARIO_RAPID_MUTATION",
    "CANONICAL_SCENARIOS",
    # Constants
    "PatternType",
    "CurveType",
    "ActionType",
    "RECEIPT_SCHEMA",
    # Errors
    "ForesightError",
    "InputError",
    "InsufficientDataError",
    "AggregationError",
    "SimulationTimeout",
    # Config
    "ForesightConfig",
    # Analyzer
    "PatternAnalyzer",
    "fit_growth_curve",
    "parse_timeline",
    "load_timeline",
    # Simulator
    "FutureSimulator",
    "run_single_simulation",
    "extract_metrics",
    "predict_natural_events",
    "detect_warnings",
    "aggregate_simulations",
    "calculate_branch_probability",
    "evaluate_desirability",
    "rank_branches",
    "actions_from_list",
    # Export
    "export_branches",
    "generate_report",
]
