"""
foresight/constants.py - Analyzer and Simulator Constants

All tunable constants for pattern learning and what-if simulation.
Centralized for tuning. Pure data, no behavior.
"""

from enum import Enum

# =============================================================================
# ENUMERATIONS
# =============================================================================

class PatternType(str, Enum):
    """Learned cause -> effect tendency category."""
    GROWTH = "growth"
    CONNECTION = "connection"
    MUTATION = "mutation"
    DECAY = "decay"


class CurveType(str, Enum):
    """Parametric growth curve family."""
    EXPONENTIAL = "exponential"
    LOGISTIC = "logistic"
    OSCILLATING = "oscillating"
    CHAOTIC = "chaotic"


class ActionType(str, Enum):
    """Caller-specified intervention."""
    PLANT = "plant"
    CONNECT = "connect"
    MUTATE = "mutate"
    PRUNE = "prune"
    NURTURE = "nurture"


# =============================================================================
# TIME CONSTANTS (milliseconds)
# =============================================================================

MINUTE_MS = 60_000
HOUR_MS = 3_600_000
ACTION_STEP_MS = MINUTE_MS       # Virtual clock advance per explicit action
EVOLUTION_STEP_MS = 5 * MINUTE_MS  # Virtual clock advance per natural step
DEFAULT_TIME_HORIZON_MS = HOUR_MS

# =============================================================================
# PATTERN EXTRACTION HEURISTICS
# =============================================================================

BASE_PATTERN_PROBABILITY = 0.1
BASE_IMPACT_RADIUS = 0.1
BIRTH_CONNECTION_PROBABILITY = 0.7
BIRTH_CONNECTION_IMPACT = 0.3
CONNECTION_CHAIN_PROBABILITY = 0.8
CONNECTION_CHAIN_IMPACT = 0.5
HIGH_IMPACT_THRESHOLD = 0.7
HIGH_IMPACT_MUTATION_PROBABILITY = 0.6
HIGH_IMPACT_MUTATION_IMPACT = 0.7
PATTERN_RETENTION_THRESHOLD = 0.3  # Strictly greater to retain
TRIGGER_GROUP_PREFIX = 20          # Characters of trigger used for grouping

# Outcome event type -> pattern type
OUTCOME_PATTERN_TYPES = {
    "birth": PatternType.GROWTH,
    "connection": PatternType.GROWTH,
    "mutation": PatternType.MUTATION,
    "death": PatternType.DECAY,
}

# =============================================================================
# GROWTH CURVE FITTING
# =============================================================================

TRACKED_METRICS = ("glyphCount", "totalLove")
MIN_CURVE_POINTS = 3
MIN_TIMELINE_POINTS = 2
EXPONENTIAL_RATE_TOLERANCE = 0.1
LOGISTIC_SLOWDOWN_RATIO = 0.5
FITTED_CONFIDENCE = 0.7
DEGENERATE_GROWTH_RATE = 0.1
DEGENERATE_CONFIDENCE = 0.1
TRAJECTORY_STEPS = 10
LOGISTIC_CEILING = 100.0
OSCILLATION_AMPLITUDE = 50.0
CHAOS_CEILING = 100.0

# =============================================================================
# CORRELATIONS
# =============================================================================

CORRELATION_MIN_COUNT = 2  # Pair must occur strictly more often than this

# =============================================================================
# NEXT-EVENT PREDICTION
# =============================================================================

DEFAULT_NEXT_EVENT = "Continued organic growth"
DEFAULT_NEXT_EVENT_PROBABILITY = 0.8
DEFAULT_NEXT_EVENT_TIMEFRAME_MS = HOUR_MS

# =============================================================================
# ACTION SEMANTICS
# =============================================================================

SEED_GLYPH_TYPE = "Seed"
EVOLVED_GLYPH_TYPE = "Entity"
PLANT_LOVE_BASE = 0.5
PLANT_LOVE_SPAN = 0.5
PLANT_RESONANCE_BASE = 200.0
PLANT_RESONANCE_SPAN = 600.0
CONNECT_STRENGTH_BASE = 0.5
CONNECT_STRENGTH_SPAN = 0.5
MUTATE_LOVE_MULTIPLIER = 1.2
NURTURE_LOVE_MULTIPLIER = 1.1
MAX_LOVE_FACTOR = 1.0
EVOLVED_LOVE_BASE = 0.3
EVOLVED_LOVE_SPAN = 0.4
GROWTH_FACTOR_SCALE = 1_000_000  # growthFactor = 1 + rate * elapsed_ms / scale

# =============================================================================
# NATURAL EVENTS AND WARNINGS
# =============================================================================

LOVE_SATURATION_RATIO = 0.9
HIGH_DIVERSITY_THRESHOLD = 0.5

EVENT_CRITICAL_MASS = "Garden reaches critical mass - rapid evolution expected"
EVENT_LOVE_SATURATED = "Love field saturated - spontaneous connections forming"
EVENT_HIGH_DIVERSITY = "High diversity achieved - new interaction patterns emerging"

OVERPOPULATION_THRESHOLD = 100
LOVE_DEPLETION_RATIO = 0.2
ISOLATION_DENSITY_THRESHOLD = 0.5
MONOCULTURE_DIVERSITY_THRESHOLD = 0.2

WARNING_OVERPOPULATION = "Overpopulation risk - consider pruning"
WARNING_LOVE_DEPLETION = "Love levels critically low - nurture needed"
WARNING_ISOLATION = "Many isolated glyphs - encourage connections"
WARNING_MONOCULTURE = "Low diversity - vulnerable to systemic shocks"

# =============================================================================
# SCORING
# =============================================================================

WARNING_PROBABILITY_DECAY = 0.9
LOVE_SCORE_SCALE = 10.0
LOVE_SCORE_WEIGHT = 0.3
DENSITY_SCORE_WEIGHT = 0.3
DIVERSITY_SCORE_WEIGHT = 0.2
WARNING_SCORE_PENALTY = 0.1
CONSTRAINT_PENALTY = 0.5

# =============================================================================
# SIMULATOR DEFAULTS
# =============================================================================

DEFAULT_MONTE_CARLO_RUNS = 10
DEFAULT_BRANCHES = 3
DEFAULT_TENANT = "garden"
EXECUTOR_KINDS = ("thread", "process", "serial")

# =============================================================================
# RECEIPT TYPES
# =============================================================================

RECEIPT_SCHEMA = [
    "model_trained",
    "insufficient_data",
    "growth_curve_fit",
    "simulation_run",
    "run_failure",
    "simulation_truncated",
    "branch_scored",
    "branches_exported",
]
