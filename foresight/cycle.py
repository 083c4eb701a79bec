"""
foresight/cycle.py - Single Monte Carlo Run

run_single_simulation is a pure function of (model, state, actions, horizon,
seed, start): explicit actions first, one minute apart, then five-minute
natural-evolution steps until the virtual clock reaches start + horizon.

execute_run wraps it for executors: it converts a budget overrun into a
truncated RunResult so partial outcomes survive process boundaries.
"""

import time
from typing import Optional, Sequence, Tuple

import numpy as np

from .actions import apply_action, evolve_state, predict_cascades
from .constants import ACTION_STEP_MS, EVOLUTION_STEP_MS
from .errors import SimulationTimeout
from .measurement import detect_warnings, extract_metrics, predict_natural_events
from .timeline import format_timestamp
from .types_config import SimulatedAction
from .types_model import PredictionModel
from .types_result import PredictedOutcome, RunResult
from .types_state import GardenState


def _check_deadline(deadline: Optional[float], outcomes: list, seed: int) -> None:
    if deadline is not None and time.time() >= deadline:
        raise SimulationTimeout(
            f"run {seed} exceeded its wall-clock budget after {len(outcomes)} steps",
            partial_outcomes=outcomes,
        )


def run_single_simulation(
    model: PredictionModel,
    state: GardenState,
    actions: Sequence[SimulatedAction],
    horizon: int,
    seed: int,
    start_ms: int,
    deadline: Optional[float] = None,
) -> Tuple[PredictedOutcome, ...]:
    """
    Simulate one seeded future.

    Args:
        model: Trained model (patterns, growth curves, critical mass)
        state: Starting snapshot (not modified)
        actions: Explicit interventions, applied in order
        horizon: Natural evolution runs while clock < start_ms + horizon (ms)
        seed: Run seed; same seed gives the same outcomes
        start_ms: Virtual clock origin, epoch ms
        deadline: Optional time.time() value; checked between steps

    Returns:
        Outcomes with strictly increasing timestamps

    Raises:
        SimulationTimeout: Deadline passed; carries the outcomes so far
    """
    rng = np.random.default_rng(seed)
    clock = start_ms
    current = state
    outcomes = []

    for step, action in enumerate(actions):
        _check_deadline(deadline, outcomes, seed)
        clock += ACTION_STEP_MS
        current = apply_action(current, action, rng, step=step, seed=seed)
        events = predict_cascades(model, action, rng)
        metrics = extract_metrics(current)
        outcomes.append(PredictedOutcome(
            timestamp=format_timestamp(clock),
            state=metrics,
            events=events,
            warnings=detect_warnings(metrics),
        ))

    end = start_ms + horizon
    while clock < end:
        _check_deadline(deadline, outcomes, seed)
        clock += EVOLUTION_STEP_MS
        current = evolve_state(current, model, EVOLUTION_STEP_MS, seed)
        metrics = extract_metrics(current)
        outcomes.append(PredictedOutcome(
            timestamp=format_timestamp(clock),
            state=metrics,
            events=predict_natural_events(current, model),
            warnings=detect_warnings(metrics),
        ))

    return tuple(outcomes)


def execute_run(
    model: PredictionModel,
    state: GardenState,
    actions: Sequence[SimulatedAction],
    horizon: int,
    seed: int,
    start_ms: int,
    deadline: Optional[float] = None,
) -> RunResult:
    """Executor entry point: one run, budget overrun folded into the result."""
    try:
        outcomes = run_single_simulation(model, state, actions, horizon, seed, start_ms, deadline)
    except SimulationTimeout as exc:
        return RunResult(seed=seed, outcomes=tuple(exc.partial_outcomes), truncated=True)
    return RunResult(seed=seed, outcomes=outcomes)
