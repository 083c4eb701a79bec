"""
foresight/actions.py - Action Semantics and Natural Evolution

apply_action, predict_cascades and evolve_state. Each returns a new snapshot
(or a new list); the input snapshot is never modified.

Randomness comes only from the run's numpy Generator or from a generator
seeded with (seed, index), so a run is fully determined by its seed.
"""

import math
from typing import List, Optional

import numpy as np

from .constants import (
    ActionType,
    CONNECT_STRENGTH_BASE,
    CONNECT_STRENGTH_SPAN,
    EVOLVED_GLYPH_TYPE,
    EVOLVED_LOVE_BASE,
    EVOLVED_LOVE_SPAN,
    GROWTH_FACTOR_SCALE,
    MAX_LOVE_FACTOR,
    MUTATE_LOVE_MULTIPLIER,
    NURTURE_LOVE_MULTIPLIER,
    PLANT_LOVE_BASE,
    PLANT_LOVE_SPAN,
    PLANT_RESONANCE_BASE,
    PLANT_RESONANCE_SPAN,
    PatternType,
    SEED_GLYPH_TYPE,
)
from .types_config import SimulatedAction
from .types_model import PredictionModel
from .types_state import Connection, Genetics, GardenState, Glyph


# =============================================================================
# EXPLICIT ACTIONS
# =============================================================================

def _plant(state: GardenState, action: SimulatedAction, rng: np.random.Generator,
           step: int, seed: int) -> GardenState:
    seed_glyph = Glyph(
        id=f"simulated-{step}-{seed}",
        type=SEED_GLYPH_TYPE,
        genetics=Genetics(
            love_factor=PLANT_LOVE_BASE + rng.random() * PLANT_LOVE_SPAN,
            resonance_freq=PLANT_RESONANCE_BASE + rng.random() * PLANT_RESONANCE_SPAN,
        ),
        planted=action.timestamp,
    )
    return state.add_glyphs(seed_glyph)


def _connect(state: GardenState, rng: np.random.Generator) -> GardenState:
    if len(state.glyphs) < 2:
        return state
    first, second = state.glyphs[0], state.glyphs[1]
    return state.add_connection(Connection(
        source=first.id,
        target=second.id,
        strength=CONNECT_STRENGTH_BASE + rng.random() * CONNECT_STRENGTH_SPAN,
    ))


def _mutate(state: GardenState, target: Optional[str]) -> GardenState:
    if not target:
        return state
    glyph = state.find(target)
    if glyph is None:
        return state
    mutated = glyph.with_love(glyph.love_factor * MUTATE_LOVE_MULTIPLIER)
    return state.replace_glyph(Glyph(
        id=mutated.id,
        type=EVOLVED_GLYPH_TYPE,
        genetics=mutated.genetics,
        planted=mutated.planted,
    ))


def _nurture(state: GardenState) -> GardenState:
    return state.with_glyphs(
        g.with_love(min(MAX_LOVE_FACTOR, g.love_factor * NURTURE_LOVE_MULTIPLIER))
        for g in state.glyphs
    )


def _prune(state: GardenState, target: Optional[str]) -> GardenState:
    if not state.glyphs:
        return state
    if target:
        if state.find(target) is None:
            return state
        return state.remove_glyph(target)
    weakest = min(state.glyphs, key=lambda g: g.love_factor)
    return state.remove_glyph(weakest.id)


def apply_action(state: GardenState, action: SimulatedAction, rng: np.random.Generator,
                 step: int = 0, seed: int = 0) -> GardenState:
    """
    Apply one explicit intervention.

    Args:
        state: Snapshot before the action
        action: Intervention to apply
        rng: The run's seeded stream (plant and connect draw from it)
        step: Action index within the run (names planted glyphs)
        seed: Run seed (names planted glyphs)

    Returns:
        New snapshot. Unresolvable targets leave the state unchanged.

    Semantics:
        plant   - append a Seed glyph, loveFactor in [0.5, 1), resonance in [200, 800)
        connect - connect the first two glyphs, strength in [0.5, 1)
        mutate  - target loveFactor x1.2, type becomes Entity
        nurture - every loveFactor x1.1, capped at 1.0
        prune   - remove the target (or the least-loved glyph) and its connections
    """
    kind = ActionType(action.type)
    if kind == ActionType.PLANT:
        return _plant(state, action, rng, step, seed)
    if kind == ActionType.CONNECT:
        return _connect(state, rng)
    if kind == ActionType.MUTATE:
        return _mutate(state, action.target)
    if kind == ActionType.NURTURE:
        return _nurture(state)
    return _prune(state, action.target)


def predict_cascades(model: PredictionModel, action: SimulatedAction, rng: np.random.Generator) -> List[str]:
    """
    Events triggered by an action through learned growth patterns.

    Only plant actions cascade. Each growth pattern consumes one draw from
    the run stream; draw < probability emits the pattern's outcome.
    """
    if ActionType(action.type) != ActionType.PLANT:
        return []
    events = []
    for pattern in model.patterns_of_type(PatternType.GROWTH):
        if rng.random() < pattern.probability:
            events.append(pattern.outcome)
    return events


# =============================================================================
# NATURAL EVOLUTION
# =============================================================================

def _evolved_draw(seed: int, index: int) -> float:
    """Draw in [0, 1) fixed by (seed, index) alone, whatever the run consumed before."""
    return np.random.default_rng([seed, index]).random()


def evolve_state(state: GardenState, model: PredictionModel, elapsed_ms: int, seed: int) -> GardenState:
    """
    Grow the garden along the learned glyphCount curve for one step.

    growthFactor = 1 + rate * elapsed_ms / 1_000_000; new Seed glyphs are
    appended until the count reaches floor(count * growthFactor). The garden
    never shrinks here. Without a glyphCount curve the state is unchanged.
    """
    curve = model.curve("glyphCount")
    if curve is None or not state.glyphs:
        return state

    growth_factor = 1 + curve.rate * elapsed_ms / GROWTH_FACTOR_SCALE
    target_count = math.floor(len(state.glyphs) * growth_factor)

    new_glyphs = []
    index = len(state.glyphs)
    while index < target_count:
        new_glyphs.append(Glyph(
            id=f"evolved-{seed}-{index}",
            type=SEED_GLYPH_TYPE,
            genetics=Genetics(
                love_factor=EVOLVED_LOVE_BASE + _evolved_draw(seed, index) * EVOLVED_LOVE_SPAN,
            ),
        ))
        index += 1

    if not new_glyphs:
        return state
    return state.add_glyphs(*new_glyphs)
