"""
foresight/errors.py - Error Taxonomy

Only total failure to load inputs, or total run failure, reaches the caller.
InsufficientDataError and SimulationTimeout are absorbed inside the engine.
"""

from typing import List, Optional

from receipts import StopRule


class ForesightError(Exception):
    """Base class for engine errors."""


class InputError(ForesightError, ValueError):
    """Malformed or unreadable model, state, timeline, or parameters."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message if source is None else f"{source}: {message}")
        self.source = source


class InsufficientDataError(ForesightError):
    """Timeline too short for meaningful pattern or curve extraction."""

    def __init__(self, message: str, points: int = 0):
        super().__init__(message)
        self.points = points


class AggregationError(ForesightError, StopRule):
    """Every Monte Carlo run in one simulation failed."""

    def __init__(self, message: str, failures: Optional[List[str]] = None):
        super().__init__(message)
        self.failures = list(failures or [])


class SimulationTimeout(ForesightError):
    """Wall-clock budget exceeded mid-run.

    Carries the outcomes produced before the deadline so the simulator can
    aggregate them into a truncated branch.
    """

    def __init__(self, message: str, partial_outcomes: Optional[list] = None):
        super().__init__(message)
        self.partial_outcomes = list(partial_outcomes or [])
