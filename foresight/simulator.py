"""
foresight/simulator.py - Future Simulator

Runs seeded Monte Carlo simulations of a what-if action sequence, aggregates
them into one branch, and scores the branch.

Runs are independent pure functions, executed through concurrent.futures:
  - "thread"  ThreadPoolExecutor (default)
  - "process" ProcessPoolExecutor
  - "serial"  in the calling thread

A wall-clock budget bounds each call. Runs check the deadline between steps
and hand back partial outcomes; queued runs are cancelled. The resulting
branch is marked truncated.
"""

from __future__ import annotations

import time
import uuid
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor, wait
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from receipts import append_receipts, emit_receipt

from .aggregation import (
    aggregate_simulations,
    calculate_branch_probability,
    evaluate_desirability,
    stoprule_all_runs_failed,
)
from .config import ForesightConfig
from .cycle import execute_run
from .timeline import format_timestamp, parse_timestamp
from .types_config import (
    CANONICAL_SCENARIOS,
    SimulatedAction,
    SimulationParameters,
)
from .types_model import PredictionModel
from .types_result import RunResult, WhatIfBranch
from .types_state import GardenState
from .validation import read_json


def _new_branch_id() -> str:
    return f"branch-{uuid.uuid4().hex[:12]}"


def _epoch_ms(now: Optional[Any]) -> int:
    """Start of the virtual clock: now, or an explicit datetime/ISO/epoch-ms."""
    if now is None:
        return int(time.time() * 1000)
    if isinstance(now, datetime):
        return int(round(now.timestamp() * 1000))
    return parse_timestamp(now, source="now")


class FutureSimulator:
    """
    What-if explorer over an immutable model and starting snapshot.

    Usage:
        simulator = FutureSimulator.from_config(config)
        branch = simulator.simulate_what_if("What if we nurture?", actions, params)
    """

    def __init__(self, model: PredictionModel, state: GardenState,
                 config: Optional[ForesightConfig] = None):
        self.model = model
        self.state = state
        self.config = config or ForesightConfig()
        self.receipt_ledger: List[dict] = []

    @classmethod
    def from_config(cls, config: ForesightConfig) -> FutureSimulator:
        """
        Load model and state from the configured paths.

        Raises:
            InputError: Either file is missing, unreadable or malformed
        """
        model = PredictionModel.from_dict(read_json(config.model_path), source=config.model_path)
        state = GardenState.from_dict(read_json(config.state_path), source=config.state_path)
        return cls(model, state, config)

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    def simulate_what_if(
        self,
        hypothesis: str,
        actions: Sequence[SimulatedAction],
        parameters: Optional[SimulationParameters] = None,
        budget_s: Optional[float] = None,
        now: Optional[Any] = None,
    ) -> WhatIfBranch:
        """
        Simulate one hypothesis across parameters.monte_carlo_runs seeds.

        Args:
            hypothesis: Question in plain words
            actions: Interventions to simulate, in order
            parameters: Horizon, run count and constraints (defaults if None)
            budget_s: Wall-clock budget in seconds (config default if None)
            now: Virtual clock origin (datetime, ISO string or epoch ms)

        Returns:
            Scored WhatIfBranch

        Raises:
            AggregationError: Every run failed
        """
        parameters = parameters or SimulationParameters()
        actions = tuple(actions)
        start_ms = _epoch_ms(now)
        budget = budget_s if budget_s is not None else self.config.wall_clock_budget_s
        deadline = time.time() + budget if budget is not None else None
        seeds = list(range(parameters.monte_carlo_runs))

        results, failures, cancelled = self._run_all(actions, parameters.time_horizon, seeds, start_ms, deadline)

        if failures and not results:
            stoprule_all_runs_failed([message for _, message in failures], len(seeds))

        truncated = cancelled > 0 or any(r.truncated for r in results)
        # Runs cut off before their first step carry nothing to average.
        usable = [r.outcomes for r in results if r.outcomes or not r.truncated]
        outcomes = aggregate_simulations(usable)

        branch = WhatIfBranch(
            id=_new_branch_id(),
            hypothesis=hypothesis,
            starting_point=format_timestamp(start_ms),
            actions=actions,
            outcomes=outcomes,
            probability=calculate_branch_probability(outcomes, self.model, self.state.glyph_count),
            desirability=evaluate_desirability(outcomes, parameters.constraints),
            truncated=truncated,
            runs_completed=len(results),
            runs_failed=len(failures),
        )

        if truncated:
            self._emit("simulation_truncated", {
                "branch_id": branch.id,
                "budget_s": budget,
                "runs_truncated": sum(1 for r in results if r.truncated),
                "runs_cancelled": cancelled,
            })
        self._emit("branch_scored", {
            "branch_id": branch.id,
            "hypothesis": hypothesis,
            "outcomes": len(branch.outcomes),
            "probability": branch.probability,
            "desirability": branch.desirability,
            "runs_completed": branch.runs_completed,
            "runs_failed": branch.runs_failed,
            "truncated": branch.truncated,
        })
        return branch

    def generate_alternatives(
        self,
        parameters: Optional[SimulationParameters] = None,
        budget_s: Optional[float] = None,
        now: Optional[Any] = None,
    ) -> List[WhatIfBranch]:
        """
        Simulate the three canonical scenarios.

        Returns:
            Branches in scenario order (aggressive growth, deep connections,
            rapid mutation); ranking is left to the caller.
        """
        return [
            self.simulate_what_if(scenario.hypothesis, scenario.actions(), parameters,
                                  budget_s=budget_s, now=now)
            for scenario in CANONICAL_SCENARIOS
        ]

    # -------------------------------------------------------------------------
    # Run execution
    # -------------------------------------------------------------------------

    def _executor(self, runs: int) -> Executor:
        workers = self.config.max_workers
        if self.config.executor == "process":
            return ProcessPoolExecutor(max_workers=workers)
        return ThreadPoolExecutor(max_workers=workers or max(1, min(runs, 32)))

    def _run_all(
        self,
        actions: Tuple[SimulatedAction, ...],
        horizon: int,
        seeds: List[int],
        start_ms: int,
        deadline: Optional[float],
    ) -> Tuple[List[RunResult], List[Tuple[int, str]], int]:
        """
        Execute every seed; returns (results by seed, failures, cancelled count).

        A run that raises is excluded and recorded; it never aborts the others.
        """
        results: Dict[int, RunResult] = {}
        failures: List[Tuple[int, str]] = []
        cancelled = 0

        if self.config.executor == "serial":
            for seed in seeds:
                try:
                    results[seed] = execute_run(self.model, self.state, actions, horizon,
                                                seed, start_ms, deadline)
                except Exception as exc:
                    failures.append((seed, f"{type(exc).__name__}: {exc}"))
        else:
            with self._executor(len(seeds)) as pool:
                futures = {
                    pool.submit(execute_run, self.model, self.state, actions, horizon,
                                seed, start_ms, deadline): seed
                    for seed in seeds
                }
                timeout = max(0.0, deadline - time.time()) if deadline is not None else None
                _, pending = wait(futures, timeout=timeout)
                for future in pending:
                    if future.cancel():
                        cancelled += 1
                # Running futures stop at their next step boundary.
                wait([f for f in pending if not f.cancelled()])

                for future, seed in futures.items():
                    if future.cancelled():
                        continue
                    exc = future.exception()
                    if exc is not None:
                        failures.append((seed, f"{type(exc).__name__}: {exc}"))
                    else:
                        results[seed] = future.result()

        for seed, message in failures:
            self._emit("run_failure", {"seed": seed, "error": message})
        ordered = [results[seed] for seed in sorted(results)]
        for result in ordered:
            self._emit("simulation_run", {
                "seed": result.seed,
                "outcomes": len(result.outcomes),
                "truncated": result.truncated,
            })
        return ordered, sorted(failures), cancelled

    # -------------------------------------------------------------------------
    # Receipts
    # -------------------------------------------------------------------------

    def _emit(self, receipt_type: str, payload: Dict[str, Any]) -> dict:
        receipt = emit_receipt(receipt_type, {"tenant_id": self.config.tenant_id, **payload})
        self.receipt_ledger.append(receipt)
        if self.config.receipts_path:
            append_receipts([receipt], self.config.receipts_path)
        return receipt
