"""
Garden Foresight CLI

Subcommands:
  - train: Learn a prediction model from a chronicles timeline
  - simulate: Run one what-if hypothesis through Monte Carlo simulation
  - alternatives: Simulate the three canonical scenarios and rank them
  - predict-next: Most probable next event given recent events
  - trajectory: Ten-point growth trajectory for one metric

Every command takes --config (JSON/YAML ForesightConfig) and
--output rich|json. Exit codes: 0 ok, 1 all runs failed, 2 input error.
"""

from __future__ import annotations

import json
import sys
from typing import Any, List, Optional, Tuple

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from receipts import receipts_of_type

from foresight import config as foresight_config
from foresight.aggregation import rank_branches
from foresight.analyzer import PatternAnalyzer
from foresight.constants import ActionType, DEFAULT_TIME_HORIZON_MS
from foresight.errors import AggregationError, InputError
from foresight.export import export_branches, generate_report
from foresight.simulator import FutureSimulator
from foresight.types_config import (
    SimulatedAction,
    SimulationParameters,
    actions_from_list,
    constraints_from_mapping,
)
from foresight.types_result import WhatIfBranch
from foresight.validation import read_json

console = Console()


# =============================================================================
# Output helpers
# =============================================================================

def print_success(message: str) -> None:
    """Print a success message with green checkmark."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message with red X."""
    console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message with yellow warning sign."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_next(command: str) -> None:
    """Print suggested next command."""
    console.print(f"\n[dim]Next:[/dim] [cyan]{command}[/cyan]")


def _fail(output: str, message: str, code: int, **extra: Any) -> None:
    if output == "json":
        click.echo(json.dumps({"error": message, **extra}))
    else:
        print_error(message)
    sys.exit(code)


def _make_bar(fraction: float, width: int = 20) -> str:
    """Bar for a value in [0, 1]."""
    filled = int(max(0.0, min(1.0, fraction)) * width)
    return "█" * filled + "░" * (width - filled)


def _load_config(config_path: Optional[str], **overrides: Any) -> foresight_config.ForesightConfig:
    if config_path:
        base = foresight_config.load(config_path)
    else:
        base = foresight_config.default()
    return base.with_overrides(**overrides)


def _parse_action_spec(spec: str) -> SimulatedAction:
    """'plant' or 'mutate:first-seed' -> SimulatedAction."""
    kind, _, target = spec.partition(":")
    try:
        ActionType(kind)
    except ValueError:
        raise InputError(
            f"unknown action {kind!r}; expected one of {[a.value for a in ActionType]}",
            source="--action",
        ) from None
    return SimulatedAction.make(kind, target or None)


def _collect_actions(actions_file: Optional[str], action_specs: Tuple[str, ...]) -> List[SimulatedAction]:
    actions: List[SimulatedAction] = []
    if actions_file:
        actions.extend(actions_from_list(read_json(actions_file), source=actions_file))
    actions.extend(_parse_action_spec(spec) for spec in action_specs)
    return actions


def _parameters(horizon_ms: int, runs: int, branches: int,
                max_glyphs: Optional[float], min_love: Optional[float]) -> SimulationParameters:
    return SimulationParameters(
        time_horizon=horizon_ms,
        branches=branches,
        monte_carlo_runs=runs,
        constraints=constraints_from_mapping({"maxGlyphs": max_glyphs, "minLove": min_love}),
    )


def _branch_panel(branch: WhatIfBranch, rank: Optional[int] = None) -> Panel:
    final = branch.final_outcome
    lines = [
        f"branch_id:     {branch.id}",
        f"probability:   {branch.probability:.1%} {_make_bar(branch.probability)}",
        f"desirability:  {branch.desirability:+.2f} {_make_bar((branch.desirability + 1) / 2)}",
        f"outcomes:      {len(branch.outcomes)}",
        f"runs:          {branch.runs_completed} completed, {branch.runs_failed} failed",
    ]
    if final is not None:
        lines.append(f"final glyphs:  {final.state.glyph_count:.0f}")
        lines.append(f"total love:    {final.state.total_love:.2f}")
        for warning in final.warnings:
            lines.append(f"[yellow]⚠[/yellow] {warning}")
    if branch.truncated:
        lines.append("[yellow]truncated by wall-clock budget[/yellow]")

    title = branch.hypothesis if rank is None else f"#{rank} {branch.hypothesis}"
    style = "green" if branch.desirability >= 0 else "red"
    return Panel("\n".join(lines), title=f"[bold]{title}[/bold]", border_style=style)


# =============================================================================
# CLI group
# =============================================================================

@click.group()
def cli():
    """Garden foresight: learn from history, simulate what-if futures."""
    pass


# --- train ---

@cli.command("train")
@click.option("--config", "-c", "config_path", type=click.Path(), help="ForesightConfig JSON/YAML")
@click.option("--chronicles", "-t", help="Chronicles timeline JSON")
@click.option("--model", "-m", "model_path", help="Where to write the trained model")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def train_cmd(config_path: Optional[str], chronicles: Optional[str],
              model_path: Optional[str], output: str) -> None:
    """Train a prediction model from the garden chronicles."""
    try:
        config = _load_config(config_path, chronicles_path=chronicles, model_path=model_path)
        analyzer = PatternAnalyzer(config)
        model = analyzer.train_from_file(config.chronicles_path)
        saved = analyzer.save(config.model_path)
    except InputError as e:
        _fail(output, str(e), 2)
        return

    if output == "json":
        click.echo(json.dumps({"model_path": saved, "model": model.to_dict()}, indent=2))
        return

    table = Table(title="Growth Curves")
    table.add_column("Metric", style="cyan")
    table.add_column("Type")
    table.add_column("Rate (/ms)", justify="right")
    table.add_column("Confidence", justify="right")
    for metric, curve in sorted(model.growth_curves.items()):
        table.add_row(metric, curve.type.value, f"{curve.rate:.3e}", f"{curve.confidence_interval:.1f}")

    content = (
        f"patterns:       {len(model.patterns)}\n"
        f"correlations:   {len(model.correlations)} event types\n"
        f"critical_mass:  {model.critical_mass:g} glyphs"
    )
    console.print(Panel(content, title="[bold]Prediction Model[/bold]", border_style="green"))
    console.print(table)
    if receipts_of_type(analyzer.receipt_ledger, "insufficient_data"):
        print_warning("Timeline too short for full extraction; degenerate curves used")
    print_success(f"Saved: {saved}")
    print_next('foresee simulate -H "What if we plant?" --action plant')


# --- simulate ---

@cli.command("simulate")
@click.option("--config", "-c", "config_path", type=click.Path(), help="ForesightConfig JSON/YAML")
@click.option("--hypothesis", "-H", required=True, help="Question in plain words")
@click.option("--actions", "-a", "actions_file", help="JSON list of actions")
@click.option("--action", "action_specs", multiple=True, help="type[:target], repeatable")
@click.option("--model", "-m", "model_path", help="Prediction model JSON")
@click.option("--state", "-s", "state_path", help="Current state JSON")
@click.option("--horizon-ms", type=int, default=DEFAULT_TIME_HORIZON_MS, show_default=True)
@click.option("--runs", "-n", type=click.IntRange(min=1), default=10, show_default=True)
@click.option("--max-glyphs", type=float, help="Constraint: maximum glyphs")
@click.option("--min-love", type=float, help="Constraint: minimum total love")
@click.option("--budget", type=float, help="Wall-clock budget in seconds")
@click.option("--export", "-e", "export_path", type=click.Path(), help="Write branch analysis JSON")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def simulate_cmd(config_path: Optional[str], hypothesis: str, actions_file: Optional[str],
                 action_specs: Tuple[str, ...], model_path: Optional[str], state_path: Optional[str],
                 horizon_ms: int, runs: int, max_glyphs: Optional[float], min_love: Optional[float],
                 budget: Optional[float], export_path: Optional[str], output: str) -> None:
    """Simulate one what-if hypothesis."""
    try:
        config = _load_config(config_path, model_path=model_path, state_path=state_path)
        actions = _collect_actions(actions_file, action_specs)
        simulator = FutureSimulator.from_config(config)
        params = _parameters(horizon_ms, runs, 1, max_glyphs, min_love)
        branch = simulator.simulate_what_if(hypothesis, actions, params, budget_s=budget)
    except InputError as e:
        _fail(output, str(e), 2)
        return
    except AggregationError as e:
        _fail(output, str(e), 1, failures=e.failures)
        return

    if export_path:
        export_branches([branch], export_path, tenant_id=config.tenant_id,
                        receipts_path=config.receipts_path, ledger=simulator.receipt_ledger)

    if output == "json":
        click.echo(branch.to_json(pretty=True))
        return

    console.print(_branch_panel(branch))
    if export_path:
        print_success(f"Saved: {export_path}")
    print_next("foresee alternatives")


# --- alternatives ---

@cli.command("alternatives")
@click.option("--config", "-c", "config_path", type=click.Path(), help="ForesightConfig JSON/YAML")
@click.option("--model", "-m", "model_path", help="Prediction model JSON")
@click.option("--state", "-s", "state_path", help="Current state JSON")
@click.option("--horizon-ms", type=int, default=DEFAULT_TIME_HORIZON_MS, show_default=True)
@click.option("--runs", "-n", type=click.IntRange(min=1), default=10, show_default=True)
@click.option("--branches", "-b", type=click.IntRange(min=1), default=3, show_default=True)
@click.option("--max-glyphs", type=float, help="Constraint: maximum glyphs")
@click.option("--min-love", type=float, help="Constraint: minimum total love")
@click.option("--budget", type=float, help="Wall-clock budget in seconds per scenario")
@click.option("--export", "-e", "export_path", type=click.Path(), help="Write branch analysis JSON")
@click.option("--report", is_flag=True, help="Print the plain-text report")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def alternatives_cmd(config_path: Optional[str], model_path: Optional[str], state_path: Optional[str],
                     horizon_ms: int, runs: int, branches: int, max_glyphs: Optional[float],
                     min_love: Optional[float], budget: Optional[float], export_path: Optional[str],
                     report: bool, output: str) -> None:
    """Simulate the canonical scenarios and rank them by desirability."""
    try:
        config = _load_config(config_path, model_path=model_path, state_path=state_path)
        simulator = FutureSimulator.from_config(config)
        params = _parameters(horizon_ms, runs, branches, max_glyphs, min_love)
        ranked = rank_branches(simulator.generate_alternatives(params, budget_s=budget), limit=branches)
    except InputError as e:
        _fail(output, str(e), 2)
        return
    except AggregationError as e:
        _fail(output, str(e), 1, failures=e.failures)
        return

    target = export_path or config.branches_path
    analysis = export_branches(ranked, target, tenant_id=config.tenant_id,
                               receipts_path=config.receipts_path, ledger=simulator.receipt_ledger)

    if output == "json":
        click.echo(json.dumps(analysis, indent=2))
        return

    if report:
        click.echo(generate_report(ranked))
    else:
        for rank, branch in enumerate(ranked, start=1):
            console.print(_branch_panel(branch, rank))
    print_success(f"Saved: {target}")


# --- predict-next ---

@cli.command("predict-next")
@click.argument("events", nargs=-1)
@click.option("--config", "-c", "config_path", type=click.Path(), help="ForesightConfig JSON/YAML")
@click.option("--model", "-m", "model_path", help="Prediction model JSON")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def predict_next_cmd(events: Tuple[str, ...], config_path: Optional[str],
                     model_path: Optional[str], output: str) -> None:
    """Predict the next event from recent event descriptions."""
    try:
        config = _load_config(config_path, model_path=model_path)
        analyzer = PatternAnalyzer.load(config.model_path, config=config)
    except InputError as e:
        _fail(output, str(e), 2)
        return

    prediction = analyzer.predict_next_event(list(events))

    if output == "json":
        click.echo(json.dumps(prediction, indent=2))
        return

    content = (
        f"event:        {prediction['event']}\n"
        f"probability:  {prediction['probability']:.0%} {_make_bar(prediction['probability'])}\n"
        f"timeframe:    {prediction['timeframe'] / 60_000:.1f} min"
    )
    console.print(Panel(content, title="[bold]Next Event[/bold]", border_style="cyan"))


# --- trajectory ---

@cli.command("trajectory")
@click.option("--config", "-c", "config_path", type=click.Path(), help="ForesightConfig JSON/YAML")
@click.option("--model", "-m", "model_path", help="Prediction model JSON")
@click.option("--metric", default="glyphCount", show_default=True)
@click.option("--horizon-ms", type=int, default=DEFAULT_TIME_HORIZON_MS, show_default=True)
@click.option("--seed", type=int, help="Seed for chaotic curves")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def trajectory_cmd(config_path: Optional[str], model_path: Optional[str], metric: str,
                   horizon_ms: int, seed: Optional[int], output: str) -> None:
    """Ten-point growth trajectory for one metric."""
    try:
        config = _load_config(config_path, model_path=model_path)
        analyzer = PatternAnalyzer.load(config.model_path, config=config)
    except InputError as e:
        _fail(output, str(e), 2)
        return

    values = analyzer.predict_growth_trajectory(metric, horizon_ms, seed=seed)

    if output == "json":
        click.echo(json.dumps({"metric": metric, "horizon": horizon_ms, "values": values}))
        return

    if not values:
        print_warning(f"No growth curve for {metric}")
        return

    table = Table(title=f"Trajectory: {metric}")
    table.add_column("t (min)", justify="right")
    table.add_column("value", justify="right")
    for i, value in enumerate(values, start=1):
        table.add_row(f"{horizon_ms * i / len(values) / 60_000:.1f}", f"{value:.4g}")
    console.print(table)


# --- entry point ---

def main() -> int:
    """Entry point for the foresee CLI."""
    try:
        cli(standalone_mode=False)
        return 0
    except click.ClickException as e:
        e.show()
        return 2
    except click.exceptions.Abort:
        return 1
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0


if __name__ == "__main__":
    sys.exit(main())
