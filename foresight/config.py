"""
foresight/config.py - Engine Configuration

ForesightConfig is the explicit configuration handed to the analyzer and the
simulator at construction: where the chronicles, model, state and branch
artifacts live, where receipts go, and how Monte Carlo runs are executed.
No location is derived from the environment.

Design:
- Self-validating: load() checks the document against a compiled
  Draft 2020-12 schema and raises InputError listing every violation
- Immutable: frozen after load
- JSON or YAML on disk
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .constants import DEFAULT_TENANT, EXECUTOR_KINDS, TRACKED_METRICS
from .errors import InputError
from .validation import compile_schema, require_valid


__all__ = [
    "ForesightConfig",
    "load",
    "default",
]


# =============================================================================
# JSON Schema Definition (Draft 2020-12)
# =============================================================================

_JSON_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "ForesightConfig",
    "description": "Garden foresight engine configuration",
    "type": "object",
    "properties": {
        "chronicles_path": {"type": "string", "minLength": 1},
        "model_path": {"type": "string", "minLength": 1},
        "state_path": {"type": "string", "minLength": 1},
        "branches_path": {"type": "string", "minLength": 1},
        "receipts_path": {"type": ["string", "null"]},
        "tenant_id": {"type": "string", "minLength": 1},
        "executor": {"enum": list(EXECUTOR_KINDS)},
        "max_workers": {"type": ["integer", "null"], "minimum": 1},
        "wall_clock_budget_s": {"type": ["number", "null"], "exclusiveMinimum": 0},
        "tracked_metrics": {
            "type": "array",
            "items": {"type": "string"},
            "minItems": 1,
        },
    },
    "additionalProperties": False,
}

_COMPILED_VALIDATOR = compile_schema(_JSON_SCHEMA)


# =============================================================================
# ForesightConfig Dataclass
# =============================================================================

@dataclass(frozen=True)
class ForesightConfig:
    """
    Engine configuration.

    Attributes:
        chronicles_path: Historical timeline document (analyzer input)
        model_path: Trained model artifact (analyzer output, simulator input)
        state_path: Current garden snapshot (simulator input)
        branches_path: Ranked branch analysis (simulator output)
        receipts_path: Optional JSONL file receipts are appended to
        tenant_id: Tenant stamped on every receipt
        executor: "thread", "process" or "serial" Monte Carlo execution
        max_workers: Worker cap for the executor (None = library default)
        wall_clock_budget_s: Default per-simulation budget (None = unbounded)
        tracked_metrics: Metrics the analyzer fits growth curves to
    """
    chronicles_path: str = "chronicles/garden-chronicles.json"
    model_path: str = "predictive-engine/prediction-model.json"
    state_path: str = "current-state.json"
    branches_path: str = "predictive-engine/future-branches.json"
    receipts_path: Optional[str] = None
    tenant_id: str = DEFAULT_TENANT
    executor: str = "thread"
    max_workers: Optional[int] = None
    wall_clock_budget_s: Optional[float] = None
    tracked_metrics: Tuple[str, ...] = field(default_factory=lambda: tuple(TRACKED_METRICS))

    def __post_init__(self) -> None:
        if isinstance(self.tracked_metrics, list):
            object.__setattr__(self, "tracked_metrics", tuple(self.tracked_metrics))
        if self.executor not in EXECUTOR_KINDS:
            raise InputError(
                f"executor must be one of {list(EXECUTOR_KINDS)}, got {self.executor!r}",
                source="config",
            )

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["tracked_metrics"] = list(self.tracked_metrics)
        return data

    def save(self, path: str) -> None:
        """
        Write config to file.

        Args:
            path: File path to write to (.json or .yaml)
        """
        path_obj = Path(path)
        if path_obj.suffix in (".yaml", ".yml"):
            content = yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=True)
        else:
            content = json.dumps(self.to_dict(), indent=2, sort_keys=True)
        path_obj.write_text(content, encoding="utf-8")

    def with_overrides(self, **changes: Any) -> ForesightConfig:
        """Derived config; None values are ignored."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    # -------------------------------------------------------------------------
    # Class Methods
    # -------------------------------------------------------------------------

    @classmethod
    def default(cls, root: Optional[str] = None) -> ForesightConfig:
        """
        Default layout, optionally rooted under a base directory.

        Args:
            root: Base directory every relative path is joined to
        """
        config = cls()
        if root is None:
            return config
        base = Path(root)
        return replace(
            config,
            chronicles_path=str(base / config.chronicles_path),
            model_path=str(base / config.model_path),
            state_path=str(base / config.state_path),
            branches_path=str(base / config.branches_path),
        )

    @classmethod
    def from_dict(cls, data: Any, source: str = "config") -> ForesightConfig:
        """
        Create from dictionary.

        Raises:
            InputError: If the dictionary violates the config schema
        """
        require_valid(_COMPILED_VALIDATOR, data, source)
        values = dict(data)
        if "tracked_metrics" in values:
            values["tracked_metrics"] = tuple(values["tracked_metrics"])
        return cls(**values)


# =============================================================================
# Module-Level Functions
# =============================================================================

def load(path: str) -> ForesightConfig:
    """
    Load config from JSON/YAML file.

    Relative artifact paths are resolved against the config file's directory.

    Raises:
        InputError: If the file is missing, undecodable, or invalid
    """
    path_obj = Path(path)
    if not path_obj.exists():
        raise InputError(f"config file not found: {path}", source=str(path))

    try:
        content = path_obj.read_text(encoding="utf-8")
        if path_obj.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (OSError, UnicodeDecodeError) as exc:
        raise InputError(f"unreadable config: {exc}", source=str(path)) from exc
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise InputError(f"cannot decode config: {exc}", source=str(path)) from exc

    if data is None:
        data = {}
    config = ForesightConfig.from_dict(data, source=str(path))

    base = path_obj.parent
    resolved = {}
    for name in ("chronicles_path", "model_path", "state_path", "branches_path", "receipts_path"):
        value = getattr(config, name)
        if value is not None and not Path(value).is_absolute():
            resolved[name] = str(base / value)
    return replace(config, **resolved)


def default(root: Optional[str] = None) -> ForesightConfig:
    """Convenience wrapper for ForesightConfig.default()."""
    return ForesightConfig.default(root)
