"""
foresight/validation.py - Structured Input Validation

Compiled jsonschema validators for every structured input the engine accepts
(model artifact, state snapshot, timeline, actions, parameters, config).
Schema violations surface as InputError.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from jsonschema import Draft202012Validator

from .errors import InputError


def compile_schema(schema: Dict[str, Any]) -> Draft202012Validator:
    """Check and compile a Draft 2020-12 schema once, at import."""
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def schema_errors(validator: Draft202012Validator, data: Any) -> List[str]:
    """Return human-readable schema errors, ordered by location."""
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    messages = []
    for err in errors:
        location = "/".join(str(p) for p in err.absolute_path) or "<root>"
        messages.append(f"{location}: {err.message}")
    return messages


def require_valid(validator: Draft202012Validator, data: Any, source: str) -> None:
    """
    Raise InputError listing every schema violation.

    Args:
        validator: Compiled validator
        data: Decoded document
        source: Name used in the error message (file path or input name)
    """
    errors = schema_errors(validator, data)
    if errors:
        shown = "; ".join(errors[:5])
        more = f" (+{len(errors) - 5} more)" if len(errors) > 5 else ""
        raise InputError(f"invalid document: {shown}{more}", source=source)


def read_json(path: str, source: Optional[str] = None) -> Any:
    """
    Read and decode a JSON file.

    Raises:
        InputError: If the file is missing, unreadable, or not valid JSON
    """
    label = source or str(path)
    path_obj = Path(path)
    if not path_obj.exists():
        raise InputError(f"file not found: {path}", source=label)
    try:
        return json.loads(path_obj.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InputError(f"not valid JSON ({exc.msg} at line {exc.lineno})", source=label) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise InputError(f"unreadable: {exc}", source=label) from exc


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))
