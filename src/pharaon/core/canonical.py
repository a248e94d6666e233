"""
Compact JSON serialization and shape checks for tracked payloads.

All byte ceilings in pharaon are measured against one serialized form:
compact JSON (no whitespace between tokens), non-ASCII characters kept
as-is, encoded as UTF-8. NaN and Infinity are strictly REJECTED rather than
emitted as the non-standard tokens the stdlib json module would produce.

Shape checks raise ValueError/TypeError; callers at the public boundary
translate them into InvalidInput diagnostics.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from typing import Any

SCALAR_TYPES: tuple[type, ...] = (str, int, float, bool)


def dumps_compact(value: Any) -> str:
    """Serialize to compact JSON.

    Raises:
        TypeError: If the value contains non-JSON types
        ValueError: If the value contains NaN or Infinity
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def serialized_size(value: Any) -> int:
    """Byte length of the compact UTF-8 JSON form of value."""
    return len(dumps_compact(value).encode("utf-8"))


def _contains_non_finite(obj: Any) -> bool:
    """Recursively check if object contains NaN or Infinity float values."""
    if isinstance(obj, float):
        return math.isnan(obj) or math.isinf(obj)
    if isinstance(obj, Mapping):
        return any(_contains_non_finite(v) for v in obj.values())
    if isinstance(obj, list | tuple):
        return any(_contains_non_finite(v) for v in obj)
    return False


def _require_string_keys(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{what} must be a mapping, got {type(value).__name__}")
    for key in value:
        if not isinstance(key, str):
            raise TypeError(f"{what} keys must be strings, got {type(key).__name__} key {key!r}")
    # Shallow copy: callers must never observe later mutation by the agent
    return dict(value)


def normalize_event_params(value: Any) -> dict[str, Any]:
    """Validate event params and return a shallow copy.

    Event params are a string-keyed mapping whose values are any finite,
    JSON-serializable value. None means "no params".

    Raises:
        TypeError: Not a mapping, non-string keys, or non-serializable values
        ValueError: Non-finite float values, reference cycles or excessive nesting
    """
    if value is None:
        return {}
    params = _require_string_keys(value, "Event params")
    try:
        if _contains_non_finite(params):
            raise ValueError("Event params contain non-finite values (NaN or Infinity)")
        # Size check only: raises on non-JSON values and unencodable (lone surrogate) text
        serialized_size(params)
    except RecursionError as e:
        raise ValueError("Event params are nested too deeply or contain a reference cycle") from e
    return params


def normalize_identifiers(value: Any) -> dict[str, Any]:
    """Validate a flat identifier mapping and return a shallow copy.

    Identifier values are restricted to the closed scalar variant
    str | int | float | bool. None, nested mappings and sequences are rejected.

    Raises:
        TypeError: Not a mapping, non-string keys, or non-scalar values
        ValueError: Non-finite float values
    """
    fields = _require_string_keys(value, "Identifiers")
    for key, item in fields.items():
        if not isinstance(item, SCALAR_TYPES):
            raise TypeError(f"Identifier '{key}' must be a string, number or boolean, got {type(item).__name__}")
        if isinstance(item, float) and (math.isnan(item) or math.isinf(item)):
            raise ValueError(f"Identifier '{key}' is not a finite number: {item}")
    return fields
