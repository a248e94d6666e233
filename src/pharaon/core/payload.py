"""Byte-size bounding for structured payloads.

bound() enforces a hard ceiling on the serialized size of a flat mapping by
walking its keys in insertion order:

- Keys are kept while the running serialized size stays within the ceiling.
- The first key that does not fit is the boundary key. A string value is
  cut to the longest prefix that still fits with an ellipsis marker
  appended; any other value is omitted.
- Every key after the boundary key is dropped.

The very first key is never dropped while the ceiling can hold
{"key":"..."}: a non-string first value that does not fit is truncated in
its JSON text form instead. A non-empty input therefore yields a non-empty
result whenever that is possible at all.

Sizes are measured with pharaon.core.canonical.serialized_size.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pharaon.core.canonical import dumps_compact, serialized_size

ELLIPSIS = "..."

# serialized_size({})
_EMPTY_OBJECT_BYTES = 2


@dataclass(frozen=True, slots=True)
class BoundResult:
    """Outcome of bounding a payload.

    Attributes:
        value: New mapping whose serialized size is <= limit_bytes
        truncated: True if any key was cut or dropped
        original_bytes: Serialized size of the input
        bounded_bytes: Serialized size of value
        limit_bytes: The ceiling that was applied
        dropped_keys: Keys omitted entirely, in input order
    """

    value: dict[str, Any]
    truncated: bool
    original_bytes: int
    bounded_bytes: int
    limit_bytes: int
    dropped_keys: tuple[str, ...] = ()


def _truncate_text(text: str, budget: int) -> str | None:
    """Longest prefix of text that serializes within budget with ELLIPSIS appended.

    Returns None if not even the bare ellipsis fits.
    """
    if serialized_size(ELLIPSIS) > budget:
        return None
    # Serialized length is monotonic in prefix length, so binary search
    low, high = 0, len(text)
    while low < high:
        mid = (low + high + 1) // 2
        if serialized_size(text[:mid] + ELLIPSIS) <= budget:
            low = mid
        else:
            high = mid - 1
    return text[:low] + ELLIPSIS


def bound(value: Mapping[str, Any], max_bytes: int) -> BoundResult:
    """Bound a mapping to at most max_bytes of serialized JSON.

    Pure: the input is never mutated and the same input always yields the
    same output.

    Args:
        value: String-keyed mapping of JSON-serializable values
        max_bytes: Ceiling for the serialized result

    Returns:
        BoundResult describing the bounded mapping

    Raises:
        ValueError: If max_bytes < 2 (smaller than an empty object)
    """
    if max_bytes < _EMPTY_OBJECT_BYTES:
        raise ValueError(f"max_bytes must be >= {_EMPTY_OBJECT_BYTES}, got {max_bytes}")

    original_bytes = serialized_size(value)
    if original_bytes <= max_bytes:
        return BoundResult(
            value=dict(value),
            truncated=False,
            original_bytes=original_bytes,
            bounded_bytes=original_bytes,
            limit_bytes=max_bytes,
        )

    keys = list(value)
    result: dict[str, Any] = {}
    running = _EMPTY_OBJECT_BYTES

    for index, key in enumerate(keys):
        item = value[key]
        separator = 1 if result else 0
        # "key": prefix of the entry
        key_bytes = serialized_size(key) + 1
        entry_bytes = key_bytes + serialized_size(item)

        if running + separator + entry_bytes <= max_bytes:
            result[key] = item
            running += separator + entry_bytes
            continue

        # Boundary key: nothing after it is inserted
        text: str | None = None
        if isinstance(item, str):
            text = item
        elif not result:
            text = dumps_compact(item)

        if text is not None:
            cut = _truncate_text(text, max_bytes - running - separator - key_bytes)
            if cut is not None:
                result[key] = cut

        dropped = tuple(k for k in keys[index:] if k not in result)
        break
    else:  # pragma: no cover - unreachable, the input did not fit
        dropped = ()

    return BoundResult(
        value=result,
        truncated=True,
        original_bytes=original_bytes,
        bounded_bytes=serialized_size(result),
        limit_bytes=max_bytes,
        dropped_keys=dropped,
    )
