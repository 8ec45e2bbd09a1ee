"""Best-effort accessors for untrusted provider payloads.

Provider bodies are decoded JSON of unknown shape. Every helper here accepts
arbitrary input and degrades to ``None`` (or an empty container) instead of
raising, so extraction code can chain lookups without guarding each level.

Failure Modes
-------------
* Missing keys, wrong container types, out-of-range indexes → ``None``
* Non-numeric or negative counts → ``None`` from ``coerce_int``
* Booleans are never treated as numbers
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional


def dig(data: Any, *path: Any) -> Any:
    """Walk ``path`` through nested mappings and lists.

    String segments index mappings, integer segments index lists. Any miss
    returns ``None``.

    Example:
        ``dig(body, "choices", 0, "message", "content")``
    """
    current = data
    for segment in path:
        if isinstance(segment, int) and not isinstance(segment, bool):
            if not isinstance(current, list) or not -len(current) <= segment < len(current):
                return None
            current = current[segment]
        elif isinstance(current, Mapping):
            current = current.get(segment)
        else:
            return None
        if current is None:
            return None
    return current


def first_present(data: Any, *paths: Any) -> Any:
    """Return the first non-``None`` value among several ``dig`` paths.

    Each path is a tuple of segments or a single key string.
    """
    for path in paths:
        segments = path if isinstance(path, tuple) else (path,)
        value = dig(data, *segments)
        if value is not None:
            return value
    return None


def coerce_int(value: Any) -> Optional[int]:
    """Coerce arbitrary value to a non-negative ``int`` or ``None``.

    Args:
        value: Arbitrary candidate value (may be ``None`` or numeric string).

    Returns:
        int | None: Integer if coercion succeeds and value is >= 0; otherwise ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    try:
        iv = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    return iv if iv >= 0 else None


def coerce_float(value: Any) -> Optional[float]:
    """Coerce arbitrary value to a non-negative ``float`` or ``None``."""
    if value is None or isinstance(value, bool):
        return None
    try:
        fv = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if fv != fv or fv < 0:
        return None
    return fv


def int_or_zero(value: Any) -> int:
    coerced = coerce_int(value)
    return coerced if coerced is not None else 0


def as_dict(value: Any) -> Dict[str, Any]:
    """Return ``value`` when it is a mapping, otherwise an empty dict."""
    return dict(value) if isinstance(value, Mapping) else {}


def as_list(value: Any) -> List[Any]:
    """Return ``value`` when it is a list, otherwise an empty list."""
    return value if isinstance(value, list) else []


def non_empty_str(value: Any) -> Optional[str]:
    """Return ``value`` when it is a non-empty string, otherwise ``None``."""
    if isinstance(value, str) and value != "":
        return value
    return None


__all__ = [
    "dig",
    "first_present",
    "coerce_int",
    "coerce_float",
    "int_or_zero",
    "as_dict",
    "as_list",
    "non_empty_str",
]
