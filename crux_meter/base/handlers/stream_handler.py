"""
Stream handler contract.

A ``StreamHandler`` interprets normalized streaming chunks for one provider
family. All methods are pure: they read a chunk (and, for usage, the usage
accumulated so far) and return values without keeping state, so one instance
is shared by every stream of that family.

Usage merge rules differ per family and are part of each implementation's
contract. Some providers repeat cumulative totals (overwrite), others split
prompt and completion counts across the first and last chunks (field-wise
merge). ``merge_usage`` implements the field-wise rule for subclasses.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple

from ..models_parts.token_metrics import TokenMetrics
from ..utils import coerce_int

Chunk = Mapping[str, Any]


def merge_usage(current: TokenMetrics, **fields: Any) -> TokenMetrics:
    """Return ``current`` with the given fields replaced when they coerce to ints.

    Fields whose value is missing or invalid keep their accumulated value.
    """
    changes = {}
    for name, value in fields.items():
        coerced = coerce_int(value)
        if coerced is not None:
            changes[name] = coerced
    return current.replace(**changes) if changes else current


class StreamHandler:
    """Base stream handler; every hook defaults to "nothing in this chunk"."""

    def text(self, chunk: Chunk) -> Optional[str]:
        """Incremental text fragment carried by ``chunk``."""
        return None

    def usage(self, chunk: Chunk, current: TokenMetrics) -> TokenMetrics:
        """Usage after applying ``chunk`` to the accumulated ``current`` usage."""
        return current

    def finish_reason(self, chunk: Chunk) -> Optional[str]:
        return None

    def identity(self, chunk: Chunk) -> Tuple[Optional[str], Optional[str]]:
        """``(model, response_id)`` declared by ``chunk``, either may be ``None``."""
        return None, None


__all__ = ["Chunk", "StreamHandler", "merge_usage"]
