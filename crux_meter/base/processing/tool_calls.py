"""Tool-call tally over the known output-item shapes of each provider family."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from ..constants import RESPONSE_TOOL_CALL_TYPES, TOOL_CALL_FINISH_REASONS
from ..utils import as_list, dig


def _bump(counts: Dict[str, int], key: str) -> None:
    counts[key] = counts.get(key, 0) + 1


def count_tool_calls(body: Mapping[str, Any]) -> Dict[str, int]:
    """Return ``{tool_call_type: count}`` for every tool call found in ``body``.

    Shapes scanned:

    - completion style ``choices[*].message.tool_calls[*]`` keyed by each
      call's ``type`` (``function`` when absent)
    - responses style ``output[*].type`` for the built-in tool item types
    - message style ``content[*]`` blocks of type ``tool_use``
    - Gemini ``candidates[*].content.parts[*].functionCall`` as ``function_call``

    An empty dict means no explicit tool calls were found.
    """
    counts: Dict[str, int] = {}
    if not isinstance(body, Mapping):
        return counts

    for choice in as_list(body.get("choices")):
        for call in as_list(dig(choice, "message", "tool_calls")):
            kind = call.get("type") if isinstance(call, Mapping) else None
            _bump(counts, kind if isinstance(kind, str) and kind else "function")

    for item in as_list(body.get("output")):
        kind = item.get("type") if isinstance(item, Mapping) else None
        if kind in RESPONSE_TOOL_CALL_TYPES:
            _bump(counts, kind)

    for block in as_list(body.get("content")):
        if isinstance(block, Mapping) and block.get("type") == "tool_use":
            _bump(counts, "tool_use")

    for candidate in as_list(body.get("candidates")):
        for part in as_list(dig(candidate, "content", "parts")):
            if isinstance(part, Mapping) and "functionCall" in part:
                _bump(counts, "function_call")

    return counts


def finish_reason_implies_tool_calls(finish_reason: Optional[str]) -> bool:
    return finish_reason in TOOL_CALL_FINISH_REASONS


__all__ = ["count_tool_calls", "finish_reason_implies_tool_calls"]
