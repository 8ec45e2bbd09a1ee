"""Reasoning-mode signals: declared effort or budget, and thinking output blocks."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple

from ..utils import as_list, dig

# Request locations of an explicit effort level or thinking budget, in lookup order.
_EFFORT_PATHS: Tuple[Tuple[str, ...], ...] = (
    ("reasoning_effort",),
    ("reasoning", "effort"),
    ("reasoning", "max_tokens"),
    ("thinking", "budget_tokens"),
    ("thinking", "token_budget"),
    ("generationConfig", "thinkingConfig", "thinkingBudget"),
)


def _as_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def extract_reasoning_effort(
    request_data: Optional[Mapping[str, Any]],
    body: Optional[Mapping[str, Any]] = None,
) -> Optional[str]:
    """Return the reasoning effort or token budget, as a string.

    The request wins over the response: an explicit setting by the caller is
    checked first, then the value some APIs echo back in the response body
    (``reasoning.effort``). A boolean ``think`` flag maps to ``"enabled"``, as
    does ``prompt_mode: reasoning``.
    """
    request = request_data if isinstance(request_data, Mapping) else {}
    for path in _EFFORT_PATHS:
        value = dig(request, *path)
        if value is not None and not isinstance(value, (Mapping, list)):
            return _as_text(value)

    think = request.get("think")
    if think is not None and think is not False:
        return think if isinstance(think, str) else "enabled"

    if request.get("prompt_mode") == "reasoning":
        return "enabled"

    echoed = dig(body, "reasoning", "effort") if isinstance(body, Mapping) else None
    if echoed is not None and not isinstance(echoed, (Mapping, list)):
        return _as_text(echoed)
    return None


def has_reasoning_output(body: Optional[Mapping[str, Any]]) -> bool:
    """True when the body carries a reasoning or thinking content block.

    Some APIs emit such blocks while reporting zero reasoning tokens.
    """
    if not isinstance(body, Mapping):
        return False
    if any(isinstance(i, Mapping) and i.get("type") == "reasoning" for i in as_list(body.get("output"))):
        return True
    if any(
        isinstance(b, Mapping) and b.get("type") in ("thinking", "redacted_thinking")
        for b in as_list(body.get("content"))
    ):
        return True
    return any(
        isinstance(p, Mapping) and p.get("thought") is True
        for c in as_list(body.get("candidates"))
        for p in as_list(dig(c, "content", "parts"))
    )


__all__ = ["extract_reasoning_effort", "has_reasoning_output"]
