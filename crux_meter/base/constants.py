"""Shared literal values used across the metering pipeline.

Only plain constants live here; no imports from other metering modules.
"""

from __future__ import annotations

# Placeholder model name used until the real model is known.
UNKNOWN_MODEL = "unknown"

# Tier every lookup falls back to when the requested one is not priced.
STANDARD_TIER = "standard"

DEFAULT_CURRENCY = "USD"

# Replacement marker for binary payloads and embedding vectors.
STRIPPED = "[stripped]"

# Inline image results shorter than this are kept (ids, urls).
INLINE_RESULT_STRIP_THRESHOLD = 1000

TOKENS_PER_PRICE_UNIT = 1_000_000
CHARACTERS_PER_PRICE_UNIT = 1_000_000

# Output item types that count as tool calls in Responses-style payloads.
RESPONSE_TOOL_CALL_TYPES = frozenset(
    {
        "function_call",
        "web_search_call",
        "file_search_call",
        "code_interpreter_call",
        "computer_call",
        "mcp_tool_call",
        "image_generation_call",
        "local_shell_call",
        "mcp_approval_request",
    }
)

# Output item types that make a streamed terminal payload worth processing whole.
RICH_OUTPUT_TYPES = frozenset(
    {
        "image_generation_call",
        "web_search_call",
        "file_search_call",
        "code_interpreter_call",
        "computer_call",
        "mcp_tool_call",
        "local_shell_call",
    }
)

TOOL_CALL_FINISH_REASONS = frozenset({"tool_calls", "tool_use"})

# Tool call types billed as searches for models priced per search.
SEARCH_TOOL_CALL_TYPES = ("web_search_call", "file_search_call")


__all__ = [
    "UNKNOWN_MODEL",
    "STANDARD_TIER",
    "DEFAULT_CURRENCY",
    "STRIPPED",
    "INLINE_RESULT_STRIP_THRESHOLD",
    "TOKENS_PER_PRICE_UNIT",
    "CHARACTERS_PER_PRICE_UNIT",
    "RESPONSE_TOOL_CALL_TYPES",
    "RICH_OUTPUT_TYPES",
    "TOOL_CALL_FINISH_REASONS",
    "SEARCH_TOOL_CALL_TYPES",
]
