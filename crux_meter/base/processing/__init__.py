"""Response processing: extraction, tool-call tally, reasoning signals, sanitization."""

from .reasoning import extract_reasoning_effort, has_reasoning_output
from .response_processor import ProcessResult, ResponseProcessor, usage_fallback
from .sanitize import sanitize_for_json, strip_binary_data, strip_embeddings
from .tool_calls import count_tool_calls, finish_reason_implies_tool_calls

__all__ = [
    "ProcessResult",
    "ResponseProcessor",
    "count_tool_calls",
    "extract_reasoning_effort",
    "finish_reason_implies_tool_calls",
    "has_reasoning_output",
    "sanitize_for_json",
    "strip_binary_data",
    "strip_embeddings",
    "usage_fallback",
]
