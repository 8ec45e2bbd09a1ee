"""OpenAI streaming helpers.

Purpose:
- Interpret server-sent chunks from both the Chat Completions API
  (``choices[0].delta``) and the Responses API (typed events such as
  ``response.output_text.delta`` and ``response.completed``).

Usage merge rule:
- Completion-style usage arrives once, on the final chunk, when the caller
  asked for ``stream_options.include_usage``. Responses-style usage arrives
  inside ``response.completed``. Both carry cumulative totals, so a chunk with
  usage replaces the accumulator wholesale.

Other OpenAI-compatible providers (Groq, Mistral, xAI, OpenRouter) reuse
:class:`OpenAITextStream` unchanged.
"""

from __future__ import annotations

from typing import Optional, Tuple

from ..base.handlers.stream_handler import Chunk, StreamHandler
from ..base.models_parts.token_metrics import TokenMetrics
from ..base.utils import dig, non_empty_str

RESPONSE_COMPLETED = "response.completed"
OUTPUT_TEXT_DELTA = "response.output_text.delta"
CONTENT_DELTA = "content.delta"


class OpenAITextStream(StreamHandler):
    """Stream handler for completion-style and Responses-style OpenAI streams."""

    def text(self, chunk: Chunk) -> Optional[str]:
        content = dig(chunk, "choices", 0, "delta", "content")
        if isinstance(content, str):
            return content
        kind = chunk.get("type")
        if kind == OUTPUT_TEXT_DELTA:
            delta = chunk.get("delta")
            return delta if isinstance(delta, str) else None
        if kind == CONTENT_DELTA:
            text = dig(chunk, "delta", "text")
            return text if isinstance(text, str) else None
        return None

    def usage(self, chunk: Chunk, current: TokenMetrics) -> TokenMetrics:
        usage = chunk.get("usage")
        if isinstance(usage, dict) and "type" not in chunk:
            return TokenMetrics.from_usage(usage)
        if chunk.get("type") == RESPONSE_COMPLETED:
            nested = dig(chunk, "response", "usage")
            if isinstance(nested, dict):
                return TokenMetrics.from_usage(nested)
        return current

    def finish_reason(self, chunk: Chunk) -> Optional[str]:
        reason = non_empty_str(dig(chunk, "choices", 0, "finish_reason"))
        if reason:
            return reason
        if chunk.get("type") == RESPONSE_COMPLETED:
            return non_empty_str(dig(chunk, "response", "status")) or "completed"
        return None

    def identity(self, chunk: Chunk) -> Tuple[Optional[str], Optional[str]]:
        model = non_empty_str(chunk.get("model"))
        response_id = non_empty_str(chunk.get("id"))
        if chunk.get("type") == RESPONSE_COMPLETED:
            model = model or non_empty_str(dig(chunk, "response", "model"))
            response_id = response_id or non_empty_str(dig(chunk, "response", "id"))
        return model, response_id


OPENAI_TEXT_STREAM = OpenAITextStream()

__all__ = ["OpenAITextStream", "OPENAI_TEXT_STREAM", "RESPONSE_COMPLETED"]
