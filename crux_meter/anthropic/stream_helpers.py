"""Anthropic streaming helpers.

Purpose:
- Interpret Messages API server-sent events.

Usage merge rule:
- Usage is split across events: ``message_start`` reports input, cache-read
  and cache-creation counts; ``message_delta`` reports the output count. Each
  event sets only its own fields and keeps the rest of the accumulator.
"""

from __future__ import annotations

from typing import Optional, Tuple

from ..base.handlers.stream_handler import Chunk, StreamHandler, merge_usage
from ..base.models_parts.token_metrics import TokenMetrics
from ..base.utils import dig, non_empty_str


class AnthropicMessageStream(StreamHandler):
    def text(self, chunk: Chunk) -> Optional[str]:
        if chunk.get("type") != "content_block_delta":
            return None
        text = dig(chunk, "delta", "text")
        return text if isinstance(text, str) else None

    def usage(self, chunk: Chunk, current: TokenMetrics) -> TokenMetrics:
        kind = chunk.get("type")
        if kind == "message_start":
            usage = dig(chunk, "message", "usage")
            if not isinstance(usage, dict):
                return current
            return merge_usage(
                current,
                prompt_tokens=usage.get("input_tokens"),
                cached_tokens=usage.get("cache_read_input_tokens"),
                cache_creation_tokens=usage.get("cache_creation_input_tokens"),
            )
        if kind == "message_delta":
            return merge_usage(current, completion_tokens=dig(chunk, "usage", "output_tokens"))
        return current

    def finish_reason(self, chunk: Chunk) -> Optional[str]:
        if chunk.get("type") != "message_delta":
            return None
        return non_empty_str(dig(chunk, "delta", "stop_reason"))

    def identity(self, chunk: Chunk) -> Tuple[Optional[str], Optional[str]]:
        if chunk.get("type") != "message_start":
            return None, None
        return non_empty_str(dig(chunk, "message", "model")), non_empty_str(dig(chunk, "message", "id"))


ANTHROPIC_MESSAGE_STREAM = AnthropicMessageStream()

__all__ = ["AnthropicMessageStream", "ANTHROPIC_MESSAGE_STREAM"]
