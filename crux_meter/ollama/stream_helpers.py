"""Ollama NDJSON streaming helpers.

Usage merge rule: counts only appear on the final ``done`` chunk and replace
the accumulator there; every other chunk keeps it.
"""

from __future__ import annotations

from typing import Optional, Tuple

from ..base.handlers.stream_handler import Chunk, StreamHandler
from ..base.models_parts.token_metrics import TokenMetrics
from ..base.utils import dig, int_or_zero, non_empty_str


class OllamaChatStream(StreamHandler):
    def text(self, chunk: Chunk) -> Optional[str]:
        content = dig(chunk, "message", "content")
        if isinstance(content, str):
            return content
        response = chunk.get("response")
        return response if isinstance(response, str) else None

    def usage(self, chunk: Chunk, current: TokenMetrics) -> TokenMetrics:
        if chunk.get("done") is not True:
            return current
        return TokenMetrics(
            prompt_tokens=int_or_zero(chunk.get("prompt_eval_count")),
            completion_tokens=int_or_zero(chunk.get("eval_count")),
        )

    def finish_reason(self, chunk: Chunk) -> Optional[str]:
        if chunk.get("done") is not True:
            return None
        return non_empty_str(chunk.get("done_reason")) or "stop"

    def identity(self, chunk: Chunk) -> Tuple[Optional[str], Optional[str]]:
        return non_empty_str(chunk.get("model")), None


OLLAMA_CHAT_STREAM = OllamaChatStream()

__all__ = ["OllamaChatStream", "OLLAMA_CHAT_STREAM"]
