"""Cohere v2 chat streaming helpers.

Usage merge rule: the whole usage block arrives once, in ``message-end``
under ``delta.usage``, and replaces the accumulator.
"""

from __future__ import annotations

from typing import Optional, Tuple

from ..base.handlers.stream_handler import Chunk, StreamHandler
from ..base.models_parts.token_metrics import TokenMetrics
from ..base.utils import dig, non_empty_str
from .helpers import usage_from_cohere


class CohereChatStream(StreamHandler):
    def text(self, chunk: Chunk) -> Optional[str]:
        if chunk.get("type") != "content-delta":
            return None
        text = dig(chunk, "delta", "message", "content", "text")
        return text if isinstance(text, str) else None

    def usage(self, chunk: Chunk, current: TokenMetrics) -> TokenMetrics:
        if chunk.get("type") != "message-end":
            return current
        usage = dig(chunk, "delta", "usage")
        return usage_from_cohere(usage) if isinstance(usage, dict) else current

    def finish_reason(self, chunk: Chunk) -> Optional[str]:
        if chunk.get("type") != "message-end":
            return None
        return non_empty_str(dig(chunk, "delta", "finish_reason"))

    def identity(self, chunk: Chunk) -> Tuple[Optional[str], Optional[str]]:
        if chunk.get("type") != "message-start":
            return None, None
        return None, non_empty_str(chunk.get("id"))


COHERE_CHAT_STREAM = CohereChatStream()

__all__ = ["CohereChatStream", "COHERE_CHAT_STREAM"]
