"""Groq streaming helpers.

Groq streams the OpenAI chunk format but reports final usage under
``x_groq.usage`` on the last chunk. Either location replaces the accumulator.
"""

from __future__ import annotations

from ..base.handlers.stream_handler import Chunk
from ..base.models_parts.token_metrics import TokenMetrics
from ..base.utils import dig
from ..openai.stream_helpers import OpenAITextStream


class GroqChatStream(OpenAITextStream):
    def usage(self, chunk: Chunk, current: TokenMetrics) -> TokenMetrics:
        extra = dig(chunk, "x_groq", "usage")
        if isinstance(extra, dict):
            return TokenMetrics.from_usage(extra)
        return super().usage(chunk, current)


GROQ_CHAT_STREAM = GroqChatStream()

__all__ = ["GroqChatStream", "GROQ_CHAT_STREAM"]
