"""Gemini ``streamGenerateContent`` helpers.

Usage merge rule: ``usageMetadata`` counts are cumulative, so every chunk
that carries them replaces the accumulator.
"""

from __future__ import annotations

from typing import Optional, Tuple

from ..base.handlers.stream_handler import Chunk, StreamHandler
from ..base.models_parts.token_metrics import TokenMetrics
from ..base.utils import dig, non_empty_str
from .helpers import usage_from_metadata


class GeminiContentStream(StreamHandler):
    def text(self, chunk: Chunk) -> Optional[str]:
        text = dig(chunk, "candidates", 0, "content", "parts", 0, "text")
        return text if isinstance(text, str) else None

    def usage(self, chunk: Chunk, current: TokenMetrics) -> TokenMetrics:
        metadata = chunk.get("usageMetadata")
        if not isinstance(metadata, dict):
            return current
        return usage_from_metadata(metadata)

    def finish_reason(self, chunk: Chunk) -> Optional[str]:
        return non_empty_str(dig(chunk, "candidates", 0, "finishReason"))

    def identity(self, chunk: Chunk) -> Tuple[Optional[str], Optional[str]]:
        return non_empty_str(chunk.get("modelVersion")), non_empty_str(chunk.get("responseId"))


GEMINI_CONTENT_STREAM = GeminiContentStream()

__all__ = ["GeminiContentStream", "GEMINI_CONTENT_STREAM"]
