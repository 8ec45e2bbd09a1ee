"""Mistral handlers.

La Plateforme speaks the OpenAI chat and embedding shapes; FIM (code
completion) responses reuse the chat completion body.
"""

from __future__ import annotations

from typing import Optional

from ..base.handlers.capabilities import HandlerCapabilities
from ..base.handlers.handler import Body
from ..openai.handlers import EmbeddingHandler as OpenAIEmbeddingHandler, TextHandler
from ..openai.stream_helpers import OPENAI_TEXT_STREAM


class ChatHandler(TextHandler):
    endpoints = ("/v1/chat/completions", "/v1/fim/completions")
    capabilities = HandlerCapabilities(
        streams_response=True,
        matches_response_shape=True,
        extracts_model_from_response=True,
    )
    stream_handler = OPENAI_TEXT_STREAM

    def matches_response(self, body: Body) -> bool:
        return body.get("object") in ("chat.completion", "fim.completion")

    def extract_pricing_tier_from_response(self, body: Body) -> Optional[str]:
        return None


class EmbeddingHandler(OpenAIEmbeddingHandler):
    endpoints = ("/v1/embeddings",)


__all__ = ["ChatHandler", "EmbeddingHandler"]
