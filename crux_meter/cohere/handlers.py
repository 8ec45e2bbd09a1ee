"""Cohere v2 API handlers (chat, embed, rerank).

v2 responses do not echo the model; it is taken from the request.
"""

from __future__ import annotations

from typing import List, Optional

from ..base.handlers.capabilities import HandlerCapabilities
from ..base.handlers.handler import Body, ProviderHandler
from ..base.models_parts.metrics import Metrics
from ..base.models_parts.model_type import ModelType
from ..base.models_parts.token_metrics import TokenMetrics
from ..base.utils import as_list, coerce_int, dig, int_or_zero, non_empty_str
from .helpers import usage_from_cohere
from .stream_helpers import COHERE_CHAT_STREAM


class ChatHandler(ProviderHandler):
    endpoints = ("/v2/chat",)
    model_type = ModelType.TEXT
    capabilities = HandlerCapabilities(streams_response=True, matches_response_shape=True)
    stream_handler = COHERE_CHAT_STREAM

    def matches_response(self, body: Body) -> bool:
        return "message" in body and "finish_reason" in body

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        return Metrics(tokens=usage_from_cohere(body.get("usage")))

    def extract_response_text(self, body: Body) -> Optional[str]:
        texts: List[str] = []
        for block in as_list(dig(body, "message", "content")):
            if dig(block, "type") == "text" and isinstance(dig(block, "text"), str) and block["text"]:
                texts.append(block["text"])
        return "\n".join(texts) if texts else None

    def extract_finish_reason(self, body: Body) -> Optional[str]:
        return non_empty_str(body.get("finish_reason"))


class EmbedHandler(ProviderHandler):
    endpoints = ("/v2/embed",)
    model_type = ModelType.EMBEDDING
    capabilities = HandlerCapabilities(matches_response_shape=True)

    def matches_response(self, body: Body) -> bool:
        return "embeddings" in body and "meta" in body

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        return Metrics(tokens=TokenMetrics(prompt_tokens=int_or_zero(dig(body, "meta", "billed_units", "input_tokens"))))

    def extract_response_text(self, body: Body) -> Optional[str]:
        texts = body.get("texts")
        return f"[embeddings: {len(texts)} items]" if isinstance(texts, list) else None


class RerankHandler(ProviderHandler):
    """Rerank is billed per search unit, not per token."""

    endpoints = ("/v2/rerank",)
    model_type = ModelType.TEXT
    capabilities = HandlerCapabilities(matches_response_shape=True)

    def matches_response(self, body: Body) -> bool:
        return "results" in body and dig(body, "meta", "billed_units", "search_units") is not None

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        return Metrics(search_count=coerce_int(dig(body, "meta", "billed_units", "search_units")))

    def extract_response_text(self, body: Body) -> Optional[str]:
        results = body.get("results")
        return f"[rerank: {len(results)} results]" if isinstance(results, list) else None


__all__ = ["ChatHandler", "EmbedHandler", "RerankHandler"]
