"""Ollama native API handlers (``/api/*``)."""

from __future__ import annotations

from typing import Optional

from ..base.handlers.capabilities import HandlerCapabilities
from ..base.handlers.handler import Body, ProviderHandler
from ..base.models_parts.metrics import Metrics
from ..base.models_parts.model_type import ModelType
from ..base.models_parts.token_metrics import TokenMetrics
from ..base.utils import as_list, dig, int_or_zero, non_empty_str
from .stream_helpers import OLLAMA_CHAT_STREAM


class ChatHandler(ProviderHandler):
    endpoints = ("/api/chat", "/api/generate")
    model_type = ModelType.TEXT
    capabilities = HandlerCapabilities(
        streams_response=True,
        matches_response_shape=True,
        extracts_model_from_response=True,
    )
    stream_handler = OLLAMA_CHAT_STREAM

    def matches_response(self, body: Body) -> bool:
        return "model" in body and ("done" in body or "message" in body)

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        return Metrics(
            tokens=TokenMetrics(
                prompt_tokens=int_or_zero(body.get("prompt_eval_count")),
                completion_tokens=int_or_zero(body.get("eval_count")),
            )
        )

    def extract_response_text(self, body: Body) -> Optional[str]:
        response = body.get("response")
        if isinstance(response, str):
            return response
        content = dig(body, "message", "content")
        return content if isinstance(content, str) else None

    def extract_finish_reason(self, body: Body) -> Optional[str]:
        return non_empty_str(body.get("done_reason"))


class EmbeddingHandler(ProviderHandler):
    """``/api/embed`` (batched, reports tokens) and the legacy ``/api/embeddings``."""

    endpoints = ("/api/embed", "/api/embeddings")
    model_type = ModelType.EMBEDDING
    capabilities = HandlerCapabilities(matches_response_shape=True, extracts_model_from_response=True)

    def matches_response(self, body: Body) -> bool:
        return "model" in body and "embeddings" in body

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        return Metrics(tokens=TokenMetrics(prompt_tokens=int_or_zero(body.get("prompt_eval_count"))))

    def extract_response_text(self, body: Body) -> Optional[str]:
        embeddings = body.get("embeddings")
        if isinstance(embeddings, list):
            dimensions = len(as_list(embeddings[0])) if embeddings else 0
            return f"[embedding: {len(embeddings)} vectors, {dimensions} dimensions]"
        vector = body.get("embedding")
        if isinstance(vector, list):
            return f"[embedding: {len(vector)} dimensions]"
        return None


__all__ = ["ChatHandler", "EmbeddingHandler"]
