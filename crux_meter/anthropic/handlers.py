"""Anthropic Messages API handler."""

from __future__ import annotations

from typing import List, Optional

from ..base.handlers.capabilities import HandlerCapabilities
from ..base.handlers.handler import Body, ProviderHandler
from ..base.models_parts.metrics import Metrics
from ..base.models_parts.model_type import ModelType
from ..base.models_parts.token_metrics import TokenMetrics
from ..base.utils import as_dict, as_list, dig, first_present, int_or_zero, non_empty_str
from .stream_helpers import ANTHROPIC_MESSAGE_STREAM

_ACCOUNT_DEFAULT_TIERS = frozenset({"default", "auto", "standard"})


def map_service_tier(service_tier: object) -> Optional[str]:
    """``usage.service_tier`` to a catalog tier; account defaults map to ``None``."""
    tier = non_empty_str(service_tier)
    if tier is None or tier in _ACCOUNT_DEFAULT_TIERS:
        return None
    return tier


class MessageHandler(ProviderHandler):
    endpoints = ("/v1/messages",)
    model_type = ModelType.TEXT
    capabilities = HandlerCapabilities(
        streams_response=True,
        matches_response_shape=True,
        pricing_tier_from_response=True,
        extracts_model_from_response=True,
    )
    stream_handler = ANTHROPIC_MESSAGE_STREAM

    def matches_response(self, body: Body) -> bool:
        return body.get("type") == "message" or ("content" in body and "stop_reason" in body)

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        usage = as_dict(body.get("usage"))
        return Metrics(
            tokens=TokenMetrics(
                prompt_tokens=int_or_zero(first_present(usage, "input_tokens", "prompt_tokens")),
                completion_tokens=int_or_zero(first_present(usage, "output_tokens", "completion_tokens")),
                cached_tokens=int_or_zero(usage.get("cache_read_input_tokens")),
                cache_creation_tokens=int_or_zero(usage.get("cache_creation_input_tokens")),
            )
        )

    def extract_response_text(self, body: Body) -> Optional[str]:
        content = body.get("content")
        if isinstance(content, str):
            return content or None
        texts: List[str] = []
        for block in as_list(content):
            text = dig(block, "text")
            if isinstance(text, str) and text:
                texts.append(text)
        return "\n".join(texts) if texts else None

    def extract_finish_reason(self, body: Body) -> Optional[str]:
        return non_empty_str(body.get("stop_reason"))

    def extract_pricing_tier_from_response(self, body: Body) -> Optional[str]:
        return map_service_tier(dig(body, "usage", "service_tier"))


__all__ = ["MessageHandler", "map_service_tier"]
