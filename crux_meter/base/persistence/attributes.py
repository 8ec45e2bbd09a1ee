"""
Flat attribute record handed to the persistence boundary.

``build_attributes`` flattens a completed, priced :class:`RequestContext`
into plain JSON-friendly values. Costs are cents; ``model`` is the catalog
display name when the catalog knows the model, with the provider-declared
point release kept in ``snapshot``.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from ..constants import STANDARD_TIER
from ..models_parts.request_context import RequestContext
from ..pricing.catalog import PricingCatalog
from ..processing.sanitize import sanitize_for_json
from ..utils import coerce_float


def apply_provider_latency(context: RequestContext) -> None:
    """Use provider-side ``completed_at - created_at`` as latency when both are present.

    Long-running jobs (video generation) are polled; the poll latency says
    nothing about generation time.
    """
    response = context.response
    if not isinstance(response, Mapping):
        return
    created = coerce_float(response.get("created_at"))
    completed = coerce_float(response.get("completed_at"))
    if created is None or completed is None or completed < created:
        return
    context.latency_ms = int((completed - created) * 1000)


def build_attributes(
    context: RequestContext,
    catalog: Optional[PricingCatalog] = None,
    default_tier: str = STANDARD_TIER,
) -> Dict[str, Any]:
    apply_provider_latency(context)
    display = catalog.display_name(context.provider, context.model) if catalog is not None else None
    return {
        "id": context.id,
        "trace_id": context.trace_id,
        "span_id": context.span_id,
        "parent_span_id": context.parent_span_id,
        "response_id": context.response_id,
        "provider": context.provider,
        "model": display or context.model,
        "snapshot": context.snapshot,
        "model_type": context.model_type.value if context.model_type is not None else None,
        "endpoint": context.endpoint,
        "operation": context.operation,
        "pricing_tier": context.pricing_tier or default_tier,
        "trackable_type": context.trackable_type,
        "trackable_id": context.trackable_id,
        "request": sanitize_for_json(context.request_data) if context.request_data else None,
        "response": sanitize_for_json(context.response),
        "prompt_tokens": context.prompt_tokens,
        "completion_tokens": context.completion_tokens,
        "cached_tokens": context.cached_tokens,
        "reasoning_tokens": context.reasoning_tokens,
        "cache_creation_tokens": context.cache_creation_tokens,
        "finish_reason": context.finish_reason,
        "has_tool_calls": context.has_tool_calls,
        "tool_call_counts": dict(context.tool_call_counts) or None,
        "duration_seconds": context.duration_seconds,
        "input_characters": context.input_characters,
        "image_count": context.image_count,
        "video_count": context.video_count,
        "search_count": context.search_count,
        "expires_at": context.expires_at,
        "prompt_cost": context.prompt_cost,
        "completion_cost": context.completion_cost,
        "total_cost_in_cents": context.total_cost,
        "currency": context.currency,
        "latency_ms": context.latency_ms,
        "time_to_first_token_ms": context.time_to_first_token_ms,
        "tokens_per_second": context.tokens_per_second,
        "is_reasoning": context.is_reasoning,
        "reasoning_effort": context.reasoning_effort,
        "is_streaming": context.is_streaming,
        "status_code": context.http_status,
        "error_type": context.error_type,
        "error_message": context.error_message,
        "error_code": context.error_code,
        "media_storage_path": list(context.media_storage_path) if context.media_storage_path else None,
        "metadata": dict(context.metadata) or None,
        "created_at": context.started_at,
        "completed_at": context.completed_at,
    }


__all__ = ["apply_provider_latency", "build_attributes"]
