"""
In-flight accumulator for exactly one external AI call.

Purpose
-------
``RequestContext`` is created when a call begins, mutated by the response
processor and streaming tracker, and handed once to the persistence boundary.
It is owned by the invoking call stack and never shared across concurrent
calls or reused afterwards.

Notes
-----
- ``processed`` guards the one-shot extraction side effects (tool-call
  tallying, media storage, model reconciliation). Only the response processor
  sets it.
- Latency is measured with ``time.perf_counter`` from construction; the wall
  clock timestamps are informational.
- Costs are cent-valued floats; no rounding happens here.
"""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from ..constants import DEFAULT_CURRENCY, UNKNOWN_MODEL
from ..errors_parts.classification import classify_exception, extract_http_status
from .model_type import ModelType
from .token_metrics import TokenMetrics


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _perf_now() -> float:
    return time.perf_counter()


@dataclass
class RequestContext:
    """Mutable record of one tracked request.

    Fields group into identity, classification, usage, economics, timing,
    outcome and enrichment; see the flat attribute builder in
    ``crux_meter.base.persistence`` for the persisted view.
    """

    provider: str
    model: str = UNKNOWN_MODEL
    # identity
    id: str = field(default_factory=_new_id)
    trace_id: Optional[str] = None
    span_id: Optional[str] = None
    parent_span_id: Optional[str] = None
    # classification
    snapshot: Optional[str] = None
    model_type: Optional[ModelType] = None
    endpoint: Optional[str] = None
    operation: Optional[str] = None
    request_data: Dict[str, Any] = field(default_factory=dict)
    response: Any = None
    response_id: Optional[str] = None
    # usage
    prompt_tokens: int = 0
    completion_tokens: int = 0
    cached_tokens: int = 0
    reasoning_tokens: int = 0
    cache_creation_tokens: int = 0
    duration_seconds: Optional[float] = None
    input_characters: Optional[int] = None
    image_count: Optional[int] = None
    video_count: Optional[int] = None
    search_count: Optional[int] = None
    has_tool_calls: bool = False
    tool_call_counts: Dict[str, int] = field(default_factory=dict)
    is_reasoning: bool = False
    reasoning_effort: Optional[str] = None
    # economics
    prompt_cost: float = 0.0
    completion_cost: float = 0.0
    total_cost: float = 0.0
    currency: str = DEFAULT_CURRENCY
    pricing_tier: Optional[str] = None
    # timing
    started_at: datetime = field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None
    latency_ms: Optional[int] = None
    time_to_first_token_ms: Optional[int] = None
    tokens_per_second: Optional[float] = None
    is_streaming: bool = False
    # outcome
    http_status: Optional[int] = None
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    finish_reason: Optional[str] = None
    expires_at: Optional[datetime] = None
    media_storage_path: Optional[List[str]] = None
    raw_response_body: Optional[bytes] = None
    processed: bool = False
    processed_usage: Optional[TokenMetrics] = None
    # enrichment
    tags: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    trackable_type: Optional[str] = None
    trackable_id: Optional[str] = None
    _t0: float = field(default_factory=_perf_now, repr=False, compare=False)

    def elapsed_ms(self) -> int:
        """Milliseconds since the context was created."""
        return max(0, int((time.perf_counter() - self._t0) * 1000))

    def with_pricing_tier(self, tier: Optional[str]) -> "RequestContext":
        if tier:
            self.pricing_tier = tier
        return self

    def set_usage(self, usage: Union[TokenMetrics, Mapping[str, Any], None]) -> "RequestContext":
        """Apply token usage.

        Reasoning tokens are only overwritten by a non-zero value so a count
        captured earlier (e.g. from a stream) survives a usage mapping that
        omits it. Tokens per second is derived only for streamed calls with a
        known time to first token.
        """
        metrics = TokenMetrics.from_usage(usage)
        self.prompt_tokens = metrics.prompt_tokens
        self.completion_tokens = metrics.completion_tokens
        self.cached_tokens = metrics.cached_tokens
        self.cache_creation_tokens = metrics.cache_creation_tokens
        if metrics.reasoning_tokens:
            self.reasoning_tokens = metrics.reasoning_tokens
        if self.reasoning_tokens > 0:
            self.is_reasoning = True
        if (
            self.is_streaming
            and self.time_to_first_token_ms is not None
            and self.latency_ms
            and self.completion_tokens > 0
        ):
            generation_ms = max(1, self.latency_ms - self.time_to_first_token_ms)
            self.tokens_per_second = round(self.completion_tokens / generation_ms * 1000, 2)
        return self

    def complete(self, response: Any, usage: Union[TokenMetrics, Mapping[str, Any], None] = None) -> "RequestContext":
        """Mark the call successful and apply final usage."""
        self.completed_at = _utcnow()
        self.latency_ms = self.elapsed_ms()
        if self.http_status is None:
            self.http_status = 200
        self.response = response
        self.set_usage(usage)
        return self

    def fail(self, exc: BaseException, http_status: Optional[int] = None) -> "RequestContext":
        """Mark the call failed, keeping whatever usage was accumulated."""
        self.completed_at = _utcnow()
        self.latency_ms = self.elapsed_ms()
        self.error_type = type(exc).__name__
        self.error_message = str(exc)
        self.error_code = classify_exception(exc).value
        self.http_status = http_status if http_status is not None else extract_http_status(exc)
        return self

    def add_tag(self, tag: str) -> "RequestContext":
        if tag and tag not in self.tags:
            self.tags.append(tag)
        return self

    def add_metadata(self, key: str, value: Any) -> "RequestContext":
        self.metadata[key] = value
        return self

    def for_trackable(self, trackable_type: Optional[str], trackable_id: Any = None) -> "RequestContext":
        self.trackable_type = trackable_type
        self.trackable_id = None if trackable_id is None else str(trackable_id)
        return self

    @property
    def failed(self) -> bool:
        return self.error_type is not None

    def usage(self) -> TokenMetrics:
        return TokenMetrics(
            prompt_tokens=self.prompt_tokens,
            completion_tokens=self.completion_tokens,
            cached_tokens=self.cached_tokens,
            reasoning_tokens=self.reasoning_tokens,
            cache_creation_tokens=self.cache_creation_tokens,
        )


__all__ = ["RequestContext"]
