"""
Response processor: one-shot extraction of every metric from a response.

Purpose
-------
Resolve the handler for a response, pull usage, media, tool-call and
reasoning signals out of the body into the :class:`RequestContext`, and
return a body safe to store. Streaming reconstruction delegates here for
terminal payloads so both transport modes share one extraction path.

Idempotence
-----------
``context.processed`` gates every side effect (tool-call tally, media storage,
model reconciliation). A second call on a processed context returns the usage
derived the first time and does nothing else.

Failure modes
-------------
Extraction never raises: handler hooks are called through a guard that logs
``meter.extract.failed`` at DEBUG and substitutes a neutral value. A
malformed body is processed as ``{}``.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, TypeVar

from ..constants import UNKNOWN_MODEL
from ..handlers.handler import ProviderHandler
from ..handlers.provider import Provider
from ..handlers.registry import HandlerRegistry
from ..log_support.logging_context import LogContext
from ..logging import get_logger, log_event
from ..media.audio import extract_audio_duration
from ..media.store import MediaStore
from ..models_parts.metrics import Metrics
from ..models_parts.model_type import ModelType
from ..models_parts.request_context import RequestContext
from ..models_parts.token_metrics import TokenMetrics
from ..pricing.catalog import PricingCatalog
from ..utils import first_present, int_or_zero, non_empty_str, to_mapping
from .reasoning import extract_reasoning_effort, has_reasoning_output
from .sanitize import strip_binary_data, strip_embeddings
from .tool_calls import count_tool_calls, finish_reason_implies_tool_calls

logger = get_logger("meter.processor")

T = TypeVar("T")

ProcessResult = Tuple[Dict[str, Any], TokenMetrics]

REQUEST_DATA_KEY = "_request_data"


def usage_fallback(body: Any) -> TokenMetrics:
    """Generic usage read from a top-level ``usage`` object."""
    usage = body.get("usage") if isinstance(body, Mapping) else None
    if not isinstance(usage, Mapping):
        return TokenMetrics()
    return TokenMetrics(
        prompt_tokens=int_or_zero(first_present(usage, "prompt_tokens", "input_tokens")),
        completion_tokens=int_or_zero(first_present(usage, "completion_tokens", "output_tokens")),
        cached_tokens=int_or_zero(first_present(usage, "cached_tokens", "cache_read_input_tokens")),
    )


class ResponseProcessor:
    """Apply a resolved handler to a response body and fill the context.

    Parameters
    ----------
    registry:
        Handler registry used for provider lookup and handler resolution.
    catalog:
        Pricing catalog; consulted for the model type when no handler
        declares one.
    media_store:
        Destination for generated media. ``None`` disables media storage.
    media_enabled:
        Operator switch; media is only stored when this is true and a store
        is configured.
    store_embeddings:
        Keep embedding vectors in the returned body instead of stripping them.
    audio_duration:
        Boundary returning the duration of raw audio bytes or ``None``.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        catalog: Optional[PricingCatalog] = None,
        *,
        media_store: Optional[MediaStore] = None,
        media_enabled: bool = False,
        store_embeddings: bool = False,
        audio_duration: Callable[[Optional[bytes]], Optional[float]] = extract_audio_duration,
    ) -> None:
        self.registry = registry
        self.catalog = catalog
        self.media_store = media_store
        self.media_enabled = media_enabled
        self.store_embeddings = store_embeddings
        self._audio_duration = audio_duration

    # ---- public API -----------------------------------------------------
    def process_response(self, context: RequestContext, response: Any) -> Optional[ProcessResult]:
        """Normalize an SDK object, JSON text or mapping, then :meth:`process` it."""
        return self.process(context, to_mapping(response))

    def process(self, context: RequestContext, body: Any) -> Optional[ProcessResult]:
        """Extract everything from ``body`` into ``context``.

        Returns ``(sanitized_body, usage)``, or ``None`` when the handler says
        the response must not be recorded (an async job still pending).
        """
        body = dict(body) if isinstance(body, Mapping) else {}
        if context.processed:
            return body, context.processed_usage or usage_fallback(body)

        provider = self.registry.provider(context.provider)
        handler = self._guard(
            lambda: self.registry.resolve(context.provider, context.endpoint, body), None, context, "resolve"
        )

        if handler is not None and handler.capabilities.skips_response:
            if self._guard(lambda: handler.should_skip_response(body), False, context, "should_skip"):
                log_event(
                    logger,
                    "meter.response.skipped",
                    LogContext.for_request(context),
                    handler=handler.name,
                    level=logging.DEBUG,
                )
                return None

        self._reconcile_model(context, provider, handler, body)

        if context.pricing_tier is None and handler is not None and handler.capabilities.pricing_tier_from_response:
            context.with_pricing_tier(
                self._guard(lambda: handler.extract_pricing_tier_from_response(body), None, context, "tier")
            )

        metrics: Metrics = Metrics()
        if handler is not None:
            metrics = self._guard(
                lambda: handler.extract_metrics(context.request_data, body), Metrics(), context, "metrics"
            )
        usage = metrics.tokens if metrics.tokens is not None else usage_fallback(body)

        finish_reason = None
        if handler is not None:
            finish_reason = self._guard(lambda: handler.extract_finish_reason(body), None, context, "finish_reason")
        if finish_reason is None:
            finish_reason = _generic_finish_reason(body)
        context.finish_reason = finish_reason or context.finish_reason

        self._tally_tool_calls(context, body, finish_reason)
        self._apply_metrics(context, metrics)

        if (
            handler is not None
            and handler.capabilities.binary_response
            and handler.model_type is ModelType.TTS
            and context.duration_seconds is None
            and context.raw_response_body
        ):
            context.duration_seconds = self._guard(
                lambda: self._audio_duration(context.raw_response_body), None, context, "audio_duration"
            )

        if handler is not None and handler.capabilities.has_expiration:
            context.expires_at = self._guard(lambda: handler.extract_expires_at(body), None, context, "expires_at")

        if handler is not None and handler.capabilities.has_media:
            self._store_media(context, handler, body)

        if context.model_type is None:
            context.model_type = self._resolve_model_type(context, provider, handler)

        if context.response_id is None and provider is not None:
            context.response_id = provider.extract_response_id(body)

        if context.reasoning_effort is None:
            context.reasoning_effort = extract_reasoning_effort(context.request_data, body)
        if usage.reasoning_tokens > 0 or context.reasoning_tokens > 0:
            context.is_reasoning = True
        elif not context.is_reasoning:
            context.is_reasoning = context.reasoning_effort is not None or has_reasoning_output(body)

        context.processed = True
        context.processed_usage = usage

        sanitized = strip_binary_data(body)
        if context.model_type is ModelType.EMBEDDING and not self.store_embeddings:
            sanitized = strip_embeddings(sanitized)
        sanitized["finish_reason"] = finish_reason
        return sanitized, usage

    # ---- steps ------------------------------------------------------------
    def _reconcile_model(
        self,
        context: RequestContext,
        provider: Optional[Provider],
        handler: Optional[ProviderHandler],
        body: Dict[str, Any],
    ) -> None:
        declared = None
        if handler is not None:
            declared = self._guard(lambda: handler.extract_model(body), None, context, "model")
        if declared is None and provider is not None:
            declared = provider.extract_model(body)
        if declared is None:
            declared = non_empty_str(body.get("model"))

        if declared and declared != context.model:
            if context.model == UNKNOWN_MODEL:
                context.model = declared
            else:
                context.snapshot = declared

        if context.model == UNKNOWN_MODEL:
            requested = None
            if handler is not None and handler.capabilities.extracts_model_from_request:
                requested = self._guard(
                    lambda: handler.extract_model_from_request(context.request_data, context.endpoint),
                    None,
                    context,
                    "request_model",
                )
            if requested is None and provider is not None:
                requested = provider.extract_model_from_request(context.request_data, context.endpoint)
            if requested is None:
                requested = non_empty_str((context.request_data or {}).get("model"))
            if requested:
                context.model = requested

    @staticmethod
    def _tally_tool_calls(context: RequestContext, body: Dict[str, Any], finish_reason: Optional[str]) -> None:
        counts = count_tool_calls(body)
        if counts:
            context.has_tool_calls = True
            context.tool_call_counts = counts
        elif not context.has_tool_calls:
            context.has_tool_calls = finish_reason_implies_tool_calls(finish_reason)

    @staticmethod
    def _apply_metrics(context: RequestContext, metrics: Metrics) -> None:
        if metrics.image is not None:
            context.image_count = metrics.image.count
        if metrics.audio is not None:
            if metrics.audio.duration_seconds is not None:
                context.duration_seconds = metrics.audio.duration_seconds
            if metrics.audio.input_characters is not None:
                context.input_characters = metrics.audio.input_characters
        if metrics.video is not None:
            context.video_count = metrics.video.count
            if metrics.video.duration_seconds is not None:
                context.duration_seconds = metrics.video.duration_seconds
        if metrics.search_count is not None:
            context.search_count = metrics.search_count
        if metrics.tokens is not None and metrics.tokens.reasoning_tokens:
            context.reasoning_tokens = metrics.tokens.reasoning_tokens

    def _store_media(self, context: RequestContext, handler: ProviderHandler, body: Dict[str, Any]) -> None:
        if not self.media_enabled or self.media_store is None:
            return
        media_body: Dict[str, Any] = body
        if handler.capabilities.binary_response and context.request_data:
            media_body = {**body, REQUEST_DATA_KEY: context.request_data}
        try:
            paths: List[str] = handler.store_media(context.id, media_body, context.raw_response_body, self.media_store)
        except Exception as exc:  # storage must never fail the tracked call
            log_event(
                logger,
                "meter.media.store_failed",
                LogContext.for_request(context),
                handler=handler.name,
                error=str(exc),
                level=logging.WARNING,
            )
            paths = []
        if paths:
            context.media_storage_path = list(paths)
        context.raw_response_body = None

    def _resolve_model_type(
        self,
        context: RequestContext,
        provider: Optional[Provider],
        handler: Optional[ProviderHandler],
    ) -> Optional[ModelType]:
        if handler is not None and handler.model_type is not None:
            return handler.model_type
        if provider is not None:
            resolved = provider.resolve_model_type(context.endpoint, context.request_data)
            if resolved is not None:
                return resolved
        if self.catalog is not None:
            definition = self.catalog.model(context.provider, context.model)
            if definition is not None:
                return definition.request_model_type()
        return None

    @staticmethod
    def _guard(fn: Callable[[], T], default: T, context: RequestContext, step: str) -> T:
        try:
            return fn()
        except Exception as exc:  # extraction must never crash the caller
            log_event(
                logger,
                "meter.extract.failed",
                LogContext.for_request(context),
                step=step,
                error=f"{type(exc).__name__}: {exc}",
                level=logging.DEBUG,
            )
            return default


def _generic_finish_reason(body: Mapping[str, Any]) -> Optional[str]:
    value = first_present(
        body,
        ("choices", 0, "finish_reason"),
        "stop_reason",
        ("candidates", 0, "finishReason"),
        "finish_reason",
        "done_reason",
    )
    return value if isinstance(value, str) else None


__all__ = ["ResponseProcessor", "ProcessResult", "usage_fallback", "REQUEST_DATA_KEY"]
