"""Metering facade.

Purpose
-------
``Meter`` ties the pipeline together: it allocates request contexts, hands
responses to the :class:`ResponseProcessor`, prices completed contexts with
the :class:`CostCalculator` and writes the flat attribute record to a
:class:`RecordSink`. It also satisfies the ``StreamRecorder`` protocol that
:class:`StreamingTracker` records through.

Typical usage::

    meter = get_meter()
    result = meter.track("openai", "gpt-4o", lambda ctx: client.chat(...))

    tracker = meter.stream(provider="anthropic")
    for text in tracker.track(events):
        forward(text)
    tracker.finish()

Globals
-------
Tags, metadata, trace id, pricing tier and trackable reference set on the
facade are applied to every context started afterwards. Per-request options
passed to :meth:`Meter.start_request` win over globals.

Pending stream context
----------------------
Transport integrations that detect a streamed response park the already
started context with :meth:`Meter.set_pending_stream_context`; the next
tracker initialized in the same execution context consumes it. Storage is a
``ContextVar`` so concurrent requests on different threads or tasks never see
each other's pending context.

Failure semantics
-----------------
Recording never raises into the caller: sink failures are logged as
``meter.sink.failed`` and yield ``None``. :meth:`Meter.track` re-raises the
wrapped callable's exception after recording it.
"""

from __future__ import annotations

import logging
import threading
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, TypeVar

from .base.constants import UNKNOWN_MODEL
from .base.factory import build_default_registry
from .base.handlers.registry import HandlerRegistry
from .base.log_support import LogContext
from .base.logging import get_logger, log_event, normalized_log_event
from .base.media.store import LocalMediaStore, MediaStore
from .base.models_parts.request_context import RequestContext
from .base.models_parts.token_metrics import TokenMetrics
from .base.persistence.attributes import build_attributes
from .base.persistence.sinks import LoggingRecordSink, RecordSink
from .base.pricing.catalog import PricingCatalog, get_default_catalog
from .base.pricing.cost_calculator import CostCalculator
from .base.processing.response_processor import ResponseProcessor
from .base.streaming.tracker import StreamingTracker
from .config import MeterSettings, get_meter_settings

logger = get_logger("meter.requests")

T = TypeVar("T")

_PENDING_STREAM: ContextVar[Optional[RequestContext]] = ContextVar("meter_pending_stream", default=None)
_CURRENT: ContextVar[Optional[RequestContext]] = ContextVar("meter_current_context", default=None)


@dataclass
class _Globals:
    tags: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    trace_id: Optional[str] = None
    pricing_tier: Optional[str] = None
    trackable_type: Optional[str] = None
    trackable_id: Optional[str] = None


def _usage_is_empty(usage: Any) -> bool:
    if usage is None:
        return True
    if isinstance(usage, TokenMetrics):
        return usage.is_empty()
    if isinstance(usage, Mapping):
        return not usage
    return False


class Meter:
    """Records generative-AI calls as priced usage records.

    Parameters
    ----------
    settings:
        Resolved settings; defaults to :func:`get_meter_settings`.
    registry:
        Handler registry; defaults to every built-in provider plus the
        configured custom hosts.
    catalog:
        Pricing catalog; defaults to ``settings.catalog_path`` or the
        packaged catalog.
    sink:
        Persistence boundary; defaults to :class:`LoggingRecordSink`.
    media_store:
        Media persistence; defaults to a :class:`LocalMediaStore` under
        ``settings.media_path`` when media storage is enabled.
    """

    def __init__(
        self,
        *,
        settings: Optional[MeterSettings] = None,
        registry: Optional[HandlerRegistry] = None,
        catalog: Optional[PricingCatalog] = None,
        calculator: Optional[CostCalculator] = None,
        processor: Optional[ResponseProcessor] = None,
        sink: Optional[RecordSink] = None,
        media_store: Optional[MediaStore] = None,
    ) -> None:
        self.settings = settings if settings is not None else get_meter_settings()
        self.registry = registry if registry is not None else build_default_registry(self.settings)
        if catalog is None:
            catalog = (
                PricingCatalog.from_directory(self.settings.catalog_path)
                if settings is not None and self.settings.catalog_path
                else get_default_catalog()
            )
        self.catalog = catalog
        if calculator is None:
            calculator = CostCalculator(self.catalog, self.settings.default_tiers)
        self.calculator = calculator
        if media_store is None and self.settings.media_enabled:
            media_store = LocalMediaStore(self.settings.media_path)
        if processor is None:
            processor = ResponseProcessor(
                self.registry,
                self.catalog,
                media_store=media_store,
                media_enabled=self.settings.media_enabled,
                store_embeddings=self.settings.store_embeddings,
            )
        self.processor = processor
        self.sink: RecordSink = sink if sink is not None else LoggingRecordSink()
        self._enabled = self.settings.enabled
        self._globals = _Globals()
        self._lock = threading.Lock()

    # ---- switches -------------------------------------------------------
    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> "Meter":
        self._enabled = True
        return self

    def disable(self) -> "Meter":
        self._enabled = False
        return self

    # ---- lifecycle ------------------------------------------------------
    def start_request(self, provider: str, model: Optional[str] = UNKNOWN_MODEL, **options: Any) -> RequestContext:
        """Allocate the context for a call that is about to be made.

        ``options`` may carry ``tags``, ``metadata``, ``trace_id``,
        ``pricing_tier``, ``trackable_type``/``trackable_id`` plus any other
        :class:`RequestContext` field (``endpoint``, ``request_data``, ...).
        """
        with self._lock:
            snapshot = _Globals(
                tags=list(self._globals.tags),
                metadata=dict(self._globals.metadata),
                trace_id=self._globals.trace_id,
                pricing_tier=self._globals.pricing_tier,
                trackable_type=self._globals.trackable_type,
                trackable_id=self._globals.trackable_id,
            )
        tags = snapshot.tags + list(options.pop("tags", None) or ())
        metadata = {**snapshot.metadata, **dict(options.pop("metadata", None) or {})}
        tier = options.pop("pricing_tier", None) or snapshot.pricing_tier
        trackable_type = options.pop("trackable_type", None) or snapshot.trackable_type
        trackable_id = options.pop("trackable_id", None)
        if trackable_id is None:
            trackable_id = snapshot.trackable_id
        trace_id = options.pop("trace_id", None) or snapshot.trace_id

        context = RequestContext(
            provider=provider,
            model=model or UNKNOWN_MODEL,
            trace_id=trace_id,
            metadata=metadata,
            **options,
        )
        for tag in tags:
            context.add_tag(tag)
        if trackable_type is not None or trackable_id is not None:
            context.for_trackable(trackable_type, trackable_id)
        context.with_pricing_tier(tier)
        _CURRENT.set(context)
        return context

    def record_success(self, context: RequestContext, response: Any, usage: Any = None) -> Any:
        """Process ``response``, price the context and write its record.

        Explicit ``usage`` wins over what the processor extracted unless it is
        empty. Returns the sink's handle, or ``None`` when the response was
        skipped (a pending async job) or metering is disabled.
        """
        if not self._enabled:
            return None
        processed = self.processor.process_response(context, response)
        if processed is None:
            return None
        body, processed_usage = processed
        if _usage_is_empty(usage):
            usage = processed_usage
        context.complete(body, usage)
        return self._persist(context, "meter.request.recorded", logging.INFO)

    def record_failure(
        self,
        context: RequestContext,
        exc: BaseException,
        http_status: Optional[int] = None,
    ) -> Any:
        """Mark ``context`` failed and write its record with any partial usage."""
        if not self._enabled:
            return None
        context.fail(exc, http_status)
        return self._persist(context, "meter.request.failed", logging.WARNING)

    def track(self, provider: str, model: Optional[str], fn: Callable[[RequestContext], T], **options: Any) -> T:
        """Run ``fn(context)`` and record its result (or its exception)."""
        if not self._enabled:
            return fn(RequestContext(provider=provider, model=model or UNKNOWN_MODEL))
        context = self.start_request(provider, model, **options)
        try:
            result = fn(context)
        except Exception as exc:
            self.record_failure(context, exc)
            raise
        self.record_success(context, result)
        return result

    def stream(self, provider: Optional[str] = None, model: Optional[str] = None, **options: Any) -> StreamingTracker:
        """Tracker for a streamed call; provider and model may be sniffed from the stream."""
        return StreamingTracker(self, provider, model, **options)

    def _persist(self, context: RequestContext, event: str, level: int) -> Any:
        if self.settings.costs_enabled:
            self.calculator.price_context(context)
        elif context.pricing_tier is None:
            context.pricing_tier = self.calculator.resolve_tier(context.provider, None)
        attributes = build_attributes(context, self.catalog, self.calculator.default_tier(context.provider))
        try:
            handle = self.sink.record(attributes, tuple(context.tags))
        except Exception as exc:  # persistence must never fail the tracked call
            log_event(
                logger,
                "meter.sink.failed",
                LogContext.for_request(context),
                error=f"{type(exc).__name__}: {exc}",
                level=logging.ERROR,
            )
            return None
        normalized_log_event(
            logger,
            event,
            LogContext.for_request(context),
            phase="persist",
            error_code=context.error_code,
            tokens=context.usage(),
            level=level,
            endpoint=context.endpoint,
            model_type=attributes.get("model_type"),
            pricing_tier=context.pricing_tier,
            total_cost_in_cents=context.total_cost,
            latency_ms=context.latency_ms,
            status_code=context.http_status,
            streaming=context.is_streaming or None,
        )
        return handle

    # ---- globals --------------------------------------------------------
    def add_global_tags(self, tags: Iterable[str]) -> "Meter":
        with self._lock:
            for tag in tags:
                if tag and tag not in self._globals.tags:
                    self._globals.tags.append(tag)
        return self

    def with_metadata(self, metadata: Mapping[str, Any]) -> "Meter":
        with self._lock:
            self._globals.metadata.update(metadata)
        return self

    def with_trace_id(self, trace_id: Optional[str]) -> "Meter":
        with self._lock:
            self._globals.trace_id = trace_id
        return self

    def with_pricing_tier(self, tier: Optional[str]) -> "Meter":
        with self._lock:
            self._globals.pricing_tier = tier
        return self

    def for_trackable(self, trackable_type: Optional[str], trackable_id: Any = None) -> "Meter":
        with self._lock:
            self._globals.trackable_type = trackable_type
            self._globals.trackable_id = None if trackable_id is None else str(trackable_id)
        return self

    def clear_globals(self) -> "Meter":
        with self._lock:
            self._globals = _Globals()
        return self

    # ---- execution-context state -------------------------------------
    def current_context(self) -> Optional[RequestContext]:
        """Context most recently started in this thread or task."""
        return _CURRENT.get()

    def set_pending_stream_context(self, context: RequestContext) -> None:
        _PENDING_STREAM.set(context)

    def consume_pending_stream_context(self) -> Optional[RequestContext]:
        context = _PENDING_STREAM.get()
        if context is not None:
            _PENDING_STREAM.set(None)
        return context


_DEFAULT_METER: Optional[Meter] = None
_DEFAULT_LOCK = threading.Lock()


def get_meter() -> Meter:
    """Return the process-wide meter, building it from settings on first use."""
    global _DEFAULT_METER
    if _DEFAULT_METER is None:
        with _DEFAULT_LOCK:
            if _DEFAULT_METER is None:
                _DEFAULT_METER = Meter()
    return _DEFAULT_METER


def set_meter(meter: Optional[Meter]) -> None:
    """Replace (or with ``None`` reset) the process-wide meter."""
    global _DEFAULT_METER
    with _DEFAULT_LOCK:
        _DEFAULT_METER = meter


__all__ = ["Meter", "get_meter", "set_meter"]
