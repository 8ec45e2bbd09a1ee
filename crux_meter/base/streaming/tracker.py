"""
Streaming tracker: incremental reconstruction of a streamed response.

Lifecycle
---------
``UNINITIALIZED`` until the first chunk arrives, ``STREAMING`` while chunks
flow, ``ERRORED`` if the source raised, ``FINISHED`` once :meth:`finish`
recorded the request. The request context is only allocated on the first
chunk so the model can be sniffed from the stream when the caller did not
name one.

Field ordering rules
--------------------
- text: concatenated in arrival order; the first non-empty fragment stamps
  time to first token
- usage: merged by the stream handler's per-provider rule
- model and response id: first non-null wins
- finish reason: last non-null wins

Errors
------
An exception raised by the source is stored, logged as
``meter.stream.error`` and re-raised. The tracker does not record anything on
its own; the caller invokes :meth:`finish`, which records the failure with
whatever partial state was accumulated. :meth:`finish` records at most once.
"""
from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol

from ..constants import UNKNOWN_MODEL
from ..handlers.registry import HandlerRegistry
from ..handlers.stream_handler import StreamHandler
from ..log_support.logging_context import LogContext
from ..logging import get_logger, log_event
from ..models_parts.request_context import RequestContext
from ..models_parts.token_metrics import TokenMetrics
from ..processing.response_processor import ResponseProcessor
from ..processing.tool_calls import finish_reason_implies_tool_calls
from .chunks import (
    GENERIC_STREAM_HANDLER,
    detect_stream_provider,
    embedded_completed_response,
    normalize_chunk,
    sniff_model,
)

logger = get_logger("meter.stream")


class StreamState(str, Enum):
    UNINITIALIZED = "uninitialized"
    STREAMING = "streaming"
    ERRORED = "errored"
    FINISHED = "finished"


class StreamRecorder(Protocol):
    """What the tracker needs from the metering facade."""

    registry: HandlerRegistry
    processor: ResponseProcessor

    def start_request(self, provider: str, model: str, **options: Any) -> RequestContext: ...

    def consume_pending_stream_context(self) -> Optional[RequestContext]: ...

    def record_success(self, context: RequestContext, response: Any, usage: Any = None) -> Any: ...

    def record_failure(self, context: RequestContext, exc: BaseException, http_status: Optional[int] = None) -> Any: ...


class StreamingTracker:
    """Track one streamed call.

    Usage::

        tracker = meter.stream(provider="openai")
        for text in tracker.track(stream):
            forward(text)
        record = tracker.finish()
    """

    def __init__(
        self,
        recorder: StreamRecorder,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        **options: Any,
    ) -> None:
        self._recorder = recorder
        self.provider = provider
        self.requested_model = model
        self._options = options
        self._state = StreamState.UNINITIALIZED
        self._context: Optional[RequestContext] = None
        self._handler: Optional[StreamHandler] = None
        self._t0 = time.perf_counter()
        self._first_token_at: Optional[float] = None
        self._parts: List[str] = []
        self._usage = TokenMetrics()
        self._finish_reason: Optional[str] = None
        self._model: Optional[str] = None
        self._response_id: Optional[str] = None
        self._error: Optional[BaseException] = None
        self._completed_response: Optional[Dict[str, Any]] = None
        self._last_chunk: Dict[str, Any] = {}
        self._result: Any = None

    # ---- state ------------------------------------------------------------
    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    @property
    def context(self) -> RequestContext:
        self._initialize()
        assert self._context is not None  # nosec B101 - set by _initialize
        return self._context

    @property
    def stream_handler(self) -> Optional[StreamHandler]:
        return self._handler

    def get_content(self) -> str:
        return "".join(self._parts)

    @property
    def usage(self) -> TokenMetrics:
        return self._usage

    @property
    def time_to_first_token_ms(self) -> Optional[int]:
        if self._first_token_at is None:
            return None
        return max(0, int((self._first_token_at - self._t0) * 1000))

    # ---- manual feeding -------------------------------------------------
    def set_usage(self, usage: Any) -> "StreamingTracker":
        """Replace accumulated usage (usage reported out of band)."""
        self._usage = TokenMetrics.from_usage(usage)
        return self

    def append_content(self, text: str) -> "StreamingTracker":
        """Append text produced outside :meth:`track` (custom stream loops)."""
        if text:
            self._stamp_first_token()
            self._parts.append(text)
        return self

    # ---- iteration --------------------------------------------------------
    def track(self, stream: Iterable[Any]) -> Iterator[str]:
        """Yield text fragments from ``stream`` as they arrive."""
        if self.provider is None:
            self.provider = detect_stream_provider(stream)
        try:
            for chunk in stream:
                data = normalize_chunk(chunk)
                if self._context is None:
                    if self.requested_model is None:
                        self.requested_model = sniff_model(data)
                    self._initialize()
                text = self._process_chunk(data)
                if text:
                    yield text
        except Exception as exc:
            self._error = exc
            self._state = StreamState.ERRORED
            log_event(
                logger,
                "meter.stream.error",
                LogContext.for_request(self._context) if self._context else None,
                error=f"{type(exc).__name__}: {exc}",
                level=logging.WARNING,
            )
            raise

    def _initialize(self) -> None:
        if self._context is not None:
            return
        pending = self._recorder.consume_pending_stream_context()
        if pending is not None:
            self._context = pending
            self._t0 = pending._t0
            self.provider = self.provider or pending.provider
            if self.requested_model is None and pending.model != UNKNOWN_MODEL:
                self.requested_model = pending.model
            if pending.model == UNKNOWN_MODEL and self.requested_model:
                pending.model = self.requested_model
        else:
            metadata = dict(self._options.pop("metadata", None) or {})
            metadata["streaming"] = True
            self._context = self._recorder.start_request(
                self.provider or "unknown",
                self.requested_model or UNKNOWN_MODEL,
                metadata=metadata,
                **self._options,
            )
            # latency and time to first token count from stream start
            self._context._t0 = self._t0
        self._context.is_streaming = True
        if self._state is StreamState.UNINITIALIZED:
            self._state = StreamState.STREAMING
        self._handler = self._resolve_stream_handler()

    def _resolve_stream_handler(self) -> Optional[StreamHandler]:
        if not self.provider:
            return None
        resolved = self._recorder.registry.resolve_stream_handler(self.provider, self._context.endpoint)
        return resolved.stream_handler if resolved is not None else None

    def _stamp_first_token(self) -> None:
        if self._first_token_at is not None:
            return
        self._first_token_at = time.perf_counter()
        if self._context is not None:
            self._context.time_to_first_token_ms = self.time_to_first_token_ms

    def _process_chunk(self, data: Dict[str, Any]) -> Optional[str]:
        self._last_chunk = data
        handler = self._handler or GENERIC_STREAM_HANDLER
        try:
            text = handler.text(data)
            self._usage = handler.usage(data, self._usage)
            reason = handler.finish_reason(data)
            model, response_id = handler.identity(data)
        except Exception:  # a malformed chunk must not break the caller's stream
            logger.debug("stream chunk extraction failed", exc_info=True)
            return None

        if text:
            self._stamp_first_token()
            self._parts.append(text)
        if reason is not None:
            self._finish_reason = reason
        if self._model is None and model:
            self._model = model
        if self._response_id is None and response_id:
            self._response_id = response_id
        embedded = embedded_completed_response(data)
        if embedded is not None:
            self._completed_response = embedded
        return text

    # ---- completion -------------------------------------------------------
    def finish(self) -> Any:
        """Record the stream once and return the recorder's result."""
        if self._state is StreamState.FINISHED:
            return self._result
        self._initialize()
        context = self._context
        if self._first_token_at is not None and context.time_to_first_token_ms is None:
            context.time_to_first_token_ms = self.time_to_first_token_ms

        self._apply_identity(context)

        if self._error is not None:
            self._state = StreamState.FINISHED
            if not self._usage.is_empty():
                context.set_usage(self._usage)
            if self._finish_reason is not None:
                context.finish_reason = self._finish_reason
            self._result = self._recorder.record_failure(context, self._error)
            return self._result

        self._state = StreamState.FINISHED
        if self._completed_response is not None:
            processed = self._recorder.processor.process(context, self._completed_response)
            if processed is not None:
                body, usage = processed
                body["streaming"] = True
                self._result = self._recorder.record_success(context, body, usage)
                return self._result

        context.finish_reason = self._finish_reason
        if self._usage.reasoning_tokens:
            context.reasoning_tokens = self._usage.reasoning_tokens
        if finish_reason_implies_tool_calls(self._finish_reason):
            context.has_tool_calls = True
        if context.model_type is None:
            self._resolve_model_type(context)

        response = {
            "id": self._response_id,
            "content": self.get_content(),
            "finish_reason": self._finish_reason,
            "model": self._model or self.requested_model or UNKNOWN_MODEL,
            "streaming": True,
        }
        self._result = self._recorder.record_success(context, response, self._usage)
        return self._result

    def _apply_identity(self, context: RequestContext) -> None:
        if self._model:
            if context.model == UNKNOWN_MODEL:
                context.model = self._model
            elif self._model != context.model:
                context.snapshot = self._model
        if self._response_id:
            context.response_id = self._response_id

    def _resolve_model_type(self, context: RequestContext) -> None:
        registry = self._recorder.registry
        provider = registry.provider(self.provider)
        if provider is None:
            return
        handler = registry.resolve(self.provider, context.endpoint, self._last_chunk or None)
        if handler is None and not context.endpoint:
            handler = registry.resolve_stream_handler(self.provider)
        if handler is not None and handler.model_type is not None:
            context.model_type = handler.model_type
        elif context.endpoint:
            context.model_type = provider.resolve_model_type(context.endpoint, context.request_data)

    def __repr__(self) -> str:
        return f"<StreamingTracker provider={self.provider!r} state={self._state.value}>"


__all__ = ["StreamingTracker", "StreamState", "StreamRecorder"]
