"""httpx transport wrapper that meters outbound AI API calls.

Purpose:
    Instrument every request sent through an ``httpx.Client`` without
    touching call sites: wrap the client's transport and each call to a
    trackable provider endpoint is recorded through a :class:`Meter`.

Usage::

    client = httpx.Client(transport=MeteredTransport())
    client.post("https://api.openai.com/v1/chat/completions", json=payload)

Behavior:
    - The provider is detected from the request host (``host:port`` first,
      then the bare host) unless one is fixed at construction.
    - Requests to hosts or paths no handler covers pass straight through.
    - Request bodies are parsed as JSON, or as the text fields of a
      ``multipart/form-data`` body (file parts skipped, first 8 KiB only).
    - Transport exceptions are recorded as failures and re-raised; HTTP
      error statuses are recorded as failures without raising.
    - Streamed responses are not read; their context is parked as the
      pending stream context for the next ``meter.stream()`` tracker.
    - Responses are never altered. Non-streamed bodies are read into memory,
      which httpx then serves to the caller unchanged.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

import httpx

from ..base.constants import UNKNOWN_MODEL
from ..base.handlers.handler import ProviderHandler
from ..base.logging import get_logger
from ..base.models_parts.request_context import RequestContext
from ..base.utils import to_mapping

logger = get_logger("meter.httpx")

MULTIPART_SCAN_BYTES = 8192
_BOUNDARY_RE = re.compile(r"boundary=(.+?)(?:;|$)")
_FIELD_NAME_RE = re.compile(r'Content-Disposition:.*?name="([^"]+)"', re.IGNORECASE)
_STREAM_CONTENT_TYPES = ("text/event-stream", "application/x-ndjson")


def parse_multipart_fields(content: bytes, content_type: str) -> Dict[str, str]:
    """Text fields of a multipart body; file uploads are skipped."""
    match = _BOUNDARY_RE.search(content_type)
    boundary = match.group(1).strip().strip('"') if match else ""
    if not boundary:
        return {}
    text = content[:MULTIPART_SCAN_BYTES].decode("utf-8", errors="replace")
    fields: Dict[str, str] = {}
    for part in text.split("--" + boundary):
        part = part.lstrip("\r\n")
        if not part or part.startswith("--") or "filename=" in part:
            continue
        name = _FIELD_NAME_RE.search(part)
        header_end = part.find("\r\n\r\n")
        if name is None or header_end < 0:
            continue
        fields[name.group(1)] = part[header_end + 4 :].rstrip("\r\n")
    return fields


def parse_request_body(request: httpx.Request) -> Dict[str, Any]:
    """Best-effort request payload as a mapping (``{}`` when unparseable)."""
    try:
        content = request.read()
    except Exception:  # unreadable or async-only request streams
        logger.debug("request body unreadable", exc_info=True)
        return {}
    if not content:
        return {}
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" in content_type:
        return parse_multipart_fields(content, content_type)
    return to_mapping(content)


class MeteredTransport(httpx.BaseTransport):
    """Synchronous httpx transport that records AI calls through a meter.

    Parameters
    ----------
    inner:
        Transport that actually sends requests (default ``httpx.HTTPTransport``).
    meter:
        Recording facade; defaults to the process-wide meter.
    provider:
        Fixed provider name. ``None`` detects the provider by host.
    default_model:
        Model recorded when neither the request nor the response names one.
    options:
        Extra :meth:`Meter.start_request` options (tags, metadata, trackable).
    """

    def __init__(
        self,
        inner: Optional[httpx.BaseTransport] = None,
        meter: Any = None,
        provider: Optional[str] = None,
        default_model: str = UNKNOWN_MODEL,
        **options: Any,
    ) -> None:
        self._inner = inner or httpx.HTTPTransport()
        self._meter = meter
        self.provider = provider
        self.default_model = default_model
        self._options = options

    @property
    def meter(self) -> Any:
        if self._meter is None:
            from ..meter import get_meter

            self._meter = get_meter()
        return self._meter

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        meter = self.meter
        if not meter.enabled:
            return self._inner.handle_request(request)
        registry = meter.registry
        provider = self._resolve_provider(request)
        path = request.url.path
        if provider is None or not registry.is_trackable_endpoint(provider, path):
            return self._inner.handle_request(request)

        context = self._start(meter, provider, request)
        try:
            response = self._inner.handle_request(request)
        except Exception as exc:
            meter.record_failure(context, exc)
            raise

        if self._is_streaming(context, response):
            meter.set_pending_stream_context(context)
            return response
        self._handle_response(meter, context, request, response)
        return response

    def close(self) -> None:
        self._inner.close()

    # ---- steps ------------------------------------------------------------
    def _resolve_provider(self, request: httpx.Request) -> Optional[str]:
        if self.provider is not None:
            return self.provider
        host = request.url.host
        if not host:
            return None
        registry = self.meter.registry
        port = request.url.port
        if port:
            detected = registry.detect_provider(f"{host}:{port}")
            if detected:
                return detected
        return registry.detect_provider(host)

    def _start(self, meter: Any, provider: str, request: httpx.Request) -> RequestContext:
        request_data = parse_request_body(request)
        path = request.url.path
        declaration = meter.registry.provider(provider)
        model = declaration.extract_model_from_request(request_data, path) if declaration else None
        options = dict(self._options)
        options.setdefault("endpoint", path)
        options.setdefault("operation", request.method)
        context = meter.start_request(provider, model or self.default_model, request_data=request_data, **options)
        if context.pricing_tier is None and declaration is not None:
            context.with_pricing_tier(declaration.extract_pricing_tier_from_request(request_data))
        return context

    def _endpoint_handler(self, context: RequestContext) -> Optional[ProviderHandler]:
        return self.meter.registry.resolve(context.provider, context.endpoint)

    def _is_streaming(self, context: RequestContext, response: httpx.Response) -> bool:
        handler = self._endpoint_handler(context)
        if handler is not None and handler.capabilities.binary_response:
            return False
        if context.request_data.get("stream"):
            return True
        content_type = response.headers.get("content-type", "")
        if any(kind in content_type for kind in _STREAM_CONTENT_TYPES):
            return True
        chunked = "chunked" in response.headers.get("transfer-encoding", "")
        return chunked and "content-length" not in response.headers and "application/json" not in content_type

    def _handle_response(
        self,
        meter: Any,
        context: RequestContext,
        request: httpx.Request,
        response: httpx.Response,
    ) -> None:
        context.http_status = response.status_code
        try:
            raw = response.read()
            if response.is_error:
                error = httpx.HTTPStatusError(
                    f"{response.status_code} {response.reason_phrase}",
                    request=request,
                    response=response,
                )
                meter.record_failure(context, error, response.status_code)
                return
            handler = self._endpoint_handler(context)
            if handler is not None and handler.capabilities.binary_response:
                context.raw_response_body = raw
                body: Dict[str, Any] = {}
            else:
                body = to_mapping(raw)
            meter.record_success(context, body)
        except Exception as exc:  # metering must not break the response path
            meter.record_failure(context, exc, response.status_code)


__all__ = ["MeteredTransport", "parse_request_body", "parse_multipart_fields"]
