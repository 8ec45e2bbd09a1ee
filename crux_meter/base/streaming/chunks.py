"""
Chunk normalization and provider-agnostic stream fallbacks.

Every chunk is normalized to one flat mapping before any lookup, whatever
envelope the transport used. SDKs that wrap server-sent events as
``{"event": name, "data": {...}}`` are flattened to the raw event shape
``{"type": name, **data}``; a ``response.completed`` event keeps its payload
nested under ``response`` the way the wire format does.

``GenericStreamHandler`` interprets chunks when no provider handler could be
resolved, checking a fixed list of common field paths.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

from ..constants import RICH_OUTPUT_TYPES
from ..handlers.stream_handler import Chunk, StreamHandler
from ..models_parts.token_metrics import TokenMetrics
from ..utils import as_list, dig, first_present, non_empty_str, to_mapping

COMPLETED_EVENT = "response.completed"


def normalize_chunk(chunk: Any) -> Dict[str, Any]:
    """Return the canonical flat mapping for ``chunk`` (``{}`` when unusable)."""
    data = to_mapping(chunk)
    event, payload = data.get("event"), data.get("data")
    if isinstance(event, str) and isinstance(payload, Mapping):
        if event == COMPLETED_EVENT:
            return {"type": event, "response": dict(payload)}
        return {**payload, "type": event}
    return data


def sniff_model(chunk: Chunk) -> Optional[str]:
    """Model named by a chunk in any of the common locations."""
    return non_empty_str(
        first_present(chunk, "model", ("message", "model"), "modelVersion", ("response", "model"))
    )


def embedded_completed_response(chunk: Chunk) -> Optional[Dict[str, Any]]:
    """Full response carried by a terminal chunk, when it holds rich output items.

    Only payloads with tool or media output items are returned; plain text
    completions are cheaper to rebuild from the deltas.
    """
    if chunk.get("type") != COMPLETED_EVENT:
        return None
    response = chunk.get("response")
    if not isinstance(response, Mapping) or not isinstance(response.get("output"), list):
        return None
    for item in as_list(response.get("output")):
        if isinstance(item, Mapping) and item.get("type") in RICH_OUTPUT_TYPES:
            return dict(response)
    return None


class GenericStreamHandler(StreamHandler):
    """Best-effort interpretation of chunks from an unknown provider."""

    def text(self, chunk: Chunk) -> Optional[str]:
        value = first_present(chunk, ("choices", 0, "delta", "content"), ("delta", "text"), "text", "content")
        return value if isinstance(value, str) else None

    def usage(self, chunk: Chunk, current: TokenMetrics) -> TokenMetrics:
        usage = chunk.get("usage")
        if not isinstance(usage, Mapping):
            return current
        return TokenMetrics.from_usage(usage)

    def finish_reason(self, chunk: Chunk) -> Optional[str]:
        return non_empty_str(dig(chunk, "choices", 0, "finish_reason"))

    def identity(self, chunk: Chunk) -> Tuple[Optional[str], Optional[str]]:
        return (
            non_empty_str(chunk.get("model")),
            non_empty_str(first_present(chunk, "id", "responseId")),
        )


GENERIC_STREAM_HANDLER = GenericStreamHandler()

_PROVIDER_HINTS = (
    ("openai", "openai"),
    ("anthropic", "anthropic"),
    ("gemini", "google"),
    ("google", "google"),
)


def detect_stream_provider(stream: Any) -> Optional[str]:
    """Guess the provider from the stream object's class (SDK stream types)."""
    cls = type(stream)
    qualified = f"{cls.__module__}.{cls.__qualname__}".lower()
    for needle, provider in _PROVIDER_HINTS:
        if needle in qualified:
            return provider
    return None


__all__ = [
    "COMPLETED_EVENT",
    "GENERIC_STREAM_HANDLER",
    "GenericStreamHandler",
    "detect_stream_provider",
    "embedded_completed_response",
    "normalize_chunk",
    "sniff_model",
]
