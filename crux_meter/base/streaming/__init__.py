"""Streaming reconstruction: chunk normalization and the streaming tracker."""

from .chunks import (
    GENERIC_STREAM_HANDLER,
    GenericStreamHandler,
    detect_stream_provider,
    embedded_completed_response,
    normalize_chunk,
    sniff_model,
)
from .tracker import StreamingTracker, StreamRecorder, StreamState

__all__ = [
    "GENERIC_STREAM_HANDLER",
    "GenericStreamHandler",
    "StreamRecorder",
    "StreamState",
    "StreamingTracker",
    "detect_stream_provider",
    "embedded_completed_response",
    "normalize_chunk",
    "sniff_model",
]
