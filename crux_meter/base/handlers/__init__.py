"""Handler contracts, provider declarations and the handler registry."""

from .capabilities import HandlerCapabilities
from .handler import Body, ProviderHandler
from .patterns import compile_endpoint_pattern, compile_host_pattern, host_from_url, normalize_path
from .provider import Provider
from .registry import HandlerRegistry
from .stream_handler import Chunk, StreamHandler, merge_usage

__all__ = [
    "Body",
    "Chunk",
    "HandlerCapabilities",
    "HandlerRegistry",
    "Provider",
    "ProviderHandler",
    "StreamHandler",
    "compile_endpoint_pattern",
    "compile_host_pattern",
    "host_from_url",
    "merge_usage",
    "normalize_path",
]
