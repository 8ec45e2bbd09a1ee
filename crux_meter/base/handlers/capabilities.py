"""
Explicit capability flags declared by every response handler.

The response processor and streaming tracker branch on these flags instead of
probing handler types, which keeps the resolution and extraction algorithms in
one place and lets tests exercise them with small fake handlers.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class HandlerCapabilities:
    """Optional behaviours a handler opts into.

    Attributes:
        binary_response: The body is raw bytes (audio), not JSON.
        skips_response: ``should_skip_response`` may veto recording (async job
            still pending).
        has_expiration: ``extract_expires_at`` returns when hosted media expires.
        has_media: ``store_media`` can persist attachments.
        streams_response: The handler exposes a ``stream_handler``.
        matches_response_shape: ``matches_response`` can claim a body by shape.
        pricing_tier_from_request: ``extract_pricing_tier_from_request`` is meaningful.
        pricing_tier_from_response: ``extract_pricing_tier_from_response`` is meaningful.
        extracts_model_from_response: ``extract_model`` reads a handler-specific
            location instead of the provider default.
        extracts_model_from_request: ``extract_model_from_request`` reads the
            model from the request or endpoint (binary responses never echo it).
    """

    binary_response: bool = False
    skips_response: bool = False
    has_expiration: bool = False
    has_media: bool = False
    streams_response: bool = False
    matches_response_shape: bool = False
    pricing_tier_from_request: bool = False
    pricing_tier_from_response: bool = False
    extracts_model_from_response: bool = False
    extracts_model_from_request: bool = False


__all__ = ["HandlerCapabilities"]
