"""
Immutable bundle of everything a handler extracted from one response.

A single response may report several modalities at once (a text reply that
also carries a generated image), so every component is optional and
independent.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .audio_metrics import AudioMetrics
from .image_metrics import ImageMetrics
from .token_metrics import TokenMetrics
from .video_metrics import VideoMetrics


@dataclass(frozen=True)
class Metrics:
    """Per-response metric snapshot.

    Attributes:
        tokens: Token usage, when the response reports any.
        image: Generated image count.
        audio: Audio duration and/or synthesized character count.
        video: Generated video count and duration.
        search_count: Billed search units (rerank and search-priced models).
    """

    tokens: Optional[TokenMetrics] = None
    image: Optional[ImageMetrics] = None
    audio: Optional[AudioMetrics] = None
    video: Optional[VideoMetrics] = None
    search_count: Optional[int] = None


__all__ = ["Metrics"]
