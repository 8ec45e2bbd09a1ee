"""Metering data model parts (one class per file)."""

from .model_type import ModelType
from .pricing_unit import PricingUnit
from .token_metrics import TokenMetrics
from .image_metrics import ImageMetrics
from .audio_metrics import AudioMetrics
from .video_metrics import VideoMetrics
from .metrics import Metrics
from .request_context import RequestContext

__all__ = [
    "ModelType",
    "PricingUnit",
    "TokenMetrics",
    "ImageMetrics",
    "AudioMetrics",
    "VideoMetrics",
    "Metrics",
    "RequestContext",
]
