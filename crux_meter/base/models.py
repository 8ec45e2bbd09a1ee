"""
Metering domain models public surface.

Re-exports the one-class-per-file implementations under
``crux_meter.base.models_parts`` behind a stable import path.
"""

from .models_parts.model_type import ModelType
from .models_parts.pricing_unit import PricingUnit
from .models_parts.token_metrics import TokenMetrics
from .models_parts.image_metrics import ImageMetrics
from .models_parts.audio_metrics import AudioMetrics
from .models_parts.video_metrics import VideoMetrics
from .models_parts.metrics import Metrics
from .models_parts.request_context import RequestContext

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
