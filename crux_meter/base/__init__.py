"""
Metering Base Package

Exports the provider-agnostic kernel of the metering pipeline for use by the
provider packages, the :class:`~crux_meter.meter.Meter` facade and the
transport integrations.

Layers:
- Models: request context, metrics snapshots, model types, pricing units
- Handlers: capability flags, handler and stream-handler contracts, registry
- Pricing: catalog schema and loader, cost calculator
- Processing and streaming: response processor, streaming tracker
- Boundaries: media storage, persistence sinks
- Factory: lazy creation of provider declarations by canonical name

Nothing here imports a provider package; the factory resolves them with
``importlib`` at runtime.
"""

from .errors import CatalogError, ErrorCode, MeterError, classify_exception, extract_http_status
from .factory import ProviderFactory, UnknownProviderError, build_default_registry, build_registry
from .handlers import (
    HandlerCapabilities,
    HandlerRegistry,
    Provider,
    ProviderHandler,
    StreamHandler,
    merge_usage,
)
from .media import LocalMediaStore, MediaStore, extract_audio_duration
from .models import (
    AudioMetrics,
    ImageMetrics,
    Metrics,
    ModelType,
    PricingUnit,
    RequestContext,
    TokenMetrics,
    VideoMetrics,
)
from .persistence import InMemoryRecordSink, LoggingRecordSink, RecordSink, StoredRecord, build_attributes
from .pricing import CostBreakdown, CostCalculator, PricingCatalog, UsageQuantities, get_default_catalog
from .processing import ResponseProcessor
from .streaming import StreamingTracker, StreamRecorder, StreamState

__all__ = [
    # Errors
    "ErrorCode",
    "MeterError",
    "CatalogError",
    "classify_exception",
    "extract_http_status",
    # Models
    "ModelType",
    "PricingUnit",
    "TokenMetrics",
    "ImageMetrics",
    "AudioMetrics",
    "VideoMetrics",
    "Metrics",
    "RequestContext",
    # Handlers
    "HandlerCapabilities",
    "ProviderHandler",
    "StreamHandler",
    "Provider",
    "HandlerRegistry",
    "merge_usage",
    # Factory
    "ProviderFactory",
    "UnknownProviderError",
    "build_registry",
    "build_default_registry",
    # Pricing
    "PricingCatalog",
    "CostCalculator",
    "CostBreakdown",
    "UsageQuantities",
    "get_default_catalog",
    # Pipeline
    "ResponseProcessor",
    "StreamingTracker",
    "StreamRecorder",
    "StreamState",
    # Boundaries
    "MediaStore",
    "LocalMediaStore",
    "extract_audio_duration",
    "RecordSink",
    "StoredRecord",
    "InMemoryRecordSink",
    "LoggingRecordSink",
    "build_attributes",
]
