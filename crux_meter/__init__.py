"""crux_meter package

Usage and cost metering for calls to generative-AI provider APIs.

Purpose:
    Turn every call made to a text, image, audio, video or embedding API
    into one normalized, priced usage record, whether the response arrived
    whole or as a stream. Packaging is configured via the repository root
    ``pyproject.toml``.

Public API (re-exported):
    - Version: ``__version__``
    - Facade: :class:`Meter`, :func:`get_meter`, :func:`set_meter`
    - Transport integration: :class:`MeteredTransport`
    - Exceptions: :class:`MeterError`, :class:`CatalogError`, :class:`ErrorCode`
    - Data model: :class:`RequestContext`, :class:`TokenMetrics`, :class:`ModelType`
    - Configuration: :func:`get_meter_settings`, :class:`MeterSettings`

Notes:
    - Provider packages (``crux_meter.openai``, ``crux_meter.anthropic``, ...)
      are loaded lazily by :class:`~crux_meter.base.factory.ProviderFactory`.
"""

from .base.errors import CatalogError, ErrorCode, MeterError
from .base.models import ModelType, RequestContext, TokenMetrics
from .config import MeterSettings, get_meter_settings
from .integrations.httpx_transport import MeteredTransport
from .meter import Meter, get_meter, set_meter

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Facade
    "Meter",
    "get_meter",
    "set_meter",
    "MeteredTransport",
    # Exceptions
    "MeterError",
    "CatalogError",
    "ErrorCode",
    # Models
    "RequestContext",
    "TokenMetrics",
    "ModelType",
    # Configuration
    "MeterSettings",
    "get_meter_settings",
]
