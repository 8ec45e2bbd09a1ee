"""Built-in defaults for the metering configuration layer.

Every value here can be replaced through the external config file, the
environment or explicit overrides (see ``crux_meter.config``).
"""

from __future__ import annotations

from typing import Tuple

# Providers shipped with the package, in registration order.
BUILTIN_PROVIDERS: Tuple[str, ...] = (
    "openai",
    "anthropic",
    "google",
    "ollama",
    "groq",
    "mistral",
    "xai",
    "cohere",
    "openrouter",
    "elevenlabs",
    "replicate",
    "falai",
)

METER_ENABLED_DEFAULT = True
METER_COSTS_ENABLED_DEFAULT = True
METER_MEDIA_ENABLED_DEFAULT = False
METER_MEDIA_PATH_DEFAULT = "./storage/meter-media"
METER_STORE_EMBEDDINGS_DEFAULT = False
DEFAULT_PRICING_TIER = "standard"

__all__ = [
    "BUILTIN_PROVIDERS",
    "METER_ENABLED_DEFAULT",
    "METER_COSTS_ENABLED_DEFAULT",
    "METER_MEDIA_ENABLED_DEFAULT",
    "METER_MEDIA_PATH_DEFAULT",
    "METER_STORE_EMBEDDINGS_DEFAULT",
    "DEFAULT_PRICING_TIER",
]
