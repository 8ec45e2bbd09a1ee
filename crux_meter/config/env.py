"""crux_meter.config.env
=====================

Environment variable names and parsing helpers for the metering settings.

Conventions
-----------
- Global switches: ``METER_ENABLED``, ``METER_COSTS_ENABLED``,
  ``METER_MEDIA_ENABLED``, ``METER_MEDIA_PATH``, ``METER_STORE_EMBEDDINGS``,
  ``METER_CATALOG_PATH``, ``METER_CONFIG_FILE``.
- Per provider: ``<PROVIDER>_DEFAULT_TIER``, ``<PROVIDER>_BASE_URL`` and
  ``<PROVIDER>_API_KEY`` (media downloads only)
  (e.g. ``OPENAI_DEFAULT_TIER=flex``, ``OLLAMA_BASE_URL=http://gpu-box:11434``).

Failure Modes
-------------
Helpers never raise: unparseable booleans fall back to the supplied default
and placeholder values are treated as unset.
"""

from __future__ import annotations

import os
from typing import Optional

ENABLED_VAR = "METER_ENABLED"
COSTS_ENABLED_VAR = "METER_COSTS_ENABLED"
MEDIA_ENABLED_VAR = "METER_MEDIA_ENABLED"
MEDIA_PATH_VAR = "METER_MEDIA_PATH"
STORE_EMBEDDINGS_VAR = "METER_STORE_EMBEDDINGS"
CATALOG_PATH_VAR = "METER_CATALOG_PATH"
CONFIG_FILE_VAR = "METER_CONFIG_FILE"
DEFAULT_TIER_SUFFIX = "DEFAULT_TIER"
BASE_URL_SUFFIX = "BASE_URL"
API_KEY_SUFFIX = "API_KEY"

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


def is_placeholder(val: Optional[str]) -> bool:
    """Return True if the value looks like a placeholder/test value.

    Heuristics: contains 'placeholder', 'changeme', 'example', or starts with
    'test_' (case-insensitive).
    """
    if val is None:
        return False
    v = str(val).strip().lower()
    return "placeholder" in v or "changeme" in v or "example" in v or v.startswith("test_")


def parse_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    return default


def provider_var(provider: str, suffix: str) -> str:
    return f"{provider.upper()}_{suffix}"


def read_env(name: str) -> Optional[str]:
    """Environment value for ``name``; empty and placeholder values count as unset."""
    value = os.environ.get(name)
    if value is None or not value.strip() or is_placeholder(value):
        return None
    return value.strip()


def provider_api_key(provider: str) -> Optional[str]:
    """API key used to download provider-hosted media (``<PROVIDER>_API_KEY``)."""
    return read_env(provider_var(provider, API_KEY_SUFFIX))


__all__ = [
    "ENABLED_VAR",
    "COSTS_ENABLED_VAR",
    "MEDIA_ENABLED_VAR",
    "MEDIA_PATH_VAR",
    "STORE_EMBEDDINGS_VAR",
    "CATALOG_PATH_VAR",
    "CONFIG_FILE_VAR",
    "DEFAULT_TIER_SUFFIX",
    "BASE_URL_SUFFIX",
    "API_KEY_SUFFIX",
    "is_placeholder",
    "parse_bool",
    "provider_var",
    "read_env",
    "provider_api_key",
]
