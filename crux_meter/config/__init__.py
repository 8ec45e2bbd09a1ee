"""Unified configuration layer for metering.

Goals
-----
* Centralize defaults (switches, media path, pricing tiers).
* Merge sources in a predictable order (later wins):
    1. Built-in defaults (``defaults.py``)
    2. Optional external config file (JSON or YAML) named by METER_CONFIG_FILE
    3. Environment variables
    4. In-code overrides passed to ``get_meter_settings``
* Provide a single call site: ``get_meter_settings()``.

External Config File (Optional)
-------------------------------
JSON is tried first, then YAML. Structure example:

```
enabled: true
media_enabled: true
media_path: /var/lib/meter-media
providers:
  openai:
    default_tier: flex
  ollama:
    base_url: http://gpu-box:11434
```

Public API
----------
* get_meter_settings(overrides: dict | None = None) -> MeterSettings
* reset_settings_cache() -> None
"""
from __future__ import annotations

import json
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from ..base.handlers.patterns import host_from_url
from .defaults import (
    BUILTIN_PROVIDERS,
    DEFAULT_PRICING_TIER,
    METER_COSTS_ENABLED_DEFAULT,
    METER_ENABLED_DEFAULT,
    METER_MEDIA_ENABLED_DEFAULT,
    METER_MEDIA_PATH_DEFAULT,
    METER_STORE_EMBEDDINGS_DEFAULT,
)
from .env import (
    BASE_URL_SUFFIX,
    CATALOG_PATH_VAR,
    CONFIG_FILE_VAR,
    COSTS_ENABLED_VAR,
    DEFAULT_TIER_SUFFIX,
    ENABLED_VAR,
    MEDIA_ENABLED_VAR,
    MEDIA_PATH_VAR,
    STORE_EMBEDDINGS_VAR,
    is_placeholder,
    parse_bool,
    provider_var,
    read_env,
)


@dataclass(frozen=True)
class MeterSettings:
    """Resolved metering configuration."""

    enabled: bool = METER_ENABLED_DEFAULT
    costs_enabled: bool = METER_COSTS_ENABLED_DEFAULT
    media_enabled: bool = METER_MEDIA_ENABLED_DEFAULT
    media_path: str = METER_MEDIA_PATH_DEFAULT
    store_embeddings: bool = METER_STORE_EMBEDDINGS_DEFAULT
    catalog_path: Optional[str] = None
    default_tiers: Mapping[str, str] = field(default_factory=dict)
    custom_hosts: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    def default_tier(self, provider: str) -> str:
        return self.default_tiers.get(provider) or DEFAULT_PRICING_TIER


_SETTINGS: Optional[MeterSettings] = None
_LOCK = threading.Lock()
_DOTENV_LOADED = False


def _load_dotenv_once() -> None:
    """Lightweight .env loader.

    Parses KEY=VALUE lines, ignoring comments and blank lines. Existing
    environment values win unless they look like placeholders.
    """
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    path = os.getenv("DOTENV_FILE", ".env")
    if not os.path.isfile(path):
        _DOTENV_LOADED = True
        return
    try:
        with open(path, "r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                k, v = line.split("=", 1)
                k = k.strip()
                v = v.strip().strip('"').strip("'")
                if k and (k not in os.environ or is_placeholder(os.environ.get(k))):
                    os.environ[k] = v
    finally:
        _DOTENV_LOADED = True


def _load_external_config() -> Dict[str, Any]:
    path = os.getenv(CONFIG_FILE_VAR)
    if not path:
        return {}
    p = Path(path)
    if not p.is_file():
        return {}
    text = p.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except ValueError:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError:
            data = {}
    return data if isinstance(data, dict) else {}


def _host_entry(base_url: Any) -> Optional[str]:
    if not isinstance(base_url, str) or not base_url.strip():
        return None
    return host_from_url(base_url.strip()) or None


def _merge_file(cfg: Dict[str, Any], tiers: Dict[str, str], hosts: Dict[str, Tuple[str, ...]], data: Mapping[str, Any]) -> None:
    for key in ("enabled", "costs_enabled", "media_enabled", "store_embeddings"):
        if key in data:
            cfg[key] = parse_bool(data[key], cfg[key])
    for key in ("media_path", "catalog_path"):
        if isinstance(data.get(key), str) and data[key]:
            cfg[key] = data[key]
    providers = data.get("providers")
    if not isinstance(providers, Mapping):
        return
    for name, section in providers.items():
        if not isinstance(section, Mapping):
            continue
        if isinstance(section.get("default_tier"), str) and section["default_tier"]:
            tiers[str(name)] = section["default_tier"]
        entries = [_host_entry(section.get("base_url"))]
        entries.extend(_host_entry(h) for h in section.get("hosts") or ())
        found = tuple(e for e in entries if e)
        if found:
            hosts[str(name)] = found


def _merge_env(cfg: Dict[str, Any], tiers: Dict[str, str], hosts: Dict[str, Tuple[str, ...]]) -> None:
    for key, var in (
        ("enabled", ENABLED_VAR),
        ("costs_enabled", COSTS_ENABLED_VAR),
        ("media_enabled", MEDIA_ENABLED_VAR),
        ("store_embeddings", STORE_EMBEDDINGS_VAR),
    ):
        cfg[key] = parse_bool(read_env(var), cfg[key])
    for key, var in (("media_path", MEDIA_PATH_VAR), ("catalog_path", CATALOG_PATH_VAR)):
        value = read_env(var)
        if value:
            cfg[key] = value
    for name in BUILTIN_PROVIDERS:
        tier = read_env(provider_var(name, DEFAULT_TIER_SUFFIX))
        if tier:
            tiers[name] = tier
        host = _host_entry(read_env(provider_var(name, BASE_URL_SUFFIX)))
        if host and host not in hosts.get(name, ()):
            hosts[name] = hosts.get(name, ()) + (host,)


def _build_settings(overrides: Optional[Mapping[str, Any]]) -> MeterSettings:
    _load_dotenv_once()
    cfg: Dict[str, Any] = {
        "enabled": METER_ENABLED_DEFAULT,
        "costs_enabled": METER_COSTS_ENABLED_DEFAULT,
        "media_enabled": METER_MEDIA_ENABLED_DEFAULT,
        "media_path": METER_MEDIA_PATH_DEFAULT,
        "store_embeddings": METER_STORE_EMBEDDINGS_DEFAULT,
        "catalog_path": None,
    }
    tiers: Dict[str, str] = {}
    hosts: Dict[str, Tuple[str, ...]] = {}

    _merge_file(cfg, tiers, hosts, _load_external_config())
    _merge_env(cfg, tiers, hosts)

    if overrides:
        for key, value in overrides.items():
            if value is None:
                continue
            if key == "default_tiers":
                tiers.update(value)
            elif key == "custom_hosts":
                hosts.update({k: tuple(v) for k, v in value.items()})
            elif key in cfg:
                cfg[key] = value

    return MeterSettings(default_tiers=tiers, custom_hosts=hosts, **cfg)


def get_meter_settings(overrides: Optional[Mapping[str, Any]] = None) -> MeterSettings:
    """Return merged settings; the no-override result is cached per process."""
    global _SETTINGS
    if overrides:
        return _build_settings(overrides)
    if _SETTINGS is None:
        with _LOCK:
            if _SETTINGS is None:
                _SETTINGS = _build_settings(None)
    return _SETTINGS


def reset_settings_cache() -> None:
    global _SETTINGS, _DOTENV_LOADED
    with _LOCK:
        _SETTINGS = None
        _DOTENV_LOADED = False


__all__ = ["MeterSettings", "get_meter_settings", "reset_settings_cache"]
