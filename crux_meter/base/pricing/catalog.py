"""Pricing catalog loading and lookup.

The catalog is read from provider-centric YAML documents under
``crux_meter/catalog/providers`` (or a directory configured through
``METER_CATALOG_PATH``), validated with the pydantic schema in
``catalog_models``, and frozen into an in-memory index keyed by
``(provider, model)``. After construction there is no mutation path, so one
instance is shared process-wide without locking.

YAML Schema (per provider)
--------------------------

.. code-block:: yaml

    provider: openai
    display_name: OpenAI
    tool_call_pricing:
      web_search_call: 1.0
    models:
      - name: gpt-4o
        display_name: GPT-4o
        type: text
        pricing_unit: tokens
        capabilities: [text]
        tiers:
          standard: {input: 250, output: 1000, cached_input: 125}
          batch: {input: 125, output: 500}

Lookup semantics
----------------
- Unknown provider or model → ``None`` (callers price it at zero).
- Unknown tier → the model's ``standard`` tier.
"""

from __future__ import annotations

import threading
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

import yaml
from pydantic import ValidationError

from ..errors import CatalogError
from ..logging import get_logger, log_event
from ..models_parts.pricing_unit import PricingUnit
from .catalog_models import ModelDefinition, ProviderCatalog, TierPrice

logger = get_logger("meter.pricing")


def default_catalog_root() -> Path:
    """Return the packaged catalog root (``crux_meter/catalog/providers``)."""
    # parents[0] pricing/, parents[1] base/, parents[2] crux_meter/
    return Path(__file__).resolve().parents[2] / "catalog" / "providers"


def load_catalog_document(path: Path) -> ProviderCatalog:
    """Parse and validate a single provider YAML document.

    Raises
    ------
    CatalogError
        When the file is unreadable, not a mapping, or fails schema validation.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise CatalogError(message=f"cannot read catalog {path.name}: {exc}", raw=exc) from exc
    if not isinstance(data, dict):
        raise CatalogError(message=f"catalog {path.name} must be a mapping at the top level")
    try:
        return ProviderCatalog.model_validate(data)
    except ValidationError as exc:
        raise CatalogError(
            message=f"catalog {path.name} is invalid: {exc.error_count()} error(s)",
            provider=str(data.get("provider") or path.stem),
            raw=exc,
        ) from exc


class PricingCatalog:
    """Immutable index over validated provider catalogs."""

    def __init__(self, catalogs: Iterable[ProviderCatalog]) -> None:
        models: Dict[Tuple[str, str], ModelDefinition] = {}
        tools: Dict[str, Mapping[str, float]] = {}
        names: Dict[str, str] = {}
        for catalog in catalogs:
            names[catalog.provider] = catalog.display_name or catalog.provider
            if catalog.tool_call_pricing:
                tools[catalog.provider] = MappingProxyType(dict(catalog.tool_call_pricing))
            for definition in catalog.models:
                models[(catalog.provider, definition.name)] = definition
        self._models = MappingProxyType(models)
        self._tools = MappingProxyType(tools)
        self._provider_names = MappingProxyType(names)

    @classmethod
    def from_directory(cls, root: Union[str, Path, None] = None) -> "PricingCatalog":
        """Load every ``*.yaml`` document under ``root`` (default: packaged catalog)."""
        directory = Path(root) if root else default_catalog_root()
        if not directory.is_dir():
            raise CatalogError(message=f"catalog directory not found: {directory}")
        catalogs = [load_catalog_document(p) for p in sorted(directory.glob("*.yaml"))]
        instance = cls(catalogs)
        log_event(
            logger,
            "meter.catalog.loaded",
            providers=len(catalogs),
            models=len(instance),
            root=str(directory),
        )
        return instance

    @classmethod
    def from_mapping(cls, documents: Iterable[Mapping[str, Any]]) -> "PricingCatalog":
        """Build from already-decoded documents (tests, programmatic catalogs)."""
        return cls(ProviderCatalog.model_validate(dict(d)) for d in documents)

    def __len__(self) -> int:
        return len(self._models)

    def __contains__(self, key: object) -> bool:
        return key in self._models

    def providers(self) -> Tuple[str, ...]:
        return tuple(self._provider_names)

    def entries(self) -> Iterable[Tuple[str, ModelDefinition]]:
        for (provider, _), definition in self._models.items():
            yield provider, definition

    def model(self, provider: Optional[str], model: Optional[str]) -> Optional[ModelDefinition]:
        if not provider or not model:
            return None
        return self._models.get((provider, model))

    def price(self, provider: Optional[str], model: Optional[str], tier: Optional[str] = None) -> Optional[TierPrice]:
        definition = self.model(provider, model)
        return definition.tier(tier) if definition is not None else None

    def has(self, provider: Optional[str], model: Optional[str], tier: Optional[str] = None) -> bool:
        return self.price(provider, model, tier) is not None

    def pricing_unit(self, provider: Optional[str], model: Optional[str]) -> PricingUnit:
        definition = self.model(provider, model)
        return definition.pricing_unit if definition is not None else PricingUnit.TOKENS

    def display_name(self, provider: Optional[str], model: Optional[str]) -> Optional[str]:
        definition = self.model(provider, model)
        return definition.label if definition is not None else None

    def provider_display_name(self, provider: str) -> str:
        return self._provider_names.get(provider, provider)

    def tool_call_pricing(self, provider: Optional[str]) -> Mapping[str, float]:
        if not provider:
            return MappingProxyType({})
        return self._tools.get(provider, MappingProxyType({}))


_DEFAULT_CATALOG: Optional[PricingCatalog] = None
_DEFAULT_LOCK = threading.Lock()


def get_default_catalog() -> PricingCatalog:
    """Return the process-wide catalog, loading it on first use."""
    global _DEFAULT_CATALOG
    if _DEFAULT_CATALOG is None:
        with _DEFAULT_LOCK:
            if _DEFAULT_CATALOG is None:
                from ...config import get_meter_settings

                _DEFAULT_CATALOG = PricingCatalog.from_directory(get_meter_settings().catalog_path)
    return _DEFAULT_CATALOG


__all__ = [
    "PricingCatalog",
    "default_catalog_root",
    "load_catalog_document",
    "get_default_catalog",
]
