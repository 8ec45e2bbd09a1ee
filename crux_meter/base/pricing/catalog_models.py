"""
Pricing catalog schema (pydantic v2 models).

Purpose
-------
Validate the static per-provider YAML documents once at load time so the
request path only ever sees well-formed, immutable price tables.

Units
-----
- Token prices (``input``, ``output``, ``cached_input``, ``cache_write_5m``,
  ``cache_write_1h``) are cents per million tokens.
- ``per_unit`` is cents per unit of the model's ``pricing_unit``, except
  ``characters`` which is cents per million characters.

Failure modes
-------------
- ``pydantic.ValidationError`` for negative prices, unknown keys, empty tier
  tables, or a model whose pricing unit is not ``tokens`` but none of its tiers
  declares ``per_unit``.
"""
from __future__ import annotations

from typing import Dict, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..constants import STANDARD_TIER
from ..models_parts.model_type import ModelType
from ..models_parts.pricing_unit import PricingUnit

CatalogModelType = Literal["text", "embedding", "image", "audio", "video"]
Capability = Literal["text", "images", "video", "audio"]


class TierPrice(BaseModel):
    """Prices for one named tier of one model."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    name: str = STANDARD_TIER
    input_price: Optional[float] = Field(default=None, ge=0, alias="input")
    output_price: Optional[float] = Field(default=None, ge=0, alias="output")
    cached_input_price: Optional[float] = Field(default=None, ge=0, alias="cached_input")
    cache_write_5m_price: Optional[float] = Field(default=None, ge=0, alias="cache_write_5m")
    cache_write_1h_price: Optional[float] = Field(default=None, ge=0, alias="cache_write_1h")
    price_per_unit: Optional[float] = Field(default=None, ge=0, alias="per_unit")

    @model_validator(mode="after")
    def _has_some_price(self) -> "TierPrice":
        if self.price_per_unit is None and self.input_price is None and self.output_price is None:
            raise ValueError(f"tier '{self.name}' declares no price")
        return self


class ModelDefinition(BaseModel):
    """Catalog entry for one model of one provider."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    display_name: Optional[str] = None
    type: CatalogModelType = "text"
    pricing_unit: PricingUnit = PricingUnit.TOKENS
    capabilities: Tuple[Capability, ...] = ("text",)
    tiers: Dict[str, TierPrice]

    @field_validator("tiers", mode="before")
    @classmethod
    def _name_tiers(cls, value):
        if not isinstance(value, dict):
            return value
        named = {}
        for tier_name, prices in value.items():
            if isinstance(prices, dict):
                prices = {"name": str(tier_name), **prices}
            named[str(tier_name)] = prices
        return named

    @model_validator(mode="after")
    def _check_tiers(self) -> "ModelDefinition":
        if not self.tiers:
            raise ValueError(f"model '{self.name}' declares no tiers")
        if self.pricing_unit is not PricingUnit.TOKENS and not any(
            t.price_per_unit is not None for t in self.tiers.values()
        ):
            raise ValueError(f"model '{self.name}' is priced per {self.pricing_unit.value} but has no per_unit price")
        return self

    @property
    def label(self) -> str:
        return self.display_name or self.name

    def can_generate(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def tier(self, name: Optional[str]) -> Optional[TierPrice]:
        """Prices for tier ``name``, falling back to the standard tier."""
        if name and name in self.tiers:
            return self.tiers[name]
        return self.tiers.get(STANDARD_TIER)

    def request_model_type(self) -> Optional[ModelType]:
        """Request model type implied by this entry.

        ``audio`` entries split by capability: audio without text is speech
        synthesis, text without audio is transcription; otherwise the slug
        decides.
        """
        resolved = ModelType.from_pricing_type(self.type)
        if resolved is not None or self.type != "audio":
            return resolved
        audio, text = self.can_generate("audio"), self.can_generate("text")
        if audio and not text:
            return ModelType.TTS
        if text and not audio:
            return ModelType.STT
        return ModelType.from_audio_slug(self.name)


class ProviderCatalog(BaseModel):
    """One provider's catalog document."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    provider: str = Field(min_length=1)
    display_name: Optional[str] = None
    tool_call_pricing: Dict[str, float] = Field(default_factory=dict)
    models: Tuple[ModelDefinition, ...] = ()

    @field_validator("tool_call_pricing")
    @classmethod
    def _non_negative(cls, value: Dict[str, float]) -> Dict[str, float]:
        for key, price in value.items():
            if price < 0:
                raise ValueError(f"tool call price for '{key}' is negative")
        return value


__all__ = ["TierPrice", "ModelDefinition", "ProviderCatalog", "CatalogModelType", "Capability"]
