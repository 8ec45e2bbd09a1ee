"""Cost calculation against the pricing catalog.

All amounts are cents as floats. Fractional cents are preserved; rounding is a
concern of whatever enforces budgets on stored totals, never of this module.

Rules
-----
- The model's catalog ``pricing_unit`` picks the billed quantity; callers
  supply every quantity they know and never choose the unit.
- Tokens: ``(prompt - cached) * input + cached * (cached_input or input)``
  plus ``cache_creation * (cache_write_5m or input)``, all per million, for
  the prompt side; ``completion * output`` per million for the completion
  side. Reasoning tokens are part of ``completion``.
- Units: minute ``seconds / 60 * p``; second ``seconds * p``; characters
  ``chars * p / 1e6``; image, video and search ``count * p``.
- Tool-call surcharge: ``sum(price[type] * count)`` over the provider's tool
  call price list, added to the total after the base cost.
- Unknown provider or model yields :data:`ZERO_COST`; an unknown tier falls
  back to ``standard``; an unset tier uses the configured provider default.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from ..constants import (
    CHARACTERS_PER_PRICE_UNIT,
    SEARCH_TOOL_CALL_TYPES,
    STANDARD_TIER,
    TOKENS_PER_PRICE_UNIT,
)
from ..models_parts.pricing_unit import PricingUnit
from ..models_parts.request_context import RequestContext
from ..utils import coerce_float, int_or_zero
from .catalog import PricingCatalog
from .catalog_models import TierPrice


@dataclass(frozen=True)
class UsageQuantities:
    """Every billable quantity of one request; the pricing unit picks one."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    cached_tokens: int = 0
    cache_creation_tokens: int = 0
    duration_seconds: float = 0.0
    input_characters: int = 0
    image_count: int = 0
    video_count: int = 0
    search_count: int = 0

    @classmethod
    def from_context(cls, context: RequestContext) -> "UsageQuantities":
        search = context.search_count
        if search is None:
            search = sum(int_or_zero(context.tool_call_counts.get(t)) for t in SEARCH_TOOL_CALL_TYPES)
        return cls(
            prompt_tokens=int_or_zero(context.prompt_tokens),
            completion_tokens=int_or_zero(context.completion_tokens),
            cached_tokens=int_or_zero(context.cached_tokens),
            cache_creation_tokens=int_or_zero(context.cache_creation_tokens),
            duration_seconds=coerce_float(context.duration_seconds) or 0.0,
            input_characters=int_or_zero(context.input_characters),
            image_count=int_or_zero(context.image_count),
            video_count=int_or_zero(context.video_count),
            search_count=int_or_zero(search),
        )


@dataclass(frozen=True)
class CostBreakdown:
    """Result of pricing one request.

    ``prompt_cost`` and ``completion_cost`` are only set for token pricing.
    ``tool_call_cost`` is already included in ``total_cost``.
    """

    total_cost: float = 0.0
    prompt_cost: Optional[float] = None
    completion_cost: Optional[float] = None
    tool_call_cost: float = 0.0
    pricing_unit: PricingUnit = PricingUnit.TOKENS
    tier: Optional[str] = None
    priced: bool = False
    extra: Mapping[str, float] = field(default_factory=dict)


ZERO_COST = CostBreakdown()


def _price(value: Optional[float]) -> float:
    return float(value) if value is not None else 0.0


class CostCalculator:
    """Price usage tuples with the catalog's tier and unit rules."""

    def __init__(
        self,
        catalog: PricingCatalog,
        default_tiers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._catalog = catalog
        self._default_tiers = dict(default_tiers or {})

    @property
    def catalog(self) -> PricingCatalog:
        return self._catalog

    def default_tier(self, provider: str) -> str:
        return self._default_tiers.get(provider) or STANDARD_TIER

    def resolve_tier(self, provider: str, tier: Optional[str]) -> str:
        return tier or self.default_tier(provider)

    def pricing_unit(self, provider: str, model: str) -> PricingUnit:
        return self._catalog.pricing_unit(provider, model)

    # ---- public entry points -------------------------------------------
    def calculate(
        self,
        provider: str,
        model: str,
        tier: Optional[str],
        quantities: UsageQuantities,
        tool_call_counts: Optional[Mapping[str, int]] = None,
    ) -> CostBreakdown:
        """Price ``quantities`` for ``provider``/``model`` at ``tier``."""
        resolved_tier = self.resolve_tier(provider, tier)
        definition = self._catalog.model(provider, model)
        surcharge = self.tool_call_surcharge(provider, tool_call_counts)
        if definition is None:
            if surcharge:
                return CostBreakdown(total_cost=surcharge, tool_call_cost=surcharge, tier=resolved_tier)
            return ZERO_COST
        prices = definition.tier(resolved_tier)
        unit = definition.pricing_unit
        if prices is None:
            return CostBreakdown(total_cost=surcharge, tool_call_cost=surcharge, pricing_unit=unit, tier=resolved_tier)
        effective_tier = resolved_tier if resolved_tier in definition.tiers else STANDARD_TIER

        if unit is PricingUnit.TOKENS:
            prompt_cost, completion_cost = self._token_cost(prices, quantities)
            return CostBreakdown(
                total_cost=prompt_cost + completion_cost + surcharge,
                prompt_cost=prompt_cost,
                completion_cost=completion_cost,
                tool_call_cost=surcharge,
                pricing_unit=unit,
                tier=effective_tier,
                priced=True,
            )

        base = self._unit_cost(unit, prices, quantities)
        return CostBreakdown(
            total_cost=base + surcharge,
            tool_call_cost=surcharge,
            pricing_unit=unit,
            tier=effective_tier,
            priced=prices.price_per_unit is not None,
        )

    def calculate_tokens(
        self,
        provider: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        cached_tokens: int = 0,
        tier: Optional[str] = None,
    ) -> CostBreakdown:
        return self.calculate(
            provider,
            model,
            tier,
            UsageQuantities(
                prompt_tokens=int_or_zero(prompt_tokens),
                completion_tokens=int_or_zero(completion_tokens),
                cached_tokens=int_or_zero(cached_tokens),
            ),
        )

    def price_context(self, context: RequestContext) -> CostBreakdown:
        """Price a completed context and write the costs back onto it."""
        breakdown = self.calculate(
            context.provider,
            context.model,
            context.pricing_tier,
            UsageQuantities.from_context(context),
            context.tool_call_counts,
        )
        context.prompt_cost = breakdown.prompt_cost or 0.0
        context.completion_cost = breakdown.completion_cost or 0.0
        context.total_cost = breakdown.total_cost
        if context.pricing_tier is None:
            context.pricing_tier = self.resolve_tier(context.provider, None)
        return breakdown

    def tool_call_surcharge(self, provider: str, counts: Optional[Mapping[str, int]]) -> float:
        if not counts:
            return 0.0
        pricing = self._catalog.tool_call_pricing(provider)
        if not pricing:
            return 0.0
        return sum(pricing[t] * int_or_zero(n) for t, n in counts.items() if t in pricing)

    # ---- formulas -------------------------------------------------------
    @staticmethod
    def _token_cost(prices: TierPrice, q: UsageQuantities) -> tuple:
        input_price = _price(prices.input_price)
        cached_price = prices.cached_input_price if prices.cached_input_price is not None else input_price
        write_price = prices.cache_write_5m_price if prices.cache_write_5m_price is not None else input_price
        cached = min(q.cached_tokens, q.prompt_tokens) if q.prompt_tokens else q.cached_tokens
        regular = max(0, q.prompt_tokens - cached)
        prompt_cost = (
            regular * input_price + cached * cached_price + q.cache_creation_tokens * write_price
        ) / TOKENS_PER_PRICE_UNIT
        completion_cost = q.completion_tokens * _price(prices.output_price) / TOKENS_PER_PRICE_UNIT
        return prompt_cost, completion_cost

    @staticmethod
    def _unit_cost(unit: PricingUnit, prices: TierPrice, q: UsageQuantities) -> float:
        per_unit = prices.price_per_unit
        if per_unit is None:
            return 0.0
        if unit is PricingUnit.MINUTE:
            return q.duration_seconds / 60 * per_unit
        if unit is PricingUnit.SECOND:
            return q.duration_seconds * per_unit
        if unit is PricingUnit.CHARACTERS:
            return q.input_characters * per_unit / CHARACTERS_PER_PRICE_UNIT
        if unit is PricingUnit.IMAGE:
            return q.image_count * per_unit
        if unit is PricingUnit.VIDEO:
            return q.video_count * per_unit
        if unit is PricingUnit.SEARCH:
            return q.search_count * per_unit
        return 0.0


__all__ = ["CostCalculator", "CostBreakdown", "UsageQuantities", "ZERO_COST"]
