"""Pricing catalog schema, loader and cost calculation."""

from .catalog import PricingCatalog, default_catalog_root, get_default_catalog, load_catalog_document
from .catalog_models import ModelDefinition, ProviderCatalog, TierPrice
from .cost_calculator import ZERO_COST, CostBreakdown, CostCalculator, UsageQuantities

__all__ = [
    "CostBreakdown",
    "CostCalculator",
    "ModelDefinition",
    "PricingCatalog",
    "ProviderCatalog",
    "TierPrice",
    "UsageQuantities",
    "ZERO_COST",
    "default_catalog_root",
    "get_default_catalog",
    "load_catalog_document",
]
