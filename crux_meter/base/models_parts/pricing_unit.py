"""Billing quantity discriminator declared per catalog model."""
from __future__ import annotations

from enum import Enum


class PricingUnit(str, Enum):
    """Which usage quantity a model is billed by.

    ``TOKENS`` prices prompt/completion tokens per million; every other unit
    multiplies a single quantity by the tier's ``price_per_unit``.
    """

    TOKENS = "tokens"
    MINUTE = "minute"
    SECOND = "second"
    CHARACTERS = "characters"
    IMAGE = "image"
    VIDEO = "video"
    SEARCH = "search"


__all__ = ["PricingUnit"]
