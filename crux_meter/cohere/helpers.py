"""Cohere usage helpers.

Cohere reports two views of usage: ``billed_units`` (what is charged) and
``tokens`` (raw counts including prompt template overhead). Billing wins.
"""

from __future__ import annotations

from typing import Any, Mapping

from ..base.models_parts.token_metrics import TokenMetrics
from ..base.utils import first_present, int_or_zero


def usage_from_cohere(usage: Any) -> TokenMetrics:
    if not isinstance(usage, Mapping):
        return TokenMetrics()
    return TokenMetrics(
        prompt_tokens=int_or_zero(first_present(usage, ("billed_units", "input_tokens"), ("tokens", "input_tokens"))),
        completion_tokens=int_or_zero(
            first_present(usage, ("billed_units", "output_tokens"), ("tokens", "output_tokens"))
        ),
    )


__all__ = ["usage_from_cohere"]
