"""
Token usage snapshot.

``TokenMetrics`` is immutable; streaming accumulation produces new instances
through :meth:`TokenMetrics.replace` rather than mutating a shared one.
"""
from __future__ import annotations

from dataclasses import dataclass, replace as dc_replace
from typing import Any, Dict, Mapping

from ..utils import first_present, int_or_zero


@dataclass(frozen=True)
class TokenMetrics:
    """Token counts reported for one request.

    Attributes:
        prompt_tokens: Input tokens, including any cached portion.
        completion_tokens: Output tokens, including reasoning tokens.
        cached_tokens: Sub-portion of ``prompt_tokens`` served from cache.
        reasoning_tokens: Sub-portion of ``completion_tokens`` spent thinking.
        cache_creation_tokens: Input tokens written to the prompt cache.
    """

    prompt_tokens: int = 0
    completion_tokens: int = 0
    cached_tokens: int = 0
    reasoning_tokens: int = 0
    cache_creation_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def is_empty(self) -> bool:
        return self.prompt_tokens == 0 and self.completion_tokens == 0 and self.cached_tokens == 0

    def replace(self, **changes: Any) -> "TokenMetrics":
        return dc_replace(self, **changes)

    def to_dict(self) -> Dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "cached_tokens": self.cached_tokens,
            "reasoning_tokens": self.reasoning_tokens,
            "cache_creation_tokens": self.cache_creation_tokens,
        }

    @classmethod
    def from_usage(cls, usage: Any) -> "TokenMetrics":
        """Build from a loosely shaped usage mapping.

        Recognizes both completion-style (``prompt_tokens``) and message-style
        (``input_tokens``) naming plus the nested ``*_tokens_details`` blocks.
        Anything that is not a mapping yields zero usage.
        """
        if isinstance(usage, TokenMetrics):
            return usage
        if not isinstance(usage, Mapping):
            return cls()
        return cls(
            prompt_tokens=int_or_zero(first_present(usage, "prompt_tokens", "input_tokens")),
            completion_tokens=int_or_zero(first_present(usage, "completion_tokens", "output_tokens")),
            cached_tokens=int_or_zero(
                first_present(
                    usage,
                    "cached_tokens",
                    "cache_read_input_tokens",
                    ("prompt_tokens_details", "cached_tokens"),
                    ("input_tokens_details", "cached_tokens"),
                )
            ),
            reasoning_tokens=int_or_zero(
                first_present(
                    usage,
                    "reasoning_tokens",
                    ("completion_tokens_details", "reasoning_tokens"),
                    ("output_tokens_details", "reasoning_tokens"),
                )
            ),
            cache_creation_tokens=int_or_zero(
                first_present(usage, "cache_creation_tokens", "cache_creation_input_tokens")
            ),
        )


__all__ = ["TokenMetrics"]
