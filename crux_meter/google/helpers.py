"""Gemini body-shape helpers shared by the Google handlers."""

from __future__ import annotations

import re
from typing import Any, List, Mapping, Optional

from ..base.handlers.handler import Body
from ..base.models_parts.token_metrics import TokenMetrics
from ..base.utils import as_list, dig, int_or_zero

_MODEL_IN_PATH = re.compile(r"/models/([^/:]+)")
_SAMPLE_RATE = re.compile(r"rate=(\d+)")

DEFAULT_PCM_SAMPLE_RATE = 24000


def model_from_endpoint(endpoint: Optional[str]) -> Optional[str]:
    """``gemini-2.5-flash`` from ``/v1beta/models/gemini-2.5-flash:generateContent``."""
    if not endpoint:
        return None
    match = _MODEL_IN_PATH.search(endpoint)
    return match.group(1) if match else None


def usage_from_metadata(metadata: Any) -> TokenMetrics:
    """Token usage from ``usageMetadata``.

    ``candidatesTokenCount`` excludes thinking; completion tokens here include
    ``thoughtsTokenCount`` so reasoning stays a sub-portion of completion.
    """
    if not isinstance(metadata, Mapping):
        return TokenMetrics()
    thoughts = int_or_zero(metadata.get("thoughtsTokenCount"))
    return TokenMetrics(
        prompt_tokens=int_or_zero(metadata.get("promptTokenCount")),
        completion_tokens=int_or_zero(metadata.get("candidatesTokenCount")) + thoughts,
        cached_tokens=int_or_zero(metadata.get("cachedContentTokenCount")),
        reasoning_tokens=thoughts,
    )


def candidate_parts(body: Body) -> List[Any]:
    return as_list(dig(body, "candidates", 0, "content", "parts"))


def inline_parts(body: Body, mime_prefix: str) -> List[Mapping[str, Any]]:
    """``inlineData`` blocks of the first candidate whose MIME type starts with ``mime_prefix``."""
    found = []
    for part in candidate_parts(body):
        inline = dig(part, "inlineData")
        mime = dig(inline, "mimeType")
        if isinstance(mime, str) and mime.startswith(mime_prefix):
            found.append(inline)
    return found


def candidate_text(body: Body) -> Optional[str]:
    texts = [t for t in (dig(p, "text") for p in candidate_parts(body)) if isinstance(t, str) and t]
    return "\n".join(texts) if texts else None


def sample_rate(mime_type: Optional[str]) -> int:
    match = _SAMPLE_RATE.search(mime_type or "")
    return int(match.group(1)) if match else DEFAULT_PCM_SAMPLE_RATE


def image_extension_for(mime_type: Optional[str]) -> str:
    return {"image/jpeg": "jpg", "image/webp": "webp", "image/gif": "gif"}.get(mime_type or "", "png")


__all__ = [
    "DEFAULT_PCM_SAMPLE_RATE",
    "candidate_parts",
    "candidate_text",
    "image_extension_for",
    "inline_parts",
    "model_from_endpoint",
    "sample_rate",
    "usage_from_metadata",
]
