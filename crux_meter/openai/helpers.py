"""OpenAI response-shape helpers.

Purpose:
- Side-effect-free readers for the Chat Completions and Responses API body
  shapes, shared by the OpenAI handlers and by OpenAI-compatible providers.
- ``service_tier`` mapping onto catalog pricing tiers.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from ..base.handlers.handler import Body
from ..base.utils import as_list, dig, non_empty_str

IMAGE_GENERATION_CALL = "image_generation_call"
BASE64_IMAGE_PLACEHOLDER = "[base64 image data]"

# ``default``/``auto`` mean "whatever the account is billed at": returning None
# lets the cost calculator apply the configured default tier.
_ACCOUNT_DEFAULT_TIERS = frozenset({"default", "auto"})


def map_service_tier(service_tier: Any) -> Optional[str]:
    """Map an OpenAI ``service_tier`` value to a catalog tier name."""
    tier = non_empty_str(service_tier)
    if tier is None or tier in _ACCOUNT_DEFAULT_TIERS:
        return None
    return tier


def is_responses_api(body: Body) -> bool:
    return isinstance(body, Mapping) and body.get("object") == "response"


def is_completions_api(body: Body) -> bool:
    return isinstance(body, Mapping) and body.get("object") in ("chat.completion", "text_completion")


def completion_text(body: Body) -> Optional[str]:
    """Join ``choices[*].message.content`` (or legacy ``choices[*].text``)."""
    parts: List[str] = []
    for choice in as_list(body.get("choices")):
        content = dig(choice, "message", "content")
        if content is None:
            content = dig(choice, "text")
        if isinstance(content, str) and content:
            parts.append(content)
    return "\n".join(parts) if parts else None


def responses_text(body: Body) -> Optional[str]:
    """Join ``output[*].content[*].text`` from a Responses API body."""
    parts: List[str] = []
    for item in as_list(body.get("output")):
        for content in as_list(dig(item, "content")):
            text = dig(content, "text")
            if isinstance(text, str) and text:
                parts.append(text)
    return "\n".join(parts) if parts else None


def image_generation_calls(body: Body) -> List[Mapping[str, Any]]:
    return [
        item
        for item in as_list(body.get("output"))
        if isinstance(item, Mapping) and item.get("type") == IMAGE_GENERATION_CALL
    ]


def image_data_text(body: Body) -> Optional[str]:
    """URLs (or a base64 placeholder) of ``data[*]`` image items."""
    parts: List[str] = []
    for item in as_list(body.get("data")):
        url = dig(item, "url")
        if isinstance(url, str):
            parts.append(url)
        elif dig(item, "b64_json") is not None:
            parts.append(BASE64_IMAGE_PLACEHOLDER)
    return "\n".join(parts) if parts else None


__all__ = [
    "BASE64_IMAGE_PLACEHOLDER",
    "IMAGE_GENERATION_CALL",
    "completion_text",
    "image_data_text",
    "image_generation_calls",
    "is_completions_api",
    "is_responses_api",
    "map_service_tier",
    "responses_text",
]
