"""OpenRouter handlers.

OpenRouter proxies many upstream models behind one chat completions
endpoint. Image-capable models return generated images as data URLs under
``choices[*].message.images``; :class:`ImageHandler` claims those bodies.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, List, Optional

from ..base.handlers.capabilities import HandlerCapabilities
from ..base.handlers.handler import Body
from ..base.media.helpers import store_base64
from ..base.models_parts.image_metrics import ImageMetrics
from ..base.models_parts.metrics import Metrics
from ..base.models_parts.model_type import ModelType
from ..base.models_parts.token_metrics import TokenMetrics
from ..base.utils import as_list, dig
from ..openai.handlers import TextHandler
from ..openai.stream_helpers import OPENAI_TEXT_STREAM

if TYPE_CHECKING:
    from ..base.media.store import MediaStore

_DATA_URL = re.compile(r"^data:image/([a-z]+);base64,(.+)$", re.IGNORECASE | re.DOTALL)


def message_images(body: Body) -> List[Any]:
    images: List[Any] = []
    for choice in as_list(body.get("choices")):
        images.extend(as_list(dig(choice, "message", "images")))
    return images


class ChatHandler(TextHandler):
    endpoints = ("/api/v1/chat/completions",)
    capabilities = HandlerCapabilities(
        streams_response=True,
        matches_response_shape=True,
        extracts_model_from_response=True,
    )
    stream_handler = OPENAI_TEXT_STREAM

    def matches_response(self, body: Body) -> bool:
        return "choices" in body and "usage" in body

    def extract_pricing_tier_from_response(self, body: Body) -> Optional[str]:
        return None


class ImageHandler(ChatHandler):
    model_type = ModelType.IMAGE
    capabilities = HandlerCapabilities(
        has_media=True,
        matches_response_shape=True,
        extracts_model_from_response=True,
    )
    stream_handler = None

    def matches_response(self, body: Body) -> bool:
        return bool(as_list(dig(body, "choices", 0, "message", "images")))

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        return Metrics(
            tokens=TokenMetrics.from_usage(body.get("usage")),
            image=ImageMetrics(count=len(message_images(body))),
        )

    def extract_response_text(self, body: Body) -> Optional[str]:
        parts: List[str] = []
        content = dig(body, "choices", 0, "message", "content")
        if isinstance(content, str) and content:
            parts.append(content)
        count = len(message_images(body))
        if count:
            parts.append(f"[{count} generated image(s)]")
        return "\n".join(parts) if parts else None

    def store_media(self, request_id: str, body: Body, raw: Optional[bytes], store: "MediaStore") -> List[str]:
        stored: List[str] = []
        for image in message_images(body):
            url = dig(image, "image_url", "url")
            match = _DATA_URL.match(url) if isinstance(url, str) else None
            if match is None:
                continue
            extension = match.group(1).lower()
            path = store_base64(store, request_id, len(stored), match.group(2), "jpg" if extension == "jpeg" else extension)
            if path:
                stored.append(path)
        return stored


__all__ = ["ChatHandler", "ImageHandler", "message_images"]
