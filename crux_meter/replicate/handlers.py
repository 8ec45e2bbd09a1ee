"""Replicate prediction handlers.

Every model runs behind the same ``/v1/models/{owner}/{model}/predictions``
endpoint, so the handlers are told apart by the shape of ``output``:

- video: a single URL string
- text: a string, or a list of string tokens that are not URLs
- image: a list of URL strings

A prediction created without ``Prefer: wait`` comes back ``starting`` or
``processing`` with no output yet; those responses are not recorded.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Optional
from urllib.parse import urlsplit

from ..base.handlers.capabilities import HandlerCapabilities
from ..base.handlers.handler import Body, ProviderHandler
from ..base.media.helpers import store_download, store_url
from ..base.models_parts.image_metrics import ImageMetrics
from ..base.models_parts.metrics import Metrics
from ..base.models_parts.model_type import ModelType
from ..base.models_parts.token_metrics import TokenMetrics
from ..base.models_parts.video_metrics import VideoMetrics
from ..base.utils import coerce_float, dig, int_or_zero, non_empty_str

if TYPE_CHECKING:
    from ..base.media.store import MediaStore

PREDICTIONS_ENDPOINT = "/v1/models/{owner}/{model}/predictions"
PENDING_STATUSES = frozenset({"starting", "processing"})


def is_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parts = urlsplit(value)
    return parts.scheme in ("http", "https", "data") and bool(parts.netloc or parts.scheme == "data")


def _string_list(output: Any) -> List[str]:
    if not isinstance(output, list) or not output or not isinstance(output[0], str):
        return []
    return [item for item in output if isinstance(item, str)]


class PredictionHandler(ProviderHandler):
    """Shared shape checks for a Replicate prediction object."""

    endpoints = (PREDICTIONS_ENDPOINT,)

    @staticmethod
    def is_prediction(body: Body) -> bool:
        return isinstance(body, dict) and "urls" in body and "status" in body

    def should_skip_response(self, body: Body) -> bool:
        return body.get("status") in PENDING_STATUSES

    def extract_finish_reason(self, body: Body) -> Optional[str]:
        return non_empty_str(body.get("status"))


class ImageHandler(PredictionHandler):
    model_type = ModelType.IMAGE
    capabilities = HandlerCapabilities(skips_response=True, has_media=True, matches_response_shape=True)

    def matches_response(self, body: Body) -> bool:
        if not self.is_prediction(body):
            return False
        urls = _string_list(body.get("output"))
        return bool(urls) and is_url(urls[0])

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        output = body.get("output")
        count = len(output) if isinstance(output, list) else 0
        return Metrics(image=ImageMetrics(count=count))

    def extract_response_text(self, body: Body) -> Optional[str]:
        urls = _string_list(body.get("output"))
        return "\n".join(urls) if urls else None

    def store_media(self, request_id: str, body: Body, raw: Optional[bytes], store: "MediaStore") -> List[str]:
        stored = []
        for index, url in enumerate(_string_list(body.get("output"))):
            path = store_url(store, request_id, index, url)
            if path:
                stored.append(path)
        return stored


class TextHandler(PredictionHandler):
    model_type = ModelType.TEXT
    capabilities = HandlerCapabilities(skips_response=True, matches_response_shape=True)

    def matches_response(self, body: Body) -> bool:
        if not self.is_prediction(body):
            return False
        output = body.get("output")
        if isinstance(output, str):
            return not is_url(output)
        tokens = _string_list(output)
        return bool(tokens) and not is_url(tokens[0])

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        return Metrics(
            tokens=TokenMetrics(
                prompt_tokens=int_or_zero(dig(body, "metrics", "input_token_count")),
                completion_tokens=int_or_zero(dig(body, "metrics", "output_token_count")),
            )
        )

    def extract_response_text(self, body: Body) -> Optional[str]:
        output = body.get("output")
        if isinstance(output, str):
            return output
        tokens = _string_list(output)
        return "".join(tokens) if tokens else None


class VideoHandler(PredictionHandler):
    model_type = ModelType.VIDEO
    capabilities = HandlerCapabilities(skips_response=True, has_media=True, matches_response_shape=True)

    def matches_response(self, body: Body) -> bool:
        return self.is_prediction(body) and isinstance(body.get("output"), str) and is_url(body["output"])

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        duration = coerce_float(dig(request_data or {}, "input", "duration"))
        return Metrics(video=VideoMetrics(count=1, duration_seconds=duration))

    def extract_response_text(self, body: Body) -> Optional[str]:
        output = body.get("output")
        return output if is_url(output) else None

    def store_media(self, request_id: str, body: Body, raw: Optional[bytes], store: "MediaStore") -> List[str]:
        output = body.get("output")
        if not is_url(output):
            return []
        extension = output.rsplit(".", 1)[-1].lower() if output.lower().endswith((".webm", ".mov")) else "mp4"
        path = store_download(store, request_id, 0, output, extension)
        return [path] if path else []


__all__ = ["PredictionHandler", "ImageHandler", "TextHandler", "VideoHandler", "is_url"]
