"""xAI handlers.

Chat and image generation reuse the OpenAI body shapes. Video generation is
asynchronous: the job is polled until ``status`` is ``done``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from ..base.handlers.capabilities import HandlerCapabilities
from ..base.handlers.handler import Body, ProviderHandler
from ..base.media.helpers import store_download
from ..base.models_parts.metrics import Metrics
from ..base.models_parts.model_type import ModelType
from ..base.models_parts.video_metrics import VideoMetrics
from ..base.utils import coerce_float, dig, non_empty_str
from ..openai.handlers import ImageHandler as OpenAIImageHandler, TextHandler

if TYPE_CHECKING:
    from ..base.media.store import MediaStore


class ChatHandler(TextHandler):
    endpoints = ("/v1/chat/completions", "/v1/responses")


class ImageHandler(OpenAIImageHandler):
    endpoints = ("/v1/images/generations",)


class VideoHandler(ProviderHandler):
    endpoints = (
        "/v1/videos/generations",
        "/v1/videos/generations/{request_id}",
        "/v1/videos/{request_id}",
    )
    model_type = ModelType.VIDEO
    capabilities = HandlerCapabilities(skips_response=True, has_media=True)

    def should_skip_response(self, body: Body) -> bool:
        return body.get("status") != "done"

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        return Metrics(video=VideoMetrics(count=1, duration_seconds=coerce_float(dig(body, "video", "duration"))))

    def extract_response_text(self, body: Body) -> Optional[str]:
        return non_empty_str(dig(body, "video", "url"))

    def store_media(self, request_id: str, body: Body, raw: Optional[bytes], store: "MediaStore") -> List[str]:
        path = store_download(store, request_id, 0, dig(body, "video", "url"), "mp4")
        return [path] if path else []


__all__ = ["ChatHandler", "ImageHandler", "VideoHandler"]
