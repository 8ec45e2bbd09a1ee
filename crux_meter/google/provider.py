"""Google Gemini provider declaration."""

from __future__ import annotations

from typing import List, Optional

from ..base.handlers.handler import Body, ProviderHandler
from ..base.handlers.provider import Provider
from ..base.utils import non_empty_str
from .handlers import EmbeddingHandler, GenerateContentHandler, ImageHandler, TtsHandler, VideoHandler
from .helpers import model_from_endpoint


class GoogleProvider(Provider):
    name = "google"
    display_name = "Google"
    hosts = ("generativelanguage.googleapis.com",)

    def build_handlers(self) -> List[ProviderHandler]:
        # GenerateContentHandler is the default for the shared content
        # endpoints; Image and Tts are shape specialists declared after it.
        return [
            EmbeddingHandler(),
            GenerateContentHandler(),
            ImageHandler(),
            TtsHandler(),
            VideoHandler(),
        ]

    def extract_model(self, body: Body) -> Optional[str]:
        return non_empty_str(body.get("modelVersion")) if isinstance(body, dict) else None

    def extract_model_from_request(self, request_data: Body, endpoint: Optional[str] = None) -> Optional[str]:
        return model_from_endpoint(endpoint) or super().extract_model_from_request(request_data, endpoint)


__all__ = ["GoogleProvider"]
