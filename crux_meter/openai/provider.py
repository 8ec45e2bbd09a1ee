"""OpenAI provider declaration.

Handler order matters: when several handlers cover one endpoint, the
registry asks shape-matching specialists in reverse declaration order, so a
specialist is declared after the default handler it overrides.
"""

from __future__ import annotations

from typing import List, Optional

from ..base.handlers.handler import Body, ProviderHandler
from ..base.handlers.provider import Provider
from .handlers import (
    EmbeddingHandler,
    ImageHandler,
    ResponsesImageHandler,
    SpeechHandler,
    TextHandler,
    TranscriptionHandler,
    VideoHandler,
)
from .helpers import map_service_tier


class OpenAIProvider(Provider):
    name = "openai"
    display_name = "OpenAI"
    hosts = ("api.openai.com",)

    def build_handlers(self) -> List[ProviderHandler]:
        return [
            ImageHandler(),
            VideoHandler(),
            EmbeddingHandler(),
            TranscriptionHandler(),
            SpeechHandler(),
            TextHandler(),
            ResponsesImageHandler(),
        ]

    def extract_pricing_tier_from_request(self, request_data: Body) -> Optional[str]:
        return map_service_tier(request_data.get("service_tier")) if request_data else None


__all__ = ["OpenAIProvider"]
