"""ElevenLabs provider declaration."""

from __future__ import annotations

from typing import List, Optional

from ..base.handlers.handler import Body, ProviderHandler
from ..base.handlers.provider import Provider
from ..base.utils import non_empty_str
from .handlers import TextToSpeechHandler


class ElevenLabsProvider(Provider):
    name = "elevenlabs"
    display_name = "ElevenLabs"
    hosts = ("api.elevenlabs.io",)

    def build_handlers(self) -> List[ProviderHandler]:
        return [TextToSpeechHandler()]

    def extract_model_from_request(self, request_data: Body, endpoint: Optional[str] = None) -> Optional[str]:
        if not request_data:
            return None
        return non_empty_str(request_data.get("model_id")) or non_empty_str(request_data.get("model"))


__all__ = ["ElevenLabsProvider"]
