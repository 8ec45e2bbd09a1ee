"""ElevenLabs text-to-speech handler.

The response is raw audio: characters and model come from the request, and
the audio itself is the only thing worth storing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from ..base.handlers.capabilities import HandlerCapabilities
from ..base.handlers.handler import Body, ProviderHandler
from ..base.models_parts.audio_metrics import AudioMetrics
from ..base.models_parts.metrics import Metrics
from ..base.models_parts.model_type import ModelType
from ..base.processing.response_processor import REQUEST_DATA_KEY
from ..base.utils import dig, non_empty_str

if TYPE_CHECKING:
    from ..base.media.store import MediaStore

DEFAULT_OUTPUT_FORMAT = "mp3_44100_128"


class TextToSpeechHandler(ProviderHandler):
    endpoints = ("/v1/text-to-speech/{voice_id}", "/v1/text-to-speech/{voice_id}/stream")
    model_type = ModelType.TTS
    capabilities = HandlerCapabilities(
        binary_response=True,
        has_media=True,
        extracts_model_from_request=True,
    )

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        text = (request_data or {}).get("text")
        return Metrics(audio=AudioMetrics(input_characters=len(text) if isinstance(text, str) else None))

    def extract_model(self, body: Body) -> Optional[str]:
        return None

    def extract_model_from_request(self, request_data: Body, endpoint: Optional[str]) -> Optional[str]:
        return non_empty_str(request_data.get("model_id"))

    def extract_response_text(self, body: Body) -> Optional[str]:
        return "[audio]"

    def store_media(self, request_id: str, body: Body, raw: Optional[bytes], store: "MediaStore") -> List[str]:
        if not raw:
            return []
        output_format = non_empty_str(dig(body, REQUEST_DATA_KEY, "output_format")) or DEFAULT_OUTPUT_FORMAT
        extension = "pcm" if "pcm" in output_format else "mp3"
        return [store.store(request_id, 0, raw, extension)]


__all__ = ["TextToSpeechHandler"]
