"""OpenAI response handlers.

One handler per response shape. Declaration order in
:class:`~crux_meter.openai.provider.OpenAIProvider` puts
:class:`ResponsesImageHandler` after :class:`TextHandler` so it can claim
``/v1/responses`` bodies that carry generated images.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from ..base.handlers.capabilities import HandlerCapabilities
from ..base.handlers.handler import Body, ProviderHandler
from ..base.media.helpers import audio_extension, store_base64, store_download, store_url
from ..base.models_parts.audio_metrics import AudioMetrics
from ..base.models_parts.image_metrics import ImageMetrics
from ..base.models_parts.metrics import Metrics
from ..base.models_parts.model_type import ModelType
from ..base.models_parts.token_metrics import TokenMetrics
from ..base.models_parts.video_metrics import VideoMetrics
from ..base.processing.response_processor import REQUEST_DATA_KEY
from ..base.utils import as_dict, as_list, coerce_float, coerce_int, dig, first_present, int_or_zero, non_empty_str
from ..config.env import provider_api_key
from .helpers import (
    BASE64_IMAGE_PLACEHOLDER,
    completion_text,
    image_data_text,
    image_generation_calls,
    is_completions_api,
    is_responses_api,
    map_service_tier,
    responses_text,
)
from .stream_helpers import OPENAI_TEXT_STREAM

if TYPE_CHECKING:
    from ..base.media.store import MediaStore

OPENAI_API_BASE = "https://api.openai.com"


class ServiceTierMixin:
    """Read the billed tier from the ``service_tier`` echoed in the response."""

    def extract_pricing_tier_from_response(self, body: Body) -> Optional[str]:
        return map_service_tier(body.get("service_tier"))


class TextHandler(ServiceTierMixin, ProviderHandler):
    """Chat Completions, legacy Completions and the Responses API."""

    endpoints = ("/v1/chat/completions", "/v1/completions", "/v1/responses")
    model_type = ModelType.TEXT
    capabilities = HandlerCapabilities(
        streams_response=True,
        matches_response_shape=True,
        pricing_tier_from_response=True,
    )
    stream_handler = OPENAI_TEXT_STREAM

    def matches_response(self, body: Body) -> bool:
        return is_responses_api(body) or is_completions_api(body)

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        return Metrics(tokens=TokenMetrics.from_usage(body.get("usage")))

    def extract_response_text(self, body: Body) -> Optional[str]:
        return completion_text(body) or responses_text(body)

    def extract_finish_reason(self, body: Body) -> Optional[str]:
        return non_empty_str(first_present(body, ("choices", 0, "finish_reason"), "status"))


class ResponsesImageHandler(ServiceTierMixin, ProviderHandler):
    """Responses API bodies whose output includes ``image_generation_call`` items."""

    endpoints = ("/v1/responses",)
    model_type = ModelType.IMAGE
    capabilities = HandlerCapabilities(
        has_media=True,
        matches_response_shape=True,
        pricing_tier_from_response=True,
    )

    def matches_response(self, body: Body) -> bool:
        return is_responses_api(body) and bool(image_generation_calls(body))

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        usage = as_dict(body.get("usage"))
        return Metrics(
            tokens=TokenMetrics(
                prompt_tokens=int_or_zero(usage.get("input_tokens")),
                completion_tokens=int_or_zero(usage.get("output_tokens")),
                cached_tokens=int_or_zero(
                    first_present(usage, ("input_tokens_details", "cached_tokens"), ("prompt_tokens_details", "cached_tokens"))
                ),
            ),
            image=ImageMetrics(count=len(image_generation_calls(body))),
        )

    def extract_response_text(self, body: Body) -> Optional[str]:
        parts: List[str] = []
        for item in as_list(body.get("output")):
            kind = dig(item, "type")
            if kind == "image_generation_call":
                revised = dig(item, "revised_prompt")
                if isinstance(dig(item, "result"), str) or not isinstance(revised, str):
                    parts.append(BASE64_IMAGE_PLACEHOLDER)
                else:
                    parts.append(revised)
            elif kind == "message":
                for content in as_list(dig(item, "content")):
                    text = dig(content, "text")
                    if isinstance(text, str) and text:
                        parts.append(text)
        return "\n".join(parts) if parts else None

    def extract_finish_reason(self, body: Body) -> Optional[str]:
        return non_empty_str(body.get("status"))

    def store_media(self, request_id: str, body: Body, raw: Optional[bytes], store: "MediaStore") -> List[str]:
        stored: List[str] = []
        for call in image_generation_calls(body):
            path = store_base64(store, request_id, len(stored), call.get("result"), "png")
            if path:
                stored.append(path)
        return stored


class ImageHandler(ProviderHandler):
    """DALL-E and gpt-image generations, edits and variations.

    DALL-E bodies carry no ``model``; the processor falls back to the request.
    """

    endpoints = ("/v1/images/generations", "/v1/images/edits", "/v1/images/variations")
    model_type = ModelType.IMAGE
    capabilities = HandlerCapabilities(has_media=True)

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        usage = as_dict(body.get("usage"))
        prompt = int_or_zero(usage.get("input_tokens"))
        completion = int_or_zero(usage.get("output_tokens"))
        tokens = TokenMetrics(prompt_tokens=prompt, completion_tokens=completion) if prompt + completion > 0 else None
        return Metrics(tokens=tokens, image=ImageMetrics(count=len(as_list(body.get("data")))))

    def extract_response_text(self, body: Body) -> Optional[str]:
        return image_data_text(body)

    def store_media(self, request_id: str, body: Body, raw: Optional[bytes], store: "MediaStore") -> List[str]:
        stored: List[str] = []
        for index, item in enumerate(as_list(body.get("data"))):
            if dig(item, "b64_json") is not None:
                path = store_base64(store, request_id, index, item["b64_json"], "png")
            else:
                path = store_url(store, request_id, index, dig(item, "url"))
            if path:
                stored.append(path)
        return stored


class VideoHandler(ProviderHandler):
    """Sora video jobs; only the completed job is recorded."""

    endpoints = ("/v1/videos", "/v1/videos/{id}")
    model_type = ModelType.VIDEO
    capabilities = HandlerCapabilities(
        skips_response=True,
        has_expiration=True,
        has_media=True,
        extracts_model_from_response=True,
    )

    def should_skip_response(self, body: Body) -> bool:
        return body.get("status") != "completed"

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        return Metrics(video=VideoMetrics(count=1, duration_seconds=coerce_float(body.get("seconds"))))

    def extract_response_text(self, body: Body) -> Optional[str]:
        return non_empty_str(body.get("prompt"))

    def extract_expires_at(self, body: Body) -> Optional[datetime]:
        timestamp = coerce_int(body.get("expires_at"))
        return datetime.fromtimestamp(timestamp, tz=timezone.utc) if timestamp is not None else None

    def store_media(self, request_id: str, body: Body, raw: Optional[bytes], store: "MediaStore") -> List[str]:
        video_id = non_empty_str(body.get("id"))
        api_key = provider_api_key("openai")
        if not video_id or not api_key:
            return []
        url = f"{OPENAI_API_BASE}/v1/videos/{video_id}/content"
        path = store_download(store, request_id, 0, url, "mp4", {"Authorization": f"Bearer {api_key}"})
        return [path] if path else []


class EmbeddingHandler(ProviderHandler):
    endpoints = ("/v1/embeddings",)
    model_type = ModelType.EMBEDDING
    capabilities = HandlerCapabilities(matches_response_shape=True)

    def matches_response(self, body: Body) -> bool:
        return body.get("object") == "list" and dig(body, "data", 0, "embedding") is not None

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        usage = as_dict(body.get("usage"))
        prompt = int_or_zero(usage.get("prompt_tokens"))
        total = int_or_zero(usage.get("total_tokens"))
        return Metrics(tokens=TokenMetrics(prompt_tokens=prompt, completion_tokens=max(0, total - prompt)))

    def extract_response_text(self, body: Body) -> Optional[str]:
        vector = dig(body, "data", 0, "embedding")
        if not isinstance(vector, list):
            return None
        return f"[embedding: {len(vector)} dimensions]"


class TranscriptionHandler(ProviderHandler):
    """Whisper and gpt-4o transcription/translation.

    Duration comes from ``duration`` (verbose formats) or from
    ``usage.seconds`` when the usage block is duration-typed.
    """

    endpoints = ("/v1/audio/transcriptions", "/v1/audio/translations")
    model_type = ModelType.STT

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        usage = as_dict(body.get("usage"))
        duration = coerce_float(body.get("duration"))
        if duration is None and usage.get("type") == "duration":
            duration = coerce_float(usage.get("seconds"))
        return Metrics(
            tokens=TokenMetrics(
                prompt_tokens=int_or_zero(first_present(usage, "prompt_tokens", "input_tokens")),
                completion_tokens=int_or_zero(first_present(usage, "completion_tokens", "output_tokens")),
            ),
            audio=AudioMetrics(duration_seconds=duration),
        )

    def extract_response_text(self, body: Body) -> Optional[str]:
        return non_empty_str(body.get("text"))


class SpeechHandler(ProviderHandler):
    """Text-to-speech; the response is raw audio so the model comes from the request."""

    endpoints = ("/v1/audio/speech",)
    model_type = ModelType.TTS
    capabilities = HandlerCapabilities(
        binary_response=True,
        has_media=True,
        extracts_model_from_request=True,
    )

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        text = request_data.get("input") if request_data else None
        return Metrics(audio=AudioMetrics(input_characters=len(text) if isinstance(text, str) else None))

    def extract_model(self, body: Body) -> Optional[str]:
        return None

    def extract_model_from_request(self, request_data: Body, endpoint: Optional[str]) -> Optional[str]:
        return non_empty_str(request_data.get("model"))

    def extract_response_text(self, body: Body) -> Optional[str]:
        return "[audio]"

    def store_media(self, request_id: str, body: Body, raw: Optional[bytes], store: "MediaStore") -> List[str]:
        if not raw:
            return []
        response_format = non_empty_str(dig(body, REQUEST_DATA_KEY, "response_format")) or "mp3"
        return [store.store(request_id, 0, raw, audio_extension(None, response_format, default=response_format))]


__all__ = [
    "EmbeddingHandler",
    "ImageHandler",
    "ResponsesImageHandler",
    "ServiceTierMixin",
    "SpeechHandler",
    "TextHandler",
    "TranscriptionHandler",
    "VideoHandler",
]
