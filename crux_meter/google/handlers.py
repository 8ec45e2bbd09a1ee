"""Google Gemini API handlers.

``generateContent`` is a single multimodal endpoint: the same URL returns
text, images or speech depending on the model. :class:`GenerateContentHandler`
is the default and the image and speech handlers, declared after it, claim
bodies by the MIME type of their inline parts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..base.handlers.capabilities import HandlerCapabilities
from ..base.handlers.handler import Body, ProviderHandler
from ..base.media.helpers import decode_base64, pcm_to_wav, store_base64, store_download
from ..base.models_parts.audio_metrics import AudioMetrics
from ..base.models_parts.image_metrics import ImageMetrics
from ..base.models_parts.metrics import Metrics
from ..base.models_parts.model_type import ModelType
from ..base.models_parts.token_metrics import TokenMetrics
from ..base.models_parts.video_metrics import VideoMetrics
from ..base.utils import as_list, coerce_float, dig, first_present, int_or_zero, non_empty_str
from ..config.env import provider_api_key
from .helpers import (
    candidate_parts,
    candidate_text,
    image_extension_for,
    inline_parts,
    model_from_endpoint,
    sample_rate,
    usage_from_metadata,
)
from .stream_helpers import GEMINI_CONTENT_STREAM

if TYPE_CHECKING:
    from ..base.media.store import MediaStore

GENERATED_IMAGE_PLACEHOLDER = "[generated image]"
GENERATED_VIDEO_PLACEHOLDER = "[generated video]"

_CONTENT_ENDPOINTS = (
    "/{version}/models/{model}:generateContent",
    "/{version}/models/{model}:streamGenerateContent",
)


class EndpointModelMixin:
    """Gemini responses rarely echo the model; the URL path always names it."""

    def extract_model(self, body: Body) -> Optional[str]:
        return non_empty_str(body.get("modelVersion"))

    def extract_model_from_request(self, request_data: Body, endpoint: Optional[str]) -> Optional[str]:
        return model_from_endpoint(endpoint)


class EmbeddingHandler(EndpointModelMixin, ProviderHandler):
    """``embedContent`` and ``batchEmbedContents``.

    Embedding responses carry no usage; prompt tokens are only recorded when
    ``usageMetadata`` is present.
    """

    endpoints = (
        "/{version}/models/{model}:embedContent",
        "/{version}/models/{model}:batchEmbedContents",
    )
    model_type = ModelType.EMBEDDING
    capabilities = HandlerCapabilities(matches_response_shape=True, extracts_model_from_request=True)

    def matches_response(self, body: Body) -> bool:
        return dig(body, "embedding", "values") is not None or "embeddings" in body

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        return Metrics(tokens=TokenMetrics(prompt_tokens=int_or_zero(dig(body, "usageMetadata", "promptTokenCount"))))

    def extract_model(self, body: Body) -> Optional[str]:
        return None

    def extract_response_text(self, body: Body) -> Optional[str]:
        values = dig(body, "embedding", "values")
        if isinstance(values, list):
            return f"[embedding: {len(values)} dimensions]"
        embeddings = body.get("embeddings")
        if isinstance(embeddings, list):
            return f"[batch embeddings: {len(embeddings)} items]"
        return None


class GenerateContentHandler(EndpointModelMixin, ProviderHandler):
    endpoints = _CONTENT_ENDPOINTS
    model_type = ModelType.TEXT
    capabilities = HandlerCapabilities(
        streams_response=True,
        matches_response_shape=True,
        extracts_model_from_request=True,
    )
    stream_handler = GEMINI_CONTENT_STREAM

    def matches_response(self, body: Body) -> bool:
        return "candidates" in body or "usageMetadata" in body

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        return Metrics(tokens=usage_from_metadata(body.get("usageMetadata")))

    def extract_response_text(self, body: Body) -> Optional[str]:
        return candidate_text(body)

    def extract_finish_reason(self, body: Body) -> Optional[str]:
        return non_empty_str(dig(body, "candidates", 0, "finishReason"))


class ImageHandler(EndpointModelMixin, ProviderHandler):
    """Gemini image output (inline ``image/*`` parts) and Imagen predictions.

    Imagen answers ``:predict`` with ``predictions[*].bytesBase64Encoded`` and
    ``:generateImages`` with ``generatedImages[*].image.imageBytes``.
    """

    endpoints = _CONTENT_ENDPOINTS + (
        "/{version}/models/{model}:generateImages",
        "/{version}/models/{model}:predict",
    )
    model_type = ModelType.IMAGE
    capabilities = HandlerCapabilities(
        has_media=True,
        matches_response_shape=True,
        extracts_model_from_request=True,
        extracts_model_from_response=True,
    )

    def matches_response(self, body: Body) -> bool:
        return bool(inline_parts(body, "image/")) or "generatedImages" in body or bool(_predicted_images(body))

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        count = len(inline_parts(body, "image/"))
        count += sum(1 for image in as_list(body.get("generatedImages")) if dig(image, "image") is not None)
        count += len(_predicted_images(body))
        metadata = body.get("usageMetadata")
        tokens = usage_from_metadata(metadata).replace(reasoning_tokens=0) if metadata is not None else None
        return Metrics(tokens=tokens, image=ImageMetrics(count=count))

    def extract_response_text(self, body: Body) -> Optional[str]:
        parts: List[str] = []
        for part in candidate_parts(body):
            mime = dig(part, "inlineData", "mimeType")
            if isinstance(mime, str) and mime.startswith("image/"):
                parts.append(GENERATED_IMAGE_PLACEHOLDER)
            elif isinstance(dig(part, "text"), str) and part["text"]:
                parts.append(part["text"])
        generated = sum(1 for image in as_list(body.get("generatedImages")) if dig(image, "image") is not None)
        parts.extend([GENERATED_IMAGE_PLACEHOLDER] * (generated + len(_predicted_images(body))))
        return "\n".join(parts) if parts else None

    def store_media(self, request_id: str, body: Body, raw: Optional[bytes], store: "MediaStore") -> List[str]:
        stored: List[str] = []
        for inline in inline_parts(body, "image/"):
            path = store_base64(store, request_id, len(stored), inline.get("data"), image_extension_for(inline.get("mimeType")))
            if path:
                stored.append(path)
        for image in as_list(body.get("generatedImages")):
            path = store_base64(store, request_id, len(stored), dig(image, "image", "imageBytes"), "png")
            if path:
                stored.append(path)
        for prediction in _predicted_images(body):
            extension = image_extension_for(prediction.get("mimeType"))
            path = store_base64(store, request_id, len(stored), prediction.get("bytesBase64Encoded"), extension)
            if path:
                stored.append(path)
        return stored


class TtsHandler(EndpointModelMixin, ProviderHandler):
    """Speech output: inline ``audio/*`` parts of raw 16-bit PCM."""

    endpoints = _CONTENT_ENDPOINTS
    model_type = ModelType.TTS
    capabilities = HandlerCapabilities(
        has_media=True,
        matches_response_shape=True,
        extracts_model_from_request=True,
    )

    def matches_response(self, body: Body) -> bool:
        return bool(inline_parts(body, "audio/"))

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        characters: Optional[int] = None
        for content in as_list((request_data or {}).get("contents")):
            for part in as_list(dig(content, "parts")):
                text = dig(part, "text")
                if isinstance(text, str):
                    characters = (characters or 0) + len(text)
        metadata = body.get("usageMetadata")
        tokens = usage_from_metadata(metadata).replace(reasoning_tokens=0) if metadata is not None else None
        return Metrics(tokens=tokens, audio=AudioMetrics(input_characters=characters))

    def extract_response_text(self, body: Body) -> Optional[str]:
        return "[audio]" if inline_parts(body, "audio/") else None

    def store_media(self, request_id: str, body: Body, raw: Optional[bytes], store: "MediaStore") -> List[str]:
        for inline in inline_parts(body, "audio/"):
            pcm = decode_base64(inline.get("data"))
            if pcm is None:
                continue
            wav = pcm_to_wav(pcm, sample_rate=sample_rate(inline.get("mimeType")))
            return [store.store(request_id, 0, wav, "wav")]
        return []


class VideoHandler(EndpointModelMixin, ProviderHandler):
    """Veo long-running operations; only a finished operation is recorded."""

    endpoints = (
        "/{version}/models/{model}:predictLongRunning",
        "/{version}/models/{model}:fetchPredictOperation",
        "/{version}/models/{model}/operations/{operation}",
    )
    model_type = ModelType.VIDEO
    capabilities = HandlerCapabilities(
        skips_response=True,
        has_media=True,
        matches_response_shape=True,
        extracts_model_from_request=True,
    )

    def should_skip_response(self, body: Body) -> bool:
        return body.get("done") is not True

    def matches_response(self, body: Body) -> bool:
        if dig(body, "response", "generateVideoResponse") is not None or dig(body, "response", "videos") is not None:
            return True
        name = body.get("name")
        if isinstance(name, str) and "done" in body:
            return "veo" in name or ("/operations/" in name and model_from_endpoint(name) is not None)
        return False

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        samples = _video_samples(body)
        requested = coerce_float(
            first_present(
                request_data or {},
                ("parameters", "durationSeconds"),
                ("instances", 0, "parameters", "durationSeconds"),
            )
        )
        duration = requested * len(samples) if requested is not None and samples else None
        return Metrics(video=VideoMetrics(count=len(samples), duration_seconds=duration))

    def extract_response_text(self, body: Body) -> Optional[str]:
        samples = _video_samples(body)
        if not samples:
            return None
        return "\n".join(sample["uri"] or GENERATED_VIDEO_PLACEHOLDER for sample in samples)

    def extract_finish_reason(self, body: Body) -> Optional[str]:
        if "done" not in body:
            return None
        return "COMPLETE" if body.get("done") else "PROCESSING"

    def store_media(self, request_id: str, body: Body, raw: Optional[bytes], store: "MediaStore") -> List[str]:
        api_key = provider_api_key("google")
        headers = {"x-goog-api-key": api_key} if api_key else None
        stored: List[str] = []
        for index, sample in enumerate(_video_samples(body)):
            path = store_download(store, request_id, index, sample["uri"], "mp4", headers)
            if path:
                stored.append(path)
        return stored


def _predicted_images(body: Body) -> List[Dict[str, Any]]:
    return [p for p in as_list(body.get("predictions")) if isinstance(dig(p, "bytesBase64Encoded"), str)]


def _video_samples(body: Body) -> List[Dict[str, Optional[str]]]:
    samples = as_list(dig(body, "response", "generateVideoResponse", "generatedSamples"))
    if samples:
        return [
            {
                "uri": non_empty_str(first_present(sample, ("video", "uri"), ("video", "gcsUri"))),
                "mimeType": non_empty_str(dig(sample, "video", "mimeType")) or "video/mp4",
            }
            for sample in samples
        ]
    return [
        {
            "uri": non_empty_str(first_present(video, "gcsUri", "uri")),
            "mimeType": non_empty_str(dig(video, "mimeType")) or "video/mp4",
        }
        for video in as_list(dig(body, "response", "videos"))
    ]


__all__ = [
    "EmbeddingHandler",
    "EndpointModelMixin",
    "GenerateContentHandler",
    "ImageHandler",
    "TtsHandler",
    "VideoHandler",
]
