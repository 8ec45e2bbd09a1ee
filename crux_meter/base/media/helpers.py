"""Shared media persistence helpers used by provider handlers."""

from __future__ import annotations

import base64
import binascii
import io
import posixpath
import wave
from typing import Mapping, Optional
from urllib.parse import urlparse

from .store import MediaStore

_IMAGE_MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/bmp": "bmp",
    "image/avif": "avif",
    "image/heic": "heic",
    "image/heif": "heif",
}

_AUDIO_MIME_EXTENSIONS = {
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/ogg": "ogg",
    "audio/opus": "opus",
    "audio/aac": "aac",
    "audio/flac": "flac",
}


def normalize_content_type(content_type: Optional[str]) -> Optional[str]:
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower() or None


def image_extension(url: Optional[str], content_type: Optional[str], default: str = "png") -> str:
    """Pick a file extension from the MIME type, then the URL path."""
    mime = normalize_content_type(content_type)
    if mime in _IMAGE_MIME_EXTENSIONS:
        return _IMAGE_MIME_EXTENSIONS[mime]
    ext = posixpath.splitext(urlparse(url or "").path)[1].lstrip(".").lower()
    if ext == "jpeg":
        return "jpg"
    if ext in _IMAGE_MIME_EXTENSIONS.values():
        return ext
    return default


def audio_extension(content_type: Optional[str], response_format: Optional[str] = None, default: str = "mp3") -> str:
    if response_format in ("mp3", "opus", "aac", "flac", "wav", "pcm"):
        return "wav" if response_format == "pcm" else response_format
    return _AUDIO_MIME_EXTENSIONS.get(normalize_content_type(content_type) or "", default)


def decode_base64(data: object) -> Optional[bytes]:
    if not isinstance(data, str) or not data:
        return None
    try:
        decoded = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        return None
    return decoded or None


def store_base64(store: MediaStore, request_id: str, index: int, data: object, extension: str) -> Optional[str]:
    content = decode_base64(data)
    if content is None:
        return None
    return store.store(request_id, index, content, extension)


def store_url(store: MediaStore, request_id: str, index: int, url: object, default_extension: str = "png") -> Optional[str]:
    """Download ``url`` and store it; image extension inferred from the response."""
    if not isinstance(url, str) or not url:
        return None
    fetched = store.fetch(url)
    if fetched is None:
        return None
    content, content_type = fetched
    return store.store(request_id, index, content, image_extension(url, content_type, default_extension))


def store_download(
    store: MediaStore,
    request_id: str,
    index: int,
    url: object,
    extension: str,
    headers: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """Download ``url`` (optionally authenticated) and store it under a fixed extension."""
    if not isinstance(url, str) or not url:
        return None
    fetched = store.fetch(url, headers)
    if fetched is None or not fetched[0]:
        return None
    return store.store(request_id, index, fetched[0], extension)


def pcm_to_wav(pcm: bytes, sample_rate: int = 24000, channels: int = 1, sample_width: int = 2) -> bytes:
    """Wrap raw little-endian PCM in a WAV container."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(sample_width)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)
    return buffer.getvalue()


__all__ = [
    "audio_extension",
    "decode_base64",
    "image_extension",
    "normalize_content_type",
    "pcm_to_wav",
    "store_base64",
    "store_download",
    "store_url",
]
