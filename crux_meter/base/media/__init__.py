"""Media storage and audio metadata boundaries."""

from .audio import extract_audio_duration
from .helpers import (
    audio_extension,
    decode_base64,
    image_extension,
    pcm_to_wav,
    store_base64,
    store_download,
    store_url,
)
from .store import LocalMediaStore, MediaStore

__all__ = [
    "LocalMediaStore",
    "MediaStore",
    "audio_extension",
    "decode_base64",
    "extract_audio_duration",
    "image_extension",
    "pcm_to_wav",
    "store_base64",
    "store_download",
    "store_url",
]
