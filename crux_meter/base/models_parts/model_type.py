"""
Model type classification recorded with every request.

``ModelType`` is what a request *did* (text generation, speech synthesis, ...),
which can differ from the catalog's coarser pricing ``type``: the catalog only
knows ``audio`` while requests are either text-to-speech or speech-to-text.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class ModelType(str, Enum):
    """Kind of work performed by a tracked request."""

    TEXT = "text"
    EMBEDDING = "embedding"
    IMAGE = "image"
    VIDEO = "video"
    TTS = "tts"
    STT = "stt"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def from_pricing_type(cls, pricing_type: Optional[str]) -> Optional["ModelType"]:
        """Map a catalog ``type`` to a model type.

        ``audio`` returns ``None``: the caller must inspect capabilities or the
        model slug to choose between TTS and STT.
        """
        if pricing_type in (None, "audio"):
            return None
        try:
            return cls(pricing_type)
        except ValueError:
            return None

    @classmethod
    def from_audio_slug(cls, slug: str) -> "ModelType":
        lower = slug.lower()
        if "tts" in lower or "speech" in lower:
            return cls.TTS
        return cls.STT


_LABELS = {
    ModelType.TEXT: "Text",
    ModelType.EMBEDDING: "Embedding",
    ModelType.IMAGE: "Image",
    ModelType.VIDEO: "Video",
    ModelType.TTS: "Text-to-Speech",
    ModelType.STT: "Speech-to-Text",
}


__all__ = ["ModelType"]
