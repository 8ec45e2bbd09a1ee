"""Audio quantities for one request (speech synthesis or transcription)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AudioMetrics:
    """Audio usage.

    Attributes:
        duration_seconds: Length of the transcribed or synthesized audio, when known.
        input_characters: Characters of text sent for synthesis, when known.
    """

    duration_seconds: Optional[float] = None
    input_characters: Optional[int] = None


__all__ = ["AudioMetrics"]
