"""Audio duration extraction from raw audio bytes.

Uses ``mutagen`` when the optional ``audio`` extra is installed. Returns
``None`` when mutagen is missing, the format is unrecognized, or parsing
fails; it never raises.
"""
from __future__ import annotations

import io
from typing import Optional

from ..logging import get_logger

logger = get_logger("meter.media")


def extract_audio_duration(raw: Optional[bytes]) -> Optional[float]:
    if not raw:
        return None
    try:
        import mutagen
    except ImportError:
        return None
    try:
        parsed = mutagen.File(io.BytesIO(raw))
    except Exception:  # mutagen raises format-specific errors
        logger.debug("audio duration extraction failed", exc_info=True)
        return None
    length = getattr(getattr(parsed, "info", None), "length", None)
    if not isinstance(length, (int, float)) or length <= 0:
        return None
    return float(length)


__all__ = ["extract_audio_duration"]
