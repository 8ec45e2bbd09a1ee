"""Generated-video quantities for one request."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class VideoMetrics:
    count: int = 0
    duration_seconds: Optional[float] = None


__all__ = ["VideoMetrics"]
