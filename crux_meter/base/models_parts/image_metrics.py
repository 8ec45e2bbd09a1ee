"""Generated-image count for one request."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ImageMetrics:
    count: int = 0


__all__ = ["ImageMetrics"]
