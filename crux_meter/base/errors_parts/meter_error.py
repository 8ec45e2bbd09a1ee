"""
Structured metering exception types.

``MeterError`` wraps failures raised by the metering layer itself with a
normalized :class:`ErrorCode`. ``CatalogError`` is raised while loading the
pricing catalog, which happens at startup and is allowed to fail loudly.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .error_code import ErrorCode


@dataclass
class MeterError(Exception):
    """Represents a structured metering error with a normalized error code.

    Attributes:
        code: Normalized :class:`ErrorCode` classification for the failure.
        message: Human-readable error message suitable for logging.
        provider: Provider key the failure relates to, when known.
        model: Optional model name associated with the failure.
        raw: Optional original exception for diagnostics.
    """

    code: ErrorCode
    message: str
    provider: Optional[str] = None
    model: Optional[str] = None
    raw: Optional[Exception] = None

    def __str__(self) -> str:
        return f"{self.provider or '-'}:{self.model or '-'} {self.code.value}: {self.message}"


@dataclass
class CatalogError(MeterError):
    """Raised when a pricing catalog document is missing or malformed."""

    code: ErrorCode = ErrorCode.VALIDATION
    message: str = "invalid pricing catalog"


__all__ = ["MeterError", "CatalogError"]
