"""Structured logging context object for metering events."""
from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Optional


@dataclass
class LogContext:
    """Common fields for metering log events (provider, model, request ids)."""

    provider: Optional[str] = None
    model: Optional[str] = None
    request_id: Optional[str] = None
    response_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_request(cls, context: Any) -> "LogContext":
        """Build a log context from a ``RequestContext``-like object."""
        return cls(
            provider=getattr(context, "provider", None),
            model=getattr(context, "model", None),
            request_id=getattr(context, "id", None),
            response_id=getattr(context, "response_id", None),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        extra = data.pop("extra", {}) or {}
        data.update({k: v for k, v in extra.items() if v is not None})
        return {k: v for k, v in data.items() if v is not None}


__all__ = ["LogContext"]
