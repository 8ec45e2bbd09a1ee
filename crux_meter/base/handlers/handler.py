"""
Response handler base class.

Purpose
-------
A handler is a stateless parser bound to one provider and one response shape
(chat completion, image generation, speech synthesis, ...). It declares the
endpoints it covers, its :class:`HandlerCapabilities`, and the extraction hooks
the response processor calls. Every optional hook has a neutral default so
the processor never has to probe for methods.

Failure modes
-------------
Hooks receive untrusted decoded JSON. Implementations use the tolerant
accessors in ``crux_meter.base.utils`` and return neutral values on
unexpected shapes; the processor additionally guards every call.
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar, List, Mapping, Optional, Pattern, Tuple

from ..models_parts.metrics import Metrics
from ..models_parts.model_type import ModelType
from ..utils import non_empty_str
from .capabilities import HandlerCapabilities
from .patterns import compile_endpoint_pattern, normalize_path
from .stream_handler import StreamHandler

if TYPE_CHECKING:
    from ..media.store import MediaStore

Body = Mapping[str, Any]


class ProviderHandler:
    """Base class for all response handlers.

    Subclasses set the class attributes and override the hooks their
    capabilities advertise.
    """

    endpoints: ClassVar[Tuple[str, ...]] = ()
    model_type: ClassVar[Optional[ModelType]] = None
    capabilities: ClassVar[HandlerCapabilities] = HandlerCapabilities()
    stream_handler: ClassVar[Optional[StreamHandler]] = None

    def __init__(self) -> None:
        self._patterns: Tuple[Pattern[str], ...] = tuple(
            compile_endpoint_pattern(p) for p in self.endpoints
        )

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def streams(self) -> bool:
        return self.capabilities.streams_response and self.stream_handler is not None

    # ---- matching -------------------------------------------------------
    def matches_endpoint(self, endpoint: Optional[str]) -> bool:
        path = normalize_path(endpoint)
        if not path:
            return False
        return any(p.match(path) for p in self._patterns)

    def matches_response(self, body: Body) -> bool:
        """Claim ``body`` by shape; only consulted when ``matches_response_shape``."""
        return False

    # ---- extraction -----------------------------------------------------
    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        return Metrics()

    def extract_model(self, body: Body) -> Optional[str]:
        return non_empty_str(body.get("model")) if isinstance(body, Mapping) else None

    def extract_model_from_request(self, request_data: Body, endpoint: Optional[str]) -> Optional[str]:
        return None

    def extract_finish_reason(self, body: Body) -> Optional[str]:
        return None

    def extract_response_text(self, body: Body) -> Optional[str]:
        """Human readable output, used for previews and synthetic stream bodies."""
        return None

    # ---- optional capabilities ------------------------------------------
    def should_skip_response(self, body: Body) -> bool:
        return False

    def extract_expires_at(self, body: Body) -> Optional[datetime]:
        return None

    def store_media(
        self,
        request_id: str,
        body: Body,
        raw: Optional[bytes],
        store: "MediaStore",
    ) -> List[str]:
        return []

    def extract_pricing_tier_from_request(self, request_data: Body) -> Optional[str]:
        return None

    def extract_pricing_tier_from_response(self, body: Body) -> Optional[str]:
        return None

    def __repr__(self) -> str:
        return f"<{self.name} endpoints={list(self.endpoints)}>"


__all__ = ["Body", "ProviderHandler"]
