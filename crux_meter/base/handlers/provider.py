"""
Provider declaration: identity, hosts and an ordered handler list.

A ``Provider`` groups the handlers for one API family. Declaration order
matters: the first handler covering an endpoint is the default for it, and
specialist handlers sharing an endpoint with a default (e.g. an image-output
handler on a general text endpoint) are declared after it. Resolution itself
lives in :class:`~crux_meter.base.handlers.registry.HandlerRegistry`.
"""
from __future__ import annotations

from typing import ClassVar, List, Mapping, Optional, Sequence, Tuple

from ..models_parts.model_type import ModelType
from ..utils import first_present, non_empty_str
from .handler import Body, ProviderHandler
from .patterns import normalize_path


class Provider:
    """Base provider declaration.

    Subclasses set ``name``, ``display_name`` and ``hosts`` and implement
    :meth:`build_handlers`. Instances are immutable after construction and
    safe to share.
    """

    name: ClassVar[str] = ""
    display_name: ClassVar[str] = ""
    hosts: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, handlers: Optional[Sequence[ProviderHandler]] = None) -> None:
        built = list(handlers) if handlers is not None else self.build_handlers()
        self._handlers: Tuple[ProviderHandler, ...] = tuple(built)

    def build_handlers(self) -> List[ProviderHandler]:
        return []

    @property
    def handlers(self) -> Tuple[ProviderHandler, ...]:
        return self._handlers

    def handlers_for(self, endpoint: Optional[str]) -> Tuple[ProviderHandler, ...]:
        """Handlers whose endpoint patterns match ``endpoint``, in declaration order."""
        path = normalize_path(endpoint)
        if not path:
            return ()
        return tuple(h for h in self._handlers if h.matches_endpoint(path))

    def is_trackable_endpoint(self, path: Optional[str]) -> bool:
        return bool(self.handlers_for(path))

    def extract_model(self, body: Body) -> Optional[str]:
        """Provider-wide default location of the model name in a response."""
        if not isinstance(body, Mapping):
            return None
        return non_empty_str(body.get("model"))

    def extract_model_from_request(self, request_data: Body, endpoint: Optional[str] = None) -> Optional[str]:
        if not isinstance(request_data, Mapping):
            return None
        return non_empty_str(request_data.get("model"))

    def extract_pricing_tier_from_request(self, request_data: Body) -> Optional[str]:
        return None

    def extract_response_id(self, body: Body) -> Optional[str]:
        if not isinstance(body, Mapping):
            return None
        return non_empty_str(first_present(body, "id", "responseId", "response_id"))

    def resolve_model_type(self, endpoint: Optional[str], request_data: Optional[Body] = None) -> Optional[ModelType]:
        """Model type implied by the endpoint alone (first covering handler)."""
        for handler in self.handlers_for(endpoint):
            if handler.model_type is not None:
                return handler.model_type
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} handlers={len(self._handlers)}>"


__all__ = ["Provider"]
