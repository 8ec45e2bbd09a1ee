"""fal.ai provider declaration."""

from __future__ import annotations

from typing import List, Optional

from ..base.handlers.handler import Body, ProviderHandler
from ..base.handlers.provider import Provider
from .handlers import ImageHandler, model_from_endpoint


class FalAIProvider(Provider):
    name = "falai"
    display_name = "fal.ai"
    hosts = ("fal.run", "queue.fal.run")

    def build_handlers(self) -> List[ProviderHandler]:
        return [ImageHandler()]

    def extract_model_from_request(self, request_data: Body, endpoint: Optional[str] = None) -> Optional[str]:
        return model_from_endpoint(endpoint) or super().extract_model_from_request(request_data, endpoint)


__all__ = ["FalAIProvider"]
