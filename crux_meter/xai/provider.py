"""xAI provider declaration."""

from __future__ import annotations

from typing import List

from ..base.handlers.handler import ProviderHandler
from ..base.handlers.provider import Provider
from .handlers import ChatHandler, ImageHandler, VideoHandler


class XAIProvider(Provider):
    name = "xai"
    display_name = "xAI"
    hosts = ("api.x.ai",)

    def build_handlers(self) -> List[ProviderHandler]:
        return [ImageHandler(), VideoHandler(), ChatHandler()]


__all__ = ["XAIProvider"]
