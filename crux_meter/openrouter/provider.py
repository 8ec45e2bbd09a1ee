"""OpenRouter provider declaration."""

from __future__ import annotations

from typing import List

from ..base.handlers.handler import ProviderHandler
from ..base.handlers.provider import Provider
from .handlers import ChatHandler, ImageHandler


class OpenRouterProvider(Provider):
    name = "openrouter"
    display_name = "OpenRouter"
    hosts = ("openrouter.ai",)

    def build_handlers(self) -> List[ProviderHandler]:
        # the image specialist shares the chat endpoint and must follow it
        return [ChatHandler(), ImageHandler()]


__all__ = ["OpenRouterProvider"]
