"""Cohere provider declaration."""

from __future__ import annotations

from typing import List

from ..base.handlers.handler import ProviderHandler
from ..base.handlers.provider import Provider
from .handlers import ChatHandler, EmbedHandler, RerankHandler


class CohereProvider(Provider):
    name = "cohere"
    display_name = "Cohere"
    hosts = ("api.cohere.com", "api.cohere.ai")

    def build_handlers(self) -> List[ProviderHandler]:
        return [ChatHandler(), EmbedHandler(), RerankHandler()]


__all__ = ["CohereProvider"]
