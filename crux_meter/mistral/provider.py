"""Mistral provider declaration (La Plateforme and Codestral hosts)."""

from __future__ import annotations

from typing import List

from ..base.handlers.handler import ProviderHandler
from ..base.handlers.provider import Provider
from .handlers import ChatHandler, EmbeddingHandler


class MistralProvider(Provider):
    name = "mistral"
    display_name = "Mistral"
    hosts = ("api.mistral.ai", "codestral.mistral.ai")

    def build_handlers(self) -> List[ProviderHandler]:
        return [EmbeddingHandler(), ChatHandler()]


__all__ = ["MistralProvider"]
