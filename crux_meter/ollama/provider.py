"""Ollama provider declaration.

Only the default local ports are built in; remote or non-default hosts are
added with ``OLLAMA_BASE_URL`` or the config file.
"""

from __future__ import annotations

from typing import List

from ..base.handlers.handler import ProviderHandler
from ..base.handlers.provider import Provider
from .handlers import ChatHandler, EmbeddingHandler


class OllamaProvider(Provider):
    name = "ollama"
    display_name = "Ollama"
    hosts = ("localhost:11434", "127.0.0.1:11434")

    def build_handlers(self) -> List[ProviderHandler]:
        return [EmbeddingHandler(), ChatHandler()]


__all__ = ["OllamaProvider"]
