"""Groq provider declaration."""

from __future__ import annotations

from typing import List

from ..base.handlers.handler import ProviderHandler
from ..base.handlers.provider import Provider
from .handlers import ChatHandler, TranscriptionHandler


class GroqProvider(Provider):
    name = "groq"
    display_name = "Groq"
    hosts = ("api.groq.com",)

    def build_handlers(self) -> List[ProviderHandler]:
        return [ChatHandler(), TranscriptionHandler()]


__all__ = ["GroqProvider"]
