"""Anthropic provider declaration."""

from __future__ import annotations

from typing import List

from ..base.handlers.handler import ProviderHandler
from ..base.handlers.provider import Provider
from .handlers import MessageHandler


class AnthropicProvider(Provider):
    name = "anthropic"
    display_name = "Anthropic"
    hosts = ("api.anthropic.com",)

    def build_handlers(self) -> List[ProviderHandler]:
        return [MessageHandler()]


__all__ = ["AnthropicProvider"]
