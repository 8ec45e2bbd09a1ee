"""Groq handlers for the OpenAI-compatible API under ``/openai/v1``."""

from __future__ import annotations

from typing import Optional

from ..base.handlers.capabilities import HandlerCapabilities
from ..base.handlers.handler import Body
from ..openai.handlers import TextHandler, TranscriptionHandler as OpenAITranscriptionHandler
from .stream_helpers import GROQ_CHAT_STREAM


class ChatHandler(TextHandler):
    endpoints = ("/openai/v1/chat/completions",)
    capabilities = HandlerCapabilities(
        streams_response=True,
        matches_response_shape=True,
        extracts_model_from_response=True,
    )
    stream_handler = GROQ_CHAT_STREAM

    def matches_response(self, body: Body) -> bool:
        return body.get("object") == "chat.completion"

    def extract_pricing_tier_from_response(self, body: Body) -> Optional[str]:
        # ``service_tier`` is "on_demand" on every account; not a price list
        return None


class TranscriptionHandler(OpenAITranscriptionHandler):
    endpoints = ("/openai/v1/audio/transcriptions", "/openai/v1/audio/translations")


__all__ = ["ChatHandler", "TranscriptionHandler"]
