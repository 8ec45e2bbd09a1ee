"""
Google Gemini provider package.

Exports:
- GoogleProvider: handler declarations for generativelanguage.googleapis.com
- GeminiContentStream: stream handler for ``streamGenerateContent``
"""

from .provider import GoogleProvider
from .stream_helpers import GeminiContentStream

__all__ = ["GoogleProvider", "GeminiContentStream"]
