"""
ElevenLabs provider package.

Exports:
- ElevenLabsProvider: handler declarations for api.elevenlabs.io
"""

from .provider import ElevenLabsProvider

__all__ = ["ElevenLabsProvider"]
