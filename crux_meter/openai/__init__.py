"""
OpenAI provider package.

Exports:
- OpenAIProvider: handler declarations for api.openai.com
- OpenAITextStream: stream handler shared by OpenAI-compatible providers
"""

from .provider import OpenAIProvider
from .stream_helpers import OpenAITextStream

__all__ = ["OpenAIProvider", "OpenAITextStream"]
