"""
Anthropic provider package.

Exports:
- AnthropicProvider: handler declarations for api.anthropic.com
- AnthropicMessageStream: split-usage stream handler
"""

from .provider import AnthropicProvider
from .stream_helpers import AnthropicMessageStream

__all__ = ["AnthropicProvider", "AnthropicMessageStream"]
