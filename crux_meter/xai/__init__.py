"""
xAI provider package.

Exports:
- XAIProvider: handler declarations for api.x.ai
"""

from .provider import XAIProvider

__all__ = ["XAIProvider"]
