"""
OpenRouter provider package.

Exports:
- OpenRouterProvider: handler declarations for openrouter.ai
"""

from .provider import OpenRouterProvider

__all__ = ["OpenRouterProvider"]
