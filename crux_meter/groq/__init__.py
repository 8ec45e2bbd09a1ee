"""
Groq provider package.

Exports:
- GroqProvider: handler declarations for api.groq.com
"""

from .provider import GroqProvider

__all__ = ["GroqProvider"]
