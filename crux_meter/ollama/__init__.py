"""
Ollama provider package.

Exports:
- OllamaProvider: handler declarations for a local Ollama server
"""

from .provider import OllamaProvider

__all__ = ["OllamaProvider"]
