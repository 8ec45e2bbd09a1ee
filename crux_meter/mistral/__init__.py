"""
Mistral provider package.

Exports:
- MistralProvider: handler declarations for api.mistral.ai and codestral.mistral.ai
"""

from .provider import MistralProvider

__all__ = ["MistralProvider"]
