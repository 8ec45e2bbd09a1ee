"""
Cohere provider package.

Exports:
- CohereProvider: handler declarations for the Cohere v2 API
"""

from .provider import CohereProvider

__all__ = ["CohereProvider"]
