"""
fal.ai provider package.

Exports:
- FalAIProvider: handler declarations for fal.run and queue.fal.run
"""

from .provider import FalAIProvider

__all__ = ["FalAIProvider"]
