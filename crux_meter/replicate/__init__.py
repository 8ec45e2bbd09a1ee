"""
Replicate provider package.

Exports:
- ReplicateProvider: handler declarations for api.replicate.com
"""

from .provider import ReplicateProvider

__all__ = ["ReplicateProvider"]
