"""Placeholder pattern compilation for endpoints and hosts.

``/v1/videos/{id}`` compiles to ``^/v1/videos/[^/]+$`` and
``{resource}.openai.azure.com`` to ``^[^.]+\\.openai\\.azure\\.com$``: a
placeholder spans one or more characters but never crosses the separator of
its namespace (``/`` for paths, ``.`` for host labels). Literal text is
escaped, and every pattern is anchored at both ends.
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Optional, Pattern
from urllib.parse import urlsplit

_PLACEHOLDER = re.compile(r"\{[^{}/]+\}")


def _compile(pattern: str, placeholder_regex: str, flags: int = 0) -> Pattern[str]:
    parts = []
    last = 0
    for match in _PLACEHOLDER.finditer(pattern):
        parts.append(re.escape(pattern[last:match.start()]))
        parts.append(placeholder_regex)
        last = match.end()
    parts.append(re.escape(pattern[last:]))
    return re.compile("^" + "".join(parts) + "$", flags)


@lru_cache(maxsize=512)
def compile_endpoint_pattern(pattern: str) -> Pattern[str]:
    return _compile(pattern, "[^/]+")


@lru_cache(maxsize=256)
def compile_host_pattern(pattern: str) -> Pattern[str]:
    return _compile(pattern.lower(), "[^.]+", re.IGNORECASE)


def normalize_path(endpoint: Optional[str]) -> str:
    """Reduce an endpoint or full URL to a bare path without query or trailing slash."""
    if not endpoint:
        return ""
    path = endpoint
    if "://" in path:
        path = urlsplit(path).path
    path = path.split("?", 1)[0].split("#", 1)[0]
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/")
    return path


def host_from_url(url: str) -> str:
    """Return ``host[:port]`` for a URL, or the input when it is already a host."""
    if "://" not in url:
        return url.strip().rstrip("/").lower()
    parts = urlsplit(url)
    return (parts.netloc.rsplit("@", 1)[-1]).lower()


__all__ = [
    "compile_endpoint_pattern",
    "compile_host_pattern",
    "normalize_path",
    "host_from_url",
]
