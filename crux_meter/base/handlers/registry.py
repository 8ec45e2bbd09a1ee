"""
Handler registry: maps (provider, endpoint, body) to a response handler.

Purpose
-------
Single home of the handler resolution algorithm plus provider detection by
host. The registry is built once (built-in providers plus operator-configured
custom hosts) and is read-only afterwards, so it is shared freely across
concurrent requests.

Resolution
----------
``resolve(provider, endpoint, body)``:

1. Candidates are the provider's handlers whose endpoint patterns match.
2. With a body and several candidates, candidates that declare
   ``matches_response_shape`` are asked in reverse declaration order
   (specialists first); the first to claim the body wins. If none claims it,
   the first declared candidate is the default.
3. With a body and no candidates (unknown or missing endpoint), every handler
   of the provider is sniffed the same way.
4. Without a body, the first declared candidate wins.

``resolve_stream_handler`` prefers the endpoint-resolved handler when it
streams and otherwise falls back to the first streaming handler of the
provider, which covers standalone streams with no transport context.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Pattern, Sequence, Tuple

from ..logging import get_logger
from .handler import Body, ProviderHandler
from .patterns import compile_host_pattern, host_from_url
from .provider import Provider

logger = get_logger("meter.registry")


def _sniff(handlers: Sequence[ProviderHandler], body: Body) -> Optional[ProviderHandler]:
    for handler in reversed(handlers):
        if not handler.capabilities.matches_response_shape:
            continue
        try:
            if handler.matches_response(body):
                return handler
        except Exception:  # a broken shape check must not break resolution
            logger.debug("matches_response failed for %s", handler.name, exc_info=True)
    return None


class HandlerRegistry:
    """Read-only registry of providers, host patterns and handlers."""

    def __init__(
        self,
        providers: Iterable[Provider],
        custom_hosts: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> None:
        self._providers: Dict[str, Provider] = {}
        for provider in providers:
            self._providers[provider.name] = provider
        extra = {name: tuple(hosts) for name, hosts in (custom_hosts or {}).items()}
        compiled: List[Tuple[str, Pattern[str]]] = []
        # custom hosts first so an operator can claim a host shadowing a built-in one
        for name, hosts in extra.items():
            if name not in self._providers:
                logger.warning("custom host configured for unknown provider %s", name)
                continue
            compiled.extend((name, compile_host_pattern(host_from_url(h))) for h in hosts if h)
        for name, provider in self._providers.items():
            compiled.extend((name, compile_host_pattern(h)) for h in provider.hosts)
        self._host_patterns: Tuple[Tuple[str, Pattern[str]], ...] = tuple(compiled)

    # ---- providers ------------------------------------------------------
    def provider(self, name: Optional[str]) -> Optional[Provider]:
        if not name:
            return None
        return self._providers.get(name)

    @property
    def provider_names(self) -> Tuple[str, ...]:
        return tuple(self._providers)

    def display_name(self, name: str) -> str:
        provider = self.provider(name)
        return provider.display_name if provider and provider.display_name else name

    # ---- detection ------------------------------------------------------
    def detect_provider(self, host: Optional[str]) -> Optional[str]:
        """Return the provider owning ``host`` (``host`` or ``host:port`` or a URL)."""
        if not host:
            return None
        candidate = host_from_url(host)
        bare = candidate.split(":", 1)[0]
        for name, pattern in self._host_patterns:
            if pattern.match(candidate) or pattern.match(bare):
                return name
        return None

    def is_trackable_endpoint(self, provider: Optional[str], path: Optional[str]) -> bool:
        instance = self.provider(provider)
        return instance is not None and instance.is_trackable_endpoint(path)

    # ---- resolution -----------------------------------------------------
    def resolve(
        self,
        provider: Optional[str],
        endpoint: Optional[str],
        body: Optional[Body] = None,
    ) -> Optional[ProviderHandler]:
        instance = self.provider(provider)
        if instance is None:
            return None
        candidates = instance.handlers_for(endpoint)
        has_body = isinstance(body, Mapping) and bool(body)
        if not candidates:
            return _sniff(instance.handlers, body) if has_body else None
        if len(candidates) == 1 or not has_body:
            return candidates[0]
        return _sniff(candidates, body) or candidates[0]

    def resolve_stream_handler(
        self,
        provider: Optional[str],
        endpoint: Optional[str] = None,
    ) -> Optional[ProviderHandler]:
        """Handler whose ``stream_handler`` should interpret a stream."""
        instance = self.provider(provider)
        if instance is None:
            return None
        resolved = self.resolve(provider, endpoint) if endpoint else None
        if resolved is not None and resolved.streams:
            return resolved
        for handler in instance.handlers:
            if handler.streams:
                return handler
        return None


__all__ = ["HandlerRegistry"]
