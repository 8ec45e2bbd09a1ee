"""Provider factory utilities.

Purpose
-------
Create provider declarations by canonical name and assemble the default
:class:`HandlerRegistry`. Provider packages are imported lazily with
``importlib`` so the base layer never imports provider modules statically.

Failure semantics
-----------------
The factory performs no fallbacks; it either returns an instance or raises
:class:`UnknownProviderError` with an actionable message.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Type

from .handlers.provider import Provider
from .handlers.registry import HandlerRegistry


class UnknownProviderError(Exception):
    """Raised when a provider cannot be resolved or initialized.

    Failure modes include:
    - The provider name is not registered in the factory mapping.
    - The provider module cannot be imported or the class is missing.
    - The provider constructor raised an exception.
    """


class ProviderFactory:
    """Create provider declarations from a canonical name (e.g. ``"openai"``)."""

    _PROVIDERS: Dict[str, Dict[str, str]] = {
        "openai": {"module": "crux_meter.openai.provider", "class": "OpenAIProvider"},
        "anthropic": {"module": "crux_meter.anthropic.provider", "class": "AnthropicProvider"},
        "google": {"module": "crux_meter.google.provider", "class": "GoogleProvider"},
        "ollama": {"module": "crux_meter.ollama.provider", "class": "OllamaProvider"},
        "groq": {"module": "crux_meter.groq.provider", "class": "GroqProvider"},
        "mistral": {"module": "crux_meter.mistral.provider", "class": "MistralProvider"},
        "xai": {"module": "crux_meter.xai.provider", "class": "XAIProvider"},
        "cohere": {"module": "crux_meter.cohere.provider", "class": "CohereProvider"},
        "openrouter": {"module": "crux_meter.openrouter.provider", "class": "OpenRouterProvider"},
        "elevenlabs": {"module": "crux_meter.elevenlabs.provider", "class": "ElevenLabsProvider"},
        "replicate": {"module": "crux_meter.replicate.provider", "class": "ReplicateProvider"},
        "falai": {"module": "crux_meter.falai.provider", "class": "FalAIProvider"},
    }

    @classmethod
    def create(cls, provider: str, **kwargs: Any) -> Provider:
        """Instantiate the provider registered under ``provider``.

        Raises
        ------
        UnknownProviderError
            If the provider is unknown, its module fails to import, the class
            is missing, or the constructor raises.
        """
        name = (provider or "").lower().strip()
        spec = cls._PROVIDERS.get(name)
        if not spec:
            raise UnknownProviderError(f"Unknown provider '{provider}'")

        module_path, class_name = spec["module"], spec["class"]
        try:
            mod = import_module(module_path)
        except Exception as exc:  # pragma: no cover - import failure path
            raise UnknownProviderError(
                f"Failed to import module '{module_path}' for provider '{provider}': {exc}"
            ) from exc

        try:
            klass: Type[Provider] = getattr(mod, class_name)
        except AttributeError as exc:
            raise UnknownProviderError(
                f"Provider class '{class_name}' not found in '{module_path}' for provider '{provider}'"
            ) from exc

        try:
            return klass(**kwargs)
        except TypeError as exc:
            raise UnknownProviderError(f"Invalid arguments for '{provider}' constructor: {exc}") from exc

    @classmethod
    def supported(cls) -> Tuple[str, ...]:
        return tuple(cls._PROVIDERS.keys())


def build_registry(
    providers: Optional[Iterable[str]] = None,
    custom_hosts: Optional[Mapping[str, Iterable[str]]] = None,
) -> HandlerRegistry:
    """Build a registry for ``providers`` (default: every supported provider)."""
    names = tuple(providers) if providers is not None else ProviderFactory.supported()
    return HandlerRegistry((ProviderFactory.create(n) for n in names), custom_hosts=custom_hosts)


def build_default_registry(settings: Any = None) -> HandlerRegistry:
    """Registry of all built-in providers plus configured custom hosts."""
    if settings is None:
        from ..config import get_meter_settings

        settings = get_meter_settings()
    return build_registry(custom_hosts=settings.custom_hosts)


__all__ = ["ProviderFactory", "UnknownProviderError", "build_registry", "build_default_registry"]
