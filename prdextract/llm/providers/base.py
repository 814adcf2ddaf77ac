"""Base class for generative-text providers."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

# Provider registry - providers register themselves here
_PROVIDER_REGISTRY: dict[str, type["LLMProvider"]] = {}


def register_provider(name: str):
    """
    Decorator to register an LLM provider class.

    Usage:
        @register_provider("anthropic")
        class AnthropicProvider(LLMProvider):
            ...

    Args:
        name: Provider name (e.g., "anthropic")

    Returns:
        Decorator function
    """

    def decorator(cls: type["LLMProvider"]) -> type["LLMProvider"]:
        _PROVIDER_REGISTRY[name.lower()] = cls
        return cls

    return decorator


class LLMProvider(ABC):
    """Base class for LLM providers."""

    @abstractmethod
    def stream(
        self,
        system_prompt: str,
        user_message: str,
        model: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
        **kwargs,
    ) -> AsyncIterator[dict[str, Any]]:
        """
        Stream a completion for one system instruction plus one user message.

        Args:
            system_prompt: System instruction
            user_message: Content of the single user turn
            model: Model identifier
            max_tokens: Optional output token cap
            temperature: Optional temperature parameter
            **kwargs: Provider-specific additional parameters

        Yields:
            Dict with event information:
            - type: "text_delta", "done", "error"
            - data: Event-specific data ({"content"} for deltas, {"error"} for errors,
              {"usage", "model", "stop_reason"} for done)
        """


def get_provider(provider_name: str, **kwargs) -> LLMProvider:
    """
    Get LLM provider instance by name from the registry.

    Providers are dynamically imported when requested.

    Args:
        provider_name: Name of the provider ("anthropic")
        **kwargs: Provider-specific initialization parameters

    Returns:
        LLMProvider instance

    Raises:
        ValueError: If the provider is not found or not supported
        ImportError: If the provider's SDK is not installed
    """
    provider_name_lower = provider_name.lower()

    provider_class = _PROVIDER_REGISTRY.get(provider_name_lower)
    if provider_class:
        return provider_class(**kwargs)

    provider_modules = {
        "anthropic": ".anthropic",
    }

    if provider_name_lower not in provider_modules:
        available = ", ".join(sorted(provider_modules.keys()))
        raise ValueError(
            f"Unknown LLM provider: {provider_name}. Supported providers: {available}."
        )

    # Importing the module triggers @register_provider
    try:
        if provider_name_lower == "anthropic":
            from . import anthropic  # noqa: F401
    except ImportError as e:
        raise ImportError(
            f"Failed to import {provider_name} provider. "
            f"Install the required SDK with: pip install {provider_name_lower}"
        ) from e

    provider_class = _PROVIDER_REGISTRY.get(provider_name_lower)
    if not provider_class:
        raise ValueError(
            f"Provider {provider_name} was imported but not registered. "
            f"This is likely a bug in the provider implementation."
        )

    return provider_class(**kwargs)
