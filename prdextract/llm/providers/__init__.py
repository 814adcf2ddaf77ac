"""LLM provider implementations."""

from .base import LLMProvider, get_provider, register_provider

__all__ = ["LLMProvider", "get_provider", "register_provider"]
