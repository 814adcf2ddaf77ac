"""Generative-text streaming."""

from .providers import LLMProvider, get_provider, register_provider
from .stream import stream_extraction

__all__ = ["LLMProvider", "get_provider", "register_provider", "stream_extraction"]
