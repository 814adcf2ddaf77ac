"""Anthropic provider implementation."""

import logging
import os
from collections.abc import AsyncIterator
from typing import Any

from .base import LLMProvider, register_provider

logger = logging.getLogger(__name__)

ANTHROPIC_CACHE_CONTROL = {"type": "ephemeral"}
DEFAULT_MAX_TOKENS = 8192


def _apply_cache_control(request_params: dict[str, Any]) -> None:
    """Mark the system prompt as a prompt-caching breakpoint (in-place).

    The system instruction is identical across requests of the same mode, so
    Anthropic can serve it from cache.
    """
    system = request_params.get("system")
    if isinstance(system, str):
        request_params["system"] = [
            {"type": "text", "text": system, "cache_control": ANTHROPIC_CACHE_CONTROL}
        ]
    elif isinstance(system, list) and system:
        system[-1] = {**system[-1], "cache_control": ANTHROPIC_CACHE_CONTROL}


@register_provider("anthropic")
class AnthropicProvider(LLMProvider):
    """Anthropic provider for streaming calls to the Messages API."""

    def __init__(self, api_key: str | None = None, client: Any | None = None):
        """
        Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key. If not provided, uses ANTHROPIC_API_KEY env var.
            client: Preconfigured AsyncAnthropic client (mainly for tests)
        """
        if client is not None:
            self.api_key = api_key
            self.client = client
            return

        from anthropic import AsyncAnthropic

        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError(
                "Anthropic API key not provided. Set ANTHROPIC_API_KEY "
                "environment variable or pass api_key parameter."
            )

        self.client = AsyncAnthropic(api_key=self.api_key)

    async def stream(
        self,
        system_prompt: str,
        user_message: str,
        model: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
        **kwargs,
    ) -> AsyncIterator[dict[str, Any]]:
        """
        Stream a response from Anthropic using the Messages API.

        Only text content is relayed; the service is never given tools.

        Yields:
            Normalized events: text_delta, done, error
        """
        request_params: dict[str, Any] = {
            "model": model,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_message}],
            "max_tokens": max_tokens if max_tokens is not None else DEFAULT_MAX_TOKENS,
            "stream": True,
        }
        if temperature is not None:
            request_params["temperature"] = temperature

        request_params.update(kwargs)
        _apply_cache_control(request_params)

        try:
            stream = await self.client.messages.create(**request_params)

            usage = {"input_tokens": 0, "output_tokens": 0}
            stop_reason = None
            response_model = model

            async for event in stream:
                # Event types: message_start, content_block_start, content_block_delta,
                # content_block_stop, message_delta, message_stop, error
                event_type = event.type
                event = event.model_dump(mode="json") if hasattr(event, "model_dump") else event

                if event_type == "content_block_start":
                    content_block = event.get("content_block") or {}
                    if content_block.get("type") == "text" and content_block.get("text"):
                        yield {"type": "text_delta", "data": {"content": content_block["text"]}}

                elif event_type == "content_block_delta":
                    delta = event.get("delta") or {}
                    if delta.get("type") == "text_delta" and delta.get("text"):
                        yield {"type": "text_delta", "data": {"content": delta["text"]}}

                elif event_type in ("message_start", "message_delta"):
                    if event_type == "message_start":
                        message = event.get("message") or {}
                        response_model = message.get("model") or response_model
                        usage_data = message.get("usage")
                    else:
                        delta = event.get("delta") or {}
                        stop_reason = delta.get("stop_reason") or stop_reason
                        # usage lives at the top level for message_delta, not inside delta
                        usage_data = event.get("usage")

                    if usage_data:
                        for key in ("input_tokens", "output_tokens"):
                            if usage_data.get(key) is not None:
                                usage[key] = usage_data[key]

                elif event_type == "message_stop":
                    usage["total_tokens"] = usage["input_tokens"] + usage["output_tokens"]
                    yield {
                        "type": "done",
                        "data": {
                            "usage": usage,
                            "model": response_model,
                            "stop_reason": stop_reason,
                        },
                    }

                elif event_type == "error":
                    error_msg = "Stream failed"
                    error_obj = event.get("error") or {}
                    if error_obj.get("message"):
                        error_msg = error_obj["message"]
                    if error_obj.get("type"):
                        error_msg = f"{error_obj['type']}: {error_msg}"
                    yield {"type": "error", "data": {"error": error_msg}}
                    break

        except Exception as e:
            logger.error("Anthropic Messages API streaming failed: %s", e)
            yield {"type": "error", "data": {"error": str(e)}}
