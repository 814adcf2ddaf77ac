"""Drive a provider stream through a decoder session.

A pump task copies provider deltas into a queue; the consuming coroutine is
the only one that touches the decoder, so buffer mutation never re-enters.
Closing the returned generator (or cancelling the task iterating it) cancels
the pump, which in turn closes the provider stream.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from ..errors import UpstreamTransportError
from ..types.types import ExtractionEvent
from .providers.base import LLMProvider

if TYPE_CHECKING:
    from ..extraction.decoder import StreamDecoder

logger = logging.getLogger(__name__)


class _End:
    """Upstream signalled end-of-stream."""


async def _pump_deltas(
    provider: LLMProvider,
    queue: asyncio.Queue,
    system_prompt: str,
    user_message: str,
    model: str,
    max_tokens: int | None,
    provider_kwargs: dict[str, Any],
) -> None:
    try:
        async for event in provider.stream(
            system_prompt=system_prompt,
            user_message=user_message,
            model=model,
            max_tokens=max_tokens,
            **provider_kwargs,
        ):
            event_type = event.get("type")
            if event_type == "text_delta":
                content = event.get("data", {}).get("content")
                if content:
                    queue.put_nowait(content)
            elif event_type == "error":
                error_msg = event.get("data", {}).get("error") or "Unknown error"
                queue.put_nowait(UpstreamTransportError(error_msg))
                return
            elif event_type == "done":
                logger.debug("Upstream usage: %s", event.get("data", {}).get("usage"))
    except Exception as e:
        queue.put_nowait(UpstreamTransportError(str(e) or e.__class__.__name__))
        return
    queue.put_nowait(_End())


async def stream_extraction(
    provider: LLMProvider,
    decoder: StreamDecoder,
    system_prompt: str,
    user_message: str,
    model: str,
    max_tokens: int | None = None,
    **provider_kwargs,
) -> AsyncIterator[ExtractionEvent]:
    """
    Stream one extraction call and yield decoded events in arrival order.

    Always ends with exactly one terminal event (Complete or Error) unless the
    caller stops iterating first.

    Args:
        provider: Streaming LLM provider
        decoder: Fresh decoder session owned by this call
        system_prompt: System instruction
        user_message: User message
        model: Model identifier
        max_tokens: Optional output token cap
        **provider_kwargs: Extra provider parameters

    Yields:
        ExtractionEvent instances
    """
    queue: asyncio.Queue = asyncio.Queue()
    pump = asyncio.create_task(
        _pump_deltas(
            provider, queue, system_prompt, user_message, model, max_tokens, provider_kwargs
        )
    )
    try:
        while True:
            item = await queue.get()
            if isinstance(item, _End):
                for event in decoder.finish():
                    yield event
                return
            if isinstance(item, UpstreamTransportError):
                logger.error("Upstream transport failure: %s", item.message)
                for event in decoder.fail(item.message):
                    yield event
                return
            for event in decoder.feed(item):
                yield event
    finally:
        if not pump.done():
            pump.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await pump
