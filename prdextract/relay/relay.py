"""Server side of the event relay: ordered frames with cooperative cancellation."""

import asyncio
import logging
from collections.abc import AsyncIterator

from ..types.types import ErrorEvent, ExtractionEvent, is_terminal
from .frames import SENTINEL_FRAME, encode_frame

logger = logging.getLogger(__name__)

UNEXPECTED_END_MESSAGE = "Extraction stream ended unexpectedly"


class EventRelay:
    """Forwards one session's events as SSE frames.

    Frames are produced in generation order. After a terminal event the
    sentinel frame is written and the upstream event generator is closed, so
    the upstream call stops being consumed. ``cancel()`` interrupts a pending
    upstream read right away and is safe to call more than once.
    """

    def __init__(self, events: AsyncIterator[ExtractionEvent], session_id: str | None = None):
        self._events = events
        self._cancel_requested = asyncio.Event()
        self.session_id = session_id
        self.frames_sent = 0

    @property
    def cancelled(self) -> bool:
        return self._cancel_requested.is_set()

    def cancel(self) -> None:
        if not self.cancelled:
            logger.info("Relay cancelled (session=%s)", self.session_id)
        self._cancel_requested.set()

    async def _close_upstream(self) -> None:
        aclose = getattr(self._events, "aclose", None)
        if aclose is not None:
            await aclose()

    async def _next_event(self) -> ExtractionEvent | None:
        try:
            return await self._events.__anext__()
        except StopAsyncIteration:
            return None

    async def _receive(self) -> ExtractionEvent | None:
        """Next upstream event; None when upstream is exhausted or the relay is cancelled.

        A pending read is cancelled as soon as ``cancel()`` is called, which
        unwinds the upstream generator (and the provider call under it).
        """
        if self.cancelled:
            return None
        next_event = asyncio.create_task(self._next_event())
        cancel_wait = asyncio.create_task(self._cancel_requested.wait())
        try:
            await asyncio.wait({next_event, cancel_wait}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_wait.cancel()
            if not next_event.done():
                next_event.cancel()
                await asyncio.wait({next_event})
        if next_event.cancelled():
            return None
        return next_event.result()

    async def frames(self) -> AsyncIterator[str]:
        """Yield SSE frames until a terminal event, cancellation or upstream end."""
        terminated = False
        try:
            while True:
                event = await self._receive()
                if event is None or self.cancelled:
                    break
                self.frames_sent += 1
                yield encode_frame(event)
                if is_terminal(event):
                    terminated = True
                    break

            if not terminated and not self.cancelled:
                # upstream ended without a terminal event
                self.frames_sent += 1
                yield encode_frame(ErrorEvent(message=UNEXPECTED_END_MESSAGE))
                terminated = True

            if terminated:
                yield SENTINEL_FRAME
        finally:
            await self._close_upstream()
