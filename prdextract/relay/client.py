"""Client side of the event relay.

Opens the SSE stream for one analysis and dispatches decoded events to
callbacks. Cancelling aborts the underlying request; no callback fires for a
cancelled session.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any

import httpx

from ..types.types import (
    CompleteEvent,
    ErrorEvent,
    ExtractionEvent,
    PreprocessedEvent,
    ProgressEvent,
    SectionEvent,
    SourceDocument,
)
from ..utils.lines import LineBuffer
from .frames import IDENTITY_HEADER, FrameDecoder

logger = logging.getLogger(__name__)

TRANSCRIPT_PATH = "/api/transcript/analyze"
DOCUMENTS_PATH = "/api/files/analyze"


class ExtractionClientError(Exception):
    """Non-2xx response or transport failure before the stream opened."""

    def __init__(self, status_code: int | None, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


@dataclass
class ExtractionCallbacks:
    """Callbacks invoked in event order for one analysis."""

    on_progress: Callable[[ProgressEvent], Any] | None = None
    on_section: Callable[[SectionEvent], Any] | None = None
    on_complete: Callable[[CompleteEvent], Any] | None = None
    on_error: Callable[[str], Any] | None = None
    on_preprocessed: Callable[[PreprocessedEvent], Any] | None = None

    def dispatch(self, event: ExtractionEvent) -> None:
        if isinstance(event, ProgressEvent) and self.on_progress:
            self.on_progress(event)
        elif isinstance(event, SectionEvent) and self.on_section:
            self.on_section(event)
        elif isinstance(event, CompleteEvent) and self.on_complete:
            self.on_complete(event)
        elif isinstance(event, ErrorEvent) and self.on_error:
            self.on_error(event.message)
        elif isinstance(event, PreprocessedEvent) and self.on_preprocessed:
            self.on_preprocessed(event)


class AnalysisHandle:
    """Handle for an in-flight analysis started by ExtractionClient."""

    def __init__(self, task: asyncio.Task):
        self._task = task
        self.cancelled = False

    def cancel(self) -> None:
        """Abort the stream. Safe to call more than once or after completion."""
        if self.cancelled or self._task.done():
            self.cancelled = True
            return
        self.cancelled = True
        self._task.cancel()

    @property
    def done(self) -> bool:
        return self._task.done()

    async def wait(self) -> None:
        """Wait until the stream ends (normally, on error or by cancellation)."""
        with contextlib.suppress(asyncio.CancelledError):
            await self._task


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {response.status_code}"


class ExtractionClient:
    """Starts analyses against a relay server and streams their events."""

    def __init__(
        self,
        api_url: str,
        identity: str,
        timeout: httpx.Timeout | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            api_url: Base URL of the relay server
            identity: Caller identity sent with every request
            timeout: HTTP timeout; no read timeout by default since streams are long-lived
            transport: Optional httpx transport (used in tests)
        """
        self.api_url = api_url.rstrip("/")
        self.identity = identity
        self.timeout = timeout or httpx.Timeout(30.0, read=None)
        self._transport = transport

    def _get_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
            IDENTITY_HEADER: self.identity,
        }

    async def iter_events(self, path: str, body: dict[str, Any]) -> AsyncIterator[ExtractionEvent]:
        """POST ``body`` to ``path`` and yield events until the sentinel frame.

        Raises:
            ExtractionClientError: On a non-2xx response or a transport failure
        """
        url = f"{self.api_url}{path}"
        decoder = FrameDecoder()
        lines = LineBuffer()
        try:
            async with (
                httpx.AsyncClient(
                    timeout=self.timeout, headers=self._get_headers(), transport=self._transport
                ) as http_client,
                http_client.stream("POST", url, json=body) as response,
            ):
                if response.status_code >= 400:
                    await response.aread()
                    raise ExtractionClientError(response.status_code, _error_message(response))

                async for chunk in response.aiter_text():
                    for line in lines.push(chunk):
                        event = decoder.decode_line(line)
                        if event is not None:
                            yield event
                        if decoder.done:
                            return
                trailing = decoder.decode_line(lines.drain())
                if trailing is not None:
                    yield trailing
        except httpx.HTTPError as e:
            raise ExtractionClientError(None, str(e) or e.__class__.__name__) from e

    def _start(
        self, path: str, body: dict[str, Any], callbacks: ExtractionCallbacks
    ) -> AnalysisHandle:
        handle: AnalysisHandle | None = None

        async def run() -> None:
            try:
                async for event in self.iter_events(path, body):
                    callbacks.dispatch(event)
            except ExtractionClientError as e:
                if handle is not None and handle.cancelled:
                    return
                logger.warning("Analysis request failed: %s", e.message)
                if callbacks.on_error:
                    callbacks.on_error(e.message)

        handle = AnalysisHandle(asyncio.create_task(run()))
        return handle

    def analyze_transcript(
        self,
        transcript: str,
        callbacks: ExtractionCallbacks,
        context: str | None = None,
        filename: str | None = None,
    ) -> AnalysisHandle:
        """Start a transcript analysis. Must be called from a running event loop."""
        body: dict[str, Any] = {"transcript": transcript}
        if context:
            body["context"] = context
        if filename:
            body["filename"] = filename
        return self._start(TRANSCRIPT_PATH, body, callbacks)

    def analyze_documents(
        self,
        documents: list[SourceDocument],
        callbacks: ExtractionCallbacks,
        context: str | None = None,
    ) -> AnalysisHandle:
        """Start an analysis of pre-extracted document summaries."""
        body: dict[str, Any] = {"documents": [d.model_dump(by_alias=True) for d in documents]}
        if context:
            body["context"] = context
        return self._start(DOCUMENTS_PATH, body, callbacks)
