"""Shared pytest configuration and fixtures."""

import asyncio
import json

import pytest

from prdextract.llm.providers.base import LLMProvider


def _section_line(
    section_id: str, content: str = "Some content", confidence: str = "high", **extra
) -> str:
    """One JSON-lines section record, newline-terminated."""
    record = {
        "type": "section",
        "sectionId": section_id,
        "content": content,
        "confidence": confidence,
        **extra,
    }
    return json.dumps(record) + "\n"


def _complete_line(title: str = "Acme Insights", notes: str = "Good coverage") -> str:
    return json.dumps({"type": "complete", "suggestedTitle": title, "analysisNotes": notes}) + "\n"


class ScriptedProvider(LLMProvider):
    """Provider that replays a fixed list of text deltas."""

    def __init__(self, chunks=(), error=None, raise_exc=None, hang=False):
        self.chunks = list(chunks)
        self.error = error
        self.raise_exc = raise_exc
        self.hang = hang
        self.calls = []
        self.closed = False

    async def stream(
        self,
        system_prompt,
        user_message,
        model,
        max_tokens=None,
        temperature=None,
        **kwargs,
    ):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_message": user_message,
                "model": model,
                "max_tokens": max_tokens,
            }
        )
        try:
            for chunk in self.chunks:
                yield {"type": "text_delta", "data": {"content": chunk}}
            if self.raise_exc is not None:
                raise self.raise_exc
            if self.error is not None:
                yield {"type": "error", "data": {"error": self.error}}
                return
            if self.hang:
                await asyncio.Event().wait()
            yield {"type": "done", "data": {"usage": {"input_tokens": 1, "output_tokens": 1}}}
        finally:
            self.closed = True


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def full_stream():
    """A well-formed extraction stream with two sections and a completion record."""
    return (
        _section_line("executive-summary", "# Acme Insights\nA reporting tool")
        + _section_line("problem-statement", "Reports take too long", confidence="medium")
        + _complete_line()
    )


@pytest.fixture
def section_line():
    """Factory for newline-terminated section records."""
    return _section_line


@pytest.fixture
def complete_line():
    """Factory for newline-terminated completion records."""
    return _complete_line


@pytest.fixture
def scripted_provider():
    """The ScriptedProvider class, for tests that build their own script."""
    return ScriptedProvider
