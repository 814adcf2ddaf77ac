"""Incremental decoder for the JSON-lines extraction stream.

The generative-text service is instructed to emit one JSON record per line::

    {"type":"section","sectionId":"...","content":"...","confidence":"high",...}
    {"type":"complete","suggestedTitle":"...","analysisNotes":"..."}

Deltas arrive in arbitrary pieces, so the decoder buffers until a newline and
parses each complete line on its own. A line that is not valid JSON is logged
and dropped; it never ends the session.

Session states::

    IDLE --feed--> STREAMING --finish/fail--> FINISHED

Calling ``feed``, ``finish`` or ``fail`` on a FINISHED session raises
ProtocolViolationError.
"""

from __future__ import annotations

import json
import logging
import math
from enum import Enum
from typing import Any

from ..errors import ProtocolViolationError
from ..types.types import (
    CompleteEvent,
    ErrorEvent,
    ExtractionEvent,
    ProgressEvent,
    SectionEvent,
    SourceFile,
)
from ..utils.lines import LineBuffer
from .templates import DEFAULT_CATALOGUE, SectionCatalogue

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled PRD"
MAX_TITLE_LENGTH = 60
CONFIDENCE_LEVELS = ("high", "medium", "low")

# Fraction of expected sections after which the stage label advances
ANALYZING_UNTIL = 0.3
EXTRACTING_UNTIL = 0.7


class DecoderState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    FINISHED = "finished"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def progress_stage(sections_seen: int, total_expected: int) -> str:
    """Coarse stage label for the n-th section out of ``total_expected``."""
    if sections_seen <= _round_half_up(total_expected * ANALYZING_UNTIL):
        return "analyzing"
    if sections_seen <= _round_half_up(total_expected * EXTRACTING_UNTIL):
        return "extracting"
    return "mapping"


def progress_percent(sections_seen: int, total_expected: int) -> int:
    """Monotonic progress in [10, 90] while sections stream in."""
    return min(10 + _round_half_up(sections_seen / total_expected * 80), 90)


def derive_title(
    sections: list[SectionEvent],
    preference: tuple[str, ...],
    fallback_name: str | None = None,
) -> str:
    """Pick a document title when the stream never supplied one.

    Uses the first non-empty line of the first preferred section that has
    one, stripped of heading markers and shortened to 60 characters. Falls
    back to ``fallback_name`` and then to a generic placeholder.
    """
    by_id = {s.section_id: s for s in sections}
    for section_id in preference:
        section = by_id.get(section_id)
        if section is None:
            continue
        for line in section.content.splitlines():
            candidate = line.strip().lstrip("#").strip()
            if candidate:
                if len(candidate) > MAX_TITLE_LENGTH:
                    candidate = candidate[: MAX_TITLE_LENGTH - 3].rstrip() + "..."
                return candidate
    if fallback_name and fallback_name.strip():
        return fallback_name.strip()
    return DEFAULT_TITLE


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def _source_files(value: Any) -> list[SourceFile]:
    if not isinstance(value, list):
        return []
    files = []
    for item in value:
        if isinstance(item, dict) and item.get("filename"):
            excerpt = item.get("excerpt")
            files.append(
                SourceFile(
                    filename=str(item["filename"]),
                    excerpt=str(excerpt) if excerpt is not None else None,
                )
            )
        elif isinstance(item, str) and item:
            files.append(SourceFile(filename=item))
    return files


class StreamDecoder:
    """One decoding session; owned by a single streaming call."""

    def __init__(
        self,
        catalogue: SectionCatalogue = DEFAULT_CATALOGUE,
        fallback_name: str | None = None,
    ):
        """
        Initialize a decoder session.

        Args:
            catalogue: Section templates used for titles and expected section count
            fallback_name: Title to use if neither the stream nor any section
                yields one (typically derived from the first input item)
        """
        self.catalogue = catalogue
        self.fallback_name = fallback_name
        self.total_expected_sections = len(catalogue)
        self.sections_seen = 0
        self.terminal_event_emitted = False
        self.state = DecoderState.IDLE
        self.sections: list[SectionEvent] = []
        self._lines = LineBuffer()

    @property
    def buffer(self) -> str:
        """The trailing partial line not yet decoded."""
        return self._lines.remainder

    def _ensure_open(self, operation: str) -> None:
        if self.state is DecoderState.FINISHED:
            raise ProtocolViolationError(f"Cannot {operation}: decoder session already finished")

    def feed(self, delta: str) -> list[ExtractionEvent]:
        """Consume one delta and return the events it completed."""
        self._ensure_open("feed")
        self.state = DecoderState.STREAMING

        events: list[ExtractionEvent] = []
        for line in self._lines.push(delta):
            events.extend(self._decode_line(line))
        return events

    def finish(self) -> list[ExtractionEvent]:
        """End the session, flushing the trailing fragment.

        Guarantees a terminal event: if the stream never produced a complete
        record, a Complete event with a derived title is synthesized.
        """
        self._ensure_open("finish")
        self.state = DecoderState.FINISHED

        events: list[ExtractionEvent] = []
        trailing = self._lines.drain().strip()
        if trailing and not self.terminal_event_emitted:
            record = self._parse(trailing)
            if record is not None and record.get("type") == "complete":
                events.extend(self._complete(record))

        if not self.terminal_event_emitted:
            logger.info(
                "Stream ended without completion record after %d sections, synthesizing one",
                self.sections_seen,
            )
            title = derive_title(self.sections, self.catalogue.title_sources, self.fallback_name)
            notes = (
                f"Analysis extracted {self.sections_seen} sections. "
                "The title was auto-generated; some content may need manual review."
            )
            self.terminal_event_emitted = True
            events.append(ProgressEvent(stage="complete", percent=100))
            events.append(CompleteEvent(suggested_title=title, analysis_notes=notes))

        return events

    def fail(self, message: str) -> list[ExtractionEvent]:
        """End the session because the upstream transport failed."""
        self._ensure_open("fail")
        self.state = DecoderState.FINISHED
        if self.terminal_event_emitted:
            return []
        self.terminal_event_emitted = True
        return [ErrorEvent(message=message)]

    def _parse(self, line: str) -> dict[str, Any] | None:
        if not line.startswith("{"):
            return None
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("Skipping malformed JSON line: %s", line[:100])
            return None
        if not isinstance(record, dict):
            logger.debug("Skipping non-object JSON line: %s", line[:100])
            return None
        return record

    def _decode_line(self, line: str) -> list[ExtractionEvent]:
        line = line.strip()
        if not line:
            return []
        record = self._parse(line)
        if record is None:
            return []

        if self.terminal_event_emitted:
            logger.debug("Dropping record after terminal event: %s", line[:100])
            return []

        record_type = record.get("type")
        if record_type == "section":
            return self._section(record)
        if record_type == "complete":
            return self._complete(record)
        logger.debug("Ignoring record with unknown type %r", record_type)
        return []

    def _section(self, record: dict[str, Any]) -> list[ExtractionEvent]:
        section_id = record.get("sectionId")
        if not isinstance(section_id, str) or not section_id:
            logger.debug("Skipping section record without sectionId")
            return []

        self.sections_seen += 1
        progress = ProgressEvent(
            stage=progress_stage(self.sections_seen, self.total_expected_sections),
            percent=progress_percent(self.sections_seen, self.total_expected_sections),
        )

        confidence = str(record.get("confidence") or "low").lower()
        if confidence not in CONFIDENCE_LEVELS:
            confidence = "low"
        content = record.get("content")

        section = SectionEvent(
            section_id=section_id,
            section_title=self.catalogue.title_for(section_id),
            content=content if isinstance(content, str) else "",
            confidence=confidence,
            source_quotes=_string_list(record.get("sourceQuotes")),
            source_files=_source_files(record.get("sourceFiles")),
        )
        self.sections.append(section)
        return [progress, section]

    def _complete(self, record: dict[str, Any]) -> list[ExtractionEvent]:
        self.terminal_event_emitted = True
        title = record.get("suggestedTitle")
        if not isinstance(title, str) or not title.strip():
            title = DEFAULT_TITLE
        notes = record.get("analysisNotes")
        return [
            ProgressEvent(stage="complete", percent=100),
            CompleteEvent(
                suggested_title=title,
                analysis_notes=notes if isinstance(notes, str) else "",
            ),
        ]
