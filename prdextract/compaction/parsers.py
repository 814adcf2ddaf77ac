"""Parse raw transcripts into speaker-attributed utterances.

Two shapes are understood:

- caption files (WebVTT): cue blocks with a ``start --> end`` timing line, an
  optional numeric cue id, and text lines that may carry a ``<v Name>`` voice
  span or a ``Name: text`` prefix;
- freeform text where each line may start with ``[Name] 10:23:45 text``,
  ``Name (10:23:45): text`` or ``Name: text``.

Lines without a speaker continue the current utterance.
"""

from __future__ import annotations

import re

from .types import TranscriptFormat, Utterance

UNKNOWN_SPEAKER = "Unknown"
FALLBACK_SPEAKER = "Speaker"
MAX_SPEAKER_PREFIX = 50

_TIME = r"\d{1,2}:\d{2}(?::\d{2})?(?:\.\d+)?"
_CUE_ID = re.compile(r"^\d+$")
_VOICE_SPAN = re.compile(r"^<v\s+([^>]+)>(.*)$")
_BRACKETED = re.compile(rf"^\[([^\]]+)\]\s*({_TIME})?\s*(.*)$")
_PAREN_TIMESTAMP = re.compile(rf"^([^(]+)\s*\(({_TIME})\)\s*:\s*(.*)$")
_COLON = re.compile(r"^([^:]+):\s*(.*)$")


def detect_format(text: str, source_name: str | None = None) -> TranscriptFormat:
    """Guess the transcript format from its name or first line."""
    if source_name and source_name.lower().endswith(".vtt"):
        return "vtt"
    if text.lstrip().startswith("WEBVTT"):
        return "vtt"
    return "txt"


def _colon_speaker(line: str) -> tuple[str, str] | None:
    match = _COLON.match(line)
    if not match:
        return None
    prefix = match.group(1)
    if len(prefix) >= MAX_SPEAKER_PREFIX or "http" in prefix:
        return None
    return prefix.strip(), match.group(2).strip()


class _Accumulator:
    """Collects utterances, tracking the speaker currently talking."""

    def __init__(self):
        self.utterances: list[Utterance] = []
        self.current: Utterance | None = None

    def start(self, speaker: str, text: str, timestamp: str) -> None:
        self.flush()
        self.current = Utterance(speaker=speaker, text=text, timestamp=timestamp)

    def continue_with(self, text: str) -> bool:
        if self.current is None:
            return False
        self.current.text = f"{self.current.text} {text}".strip()
        return True

    def flush(self) -> None:
        if self.current is not None and self.current.text:
            self.utterances.append(self.current)
        self.current = None


def parse_vtt(content: str) -> list[Utterance]:
    """Parse a WebVTT caption file."""
    acc = _Accumulator()
    cue_timestamp = ""

    for raw_line in content.split("\n"):
        line = raw_line.strip()
        if not line or line == "WEBVTT" or line.startswith("NOTE"):
            continue
        if "-->" in line:
            cue_timestamp = line.split("-->")[0].strip()
            continue
        if _CUE_ID.match(line):
            continue

        speaker = ""
        text = line
        voice = _VOICE_SPAN.match(line)
        if voice:
            speaker = voice.group(1).strip()
            text = re.sub(r"</v>$", "", voice.group(2)).strip()
        else:
            colon = _colon_speaker(line)
            if colon:
                speaker, text = colon

        if speaker:
            acc.start(speaker, text, cue_timestamp)
        elif not acc.continue_with(text):
            acc.start(UNKNOWN_SPEAKER, text, cue_timestamp)

    acc.flush()
    return acc.utterances


def parse_freeform(content: str) -> list[Utterance]:
    """Parse speaker-annotated plain text."""
    acc = _Accumulator()

    for raw_line in content.split("\n"):
        line = raw_line.strip()
        if not line:
            continue

        speaker = ""
        text = ""
        timestamp = ""

        bracketed = _BRACKETED.match(line)
        if bracketed:
            speaker = bracketed.group(1).strip()
            timestamp = bracketed.group(2) or ""
            text = bracketed.group(3).strip()

        if not speaker:
            paren = _PAREN_TIMESTAMP.match(line)
            if paren:
                speaker = paren.group(1).strip()
                timestamp = paren.group(2)
                text = paren.group(3).strip()

        if not speaker:
            colon = _colon_speaker(line)
            if colon:
                speaker, text = colon

        if speaker:
            acc.start(speaker, text, timestamp)
        elif not acc.continue_with(line):
            acc.utterances.append(Utterance(speaker=UNKNOWN_SPEAKER, text=line))

    acc.flush()
    return acc.utterances


def parse_transcript(content: str, transcript_format: TranscriptFormat) -> list[Utterance]:
    """Parse ``content`` in the given format.

    Falls back to one utterance per non-empty line when no structure is found.
    """
    if transcript_format == "vtt":
        utterances = parse_vtt(content)
    else:
        utterances = parse_freeform(content)

    if not utterances:
        utterances = [
            Utterance(speaker=FALLBACK_SPEAKER, text=line.strip())
            for line in content.split("\n")
            if line.strip()
        ]
    return utterances
