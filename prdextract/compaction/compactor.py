"""Deterministic, budget-aware transcript compaction.

Shrinks a transcript below a character budget without calling any external
service:

1. Return the text untouched if it already fits
2. Parse it into speaker-attributed utterances
3. Merge consecutive utterances of the same speaker
4. Replace speaker names with short unique abbreviations
5. Strip filler words and normalize punctuation
6. Progressively drop backchannels and short utterances
7. As a last resort, substitute common phrases with acronyms
"""

from __future__ import annotations

import logging
import math
import re

from .parsers import detect_format, parse_transcript
from .types import CompactionOptions, CompactionResult, TranscriptFormat, Utterance
from .vocabulary import DEFAULT_VOCABULARY, CompactionVocabulary

logger = logging.getLogger(__name__)

AGGRESSIVE_START_LENGTH = 10
LENGTH_STEP = 5
MAX_MIN_LENGTH = 100


def merge_consecutive_speakers(utterances: list[Utterance]) -> list[Utterance]:
    """Join runs of utterances by the same speaker into one utterance."""
    merged: list[Utterance] = []
    for utterance in utterances:
        if merged and merged[-1].speaker == utterance.speaker:
            merged[-1].text = f"{merged[-1].text} {utterance.text}"
        else:
            merged.append(
                Utterance(
                    speaker=utterance.speaker,
                    text=utterance.text,
                    timestamp=utterance.timestamp,
                )
            )
    return merged


def abbreviate_speakers(speakers: list[str]) -> dict[str, str]:
    """Build a full-name -> short-token map with pairwise distinct tokens.

    Initials come first; on collision (or when there are none) the first two
    characters are used; a numeric suffix resolves anything left.
    """
    speaker_map: dict[str, str] = {}
    used: set[str] = set()

    for speaker in speakers:
        if speaker in speaker_map:
            continue
        abbrev = "".join(word[0].upper() for word in speaker.split() if word)
        if not abbrev or abbrev in used:
            abbrev = speaker[:2].upper()

        base = abbrev
        counter = 1
        while not abbrev or abbrev in used:
            abbrev = f"{base}{counter}"
            counter += 1

        used.add(abbrev)
        speaker_map[speaker] = abbrev

    return speaker_map


def clean_punctuation(text: str) -> str:
    """Collapse repeated punctuation and whitespace, one space after sentence marks."""
    text = re.sub(r"\.{2,}", ".", text)
    text = re.sub(r",{2,}", ",", text)
    text = re.sub(r"\s{2,}", " ", text)
    text = re.sub(r"\s+([.,!?])", r"\1", text)
    text = re.sub(r"([.,!?])([a-zA-Z])", r"\1 \2", text)
    return text.strip()


def build_output(utterances: list[Utterance], preserve_timestamps: bool) -> str:
    """Serialize utterances as ``[SPK] [timestamp] text`` lines."""
    lines = []
    for u in utterances:
        timestamp = f" {u.timestamp}" if preserve_timestamps and u.timestamp else ""
        lines.append(f"[{u.speaker}]{timestamp} {u.text}")
    return "\n".join(lines)


def _reduction_percent(original_chars: int, final_chars: int) -> float:
    if original_chars == 0:
        return 0.0
    # round half up to one decimal place
    return math.floor((1 - final_chars / original_chars) * 1000 + 0.5) / 10


def compact_transcript(
    text: str,
    options: CompactionOptions | None = None,
    transcript_format: TranscriptFormat | None = None,
    source_name: str | None = None,
    vocabulary: CompactionVocabulary = DEFAULT_VOCABULARY,
) -> CompactionResult:
    """Compact ``text`` to fit ``options.target_chars``.

    Args:
        text: Raw transcript
        options: Budget and behavior flags; defaults to a 50,000 char budget
        transcript_format: "vtt" or "txt"; detected from content/name if omitted
        source_name: Optional filename used for format detection
        vocabulary: Filler, backchannel and abbreviation tables

    Returns:
        CompactionResult. ``final_chars`` may still exceed the budget when no
        further reduction was possible; callers decide whether that is fatal.
    """
    options = options or CompactionOptions()
    original_chars = len(text)

    if original_chars <= options.target_chars:
        return CompactionResult(
            content=text,
            original_chars=original_chars,
            final_chars=original_chars,
            reduction_percent=0.0,
            was_processed=False,
        )

    fmt = transcript_format or detect_format(text, source_name)
    utterances = merge_consecutive_speakers(parse_transcript(text, fmt))

    speaker_map = abbreviate_speakers([u.speaker for u in utterances])
    for u in utterances:
        u.speaker = speaker_map.get(u.speaker, u.speaker)
        u.text = clean_punctuation(vocabulary.remove_fillers(u.text))
    utterances = [u for u in utterances if u.text.strip()]

    output = build_output(utterances, options.preserve_timestamps)
    min_length = AGGRESSIVE_START_LENGTH if options.aggressive else 0

    while len(output) > options.target_chars and min_length <= MAX_MIN_LENGTH:
        min_length += LENGTH_STEP
        utterances = [
            u
            for u in utterances
            if not vocabulary.is_backchannel(u.text) and len(u.text) >= min_length
        ]
        if not utterances:
            break
        output = build_output(utterances, options.preserve_timestamps)

    if len(output) > options.target_chars:
        output = vocabulary.apply_abbreviations(output)

    final_chars = len(output)
    result = CompactionResult(
        content=output,
        original_chars=original_chars,
        final_chars=final_chars,
        reduction_percent=_reduction_percent(original_chars, final_chars),
        speaker_map=speaker_map,
        min_utterance_length=min_length,
        was_processed=True,
    )
    logger.info(
        "Compacted transcript (%s, aggressive=%s): %d -> %d chars (%.1f%%), min length %d",
        fmt,
        options.aggressive,
        original_chars,
        final_chars,
        result.reduction_percent,
        min_length,
    )
    return result
