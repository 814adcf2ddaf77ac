"""Transcript compaction - shrink long transcripts below a character budget."""

from .compactor import (
    abbreviate_speakers,
    build_output,
    clean_punctuation,
    compact_transcript,
    merge_consecutive_speakers,
)
from .parsers import detect_format, parse_freeform, parse_transcript, parse_vtt
from .types import CompactionOptions, CompactionResult, TranscriptFormat, Utterance
from .vocabulary import DEFAULT_VOCABULARY, CompactionVocabulary

__all__ = [
    "CompactionOptions",
    "CompactionResult",
    "CompactionVocabulary",
    "DEFAULT_VOCABULARY",
    "TranscriptFormat",
    "Utterance",
    "abbreviate_speakers",
    "build_output",
    "clean_punctuation",
    "compact_transcript",
    "detect_format",
    "merge_consecutive_speakers",
    "parse_freeform",
    "parse_transcript",
    "parse_vtt",
]
