"""Types for transcript compaction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

TranscriptFormat = Literal["vtt", "txt"]


class CompactionOptions(BaseModel):
    """Immutable compaction request options."""

    model_config = ConfigDict(frozen=True)

    target_chars: int = Field(default=50000, ge=1)
    preserve_timestamps: bool = False
    aggressive: bool = False


class CompactionResult(BaseModel):
    """Result from compact_transcript."""

    model_config = ConfigDict(frozen=True)

    content: str
    original_chars: int
    final_chars: int
    reduction_percent: float
    speaker_map: dict[str, str] = Field(default_factory=dict)
    min_utterance_length: int = 0
    was_processed: bool = False


@dataclass
class Utterance:
    """A contiguous span of text attributed to one speaker."""

    speaker: str
    text: str
    timestamp: str = ""
