"""Section extraction: prompts, stream decoding and the end-to-end pipeline."""

from .decoder import DecoderState, StreamDecoder, derive_title, progress_percent, progress_stage
from .pipeline import ExtractionPipeline, PreparedExtraction, compact_within_budget
from .prompts import (
    documents_system_prompt,
    documents_user_message,
    transcript_system_prompt,
    transcript_user_message,
)
from .templates import DEFAULT_CATALOGUE, PRD_SECTION_TEMPLATES, SectionCatalogue, SectionTemplate

__all__ = [
    "DEFAULT_CATALOGUE",
    "DecoderState",
    "ExtractionPipeline",
    "PRD_SECTION_TEMPLATES",
    "PreparedExtraction",
    "SectionCatalogue",
    "SectionTemplate",
    "StreamDecoder",
    "compact_within_budget",
    "derive_title",
    "documents_system_prompt",
    "documents_user_message",
    "progress_percent",
    "progress_stage",
    "transcript_system_prompt",
    "transcript_user_message",
]
