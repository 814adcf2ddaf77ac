"""End-to-end extraction pipeline.

Control flow for one invocation::

    admit(identity)            quota check, before anything expensive
    prepare_transcript(...)    validate, compact if over budget, build prompts
      or prepare_documents(...)
    stream(prepared)           provider deltas -> decoder -> events

``prepare_*`` raise typed errors (InvalidInputError, InputTooLargeError) so a
caller can reject a request before opening the event stream.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from ..compaction.compactor import compact_transcript
from ..compaction.parsers import detect_format
from ..compaction.types import CompactionOptions, CompactionResult
from ..compaction.vocabulary import DEFAULT_VOCABULARY, CompactionVocabulary
from ..errors import InputTooLargeError, InvalidInputError
from ..llm.providers.base import LLMProvider
from ..llm.stream import stream_extraction
from ..middleware.quota import QuotaDecision, QuotaGuard
from ..types.types import (
    ExtractionEvent,
    PreprocessedEvent,
    ProgressEvent,
    SourceDocument,
)
from ..utils.config import Settings
from .decoder import StreamDecoder
from .prompts import (
    documents_system_prompt,
    documents_user_message,
    transcript_system_prompt,
    transcript_user_message,
)
from .templates import DEFAULT_CATALOGUE, SectionCatalogue

logger = logging.getLogger(__name__)


@dataclass
class PreparedExtraction:
    """Everything needed to start the upstream call for one invocation."""

    system_prompt: str
    user_message: str
    lead_events: list[ExtractionEvent] = field(default_factory=list)
    fallback_name: str | None = None
    compaction: CompactionResult | None = None


def compact_within_budget(
    text: str,
    target_chars: int,
    source_name: str | None = None,
    vocabulary: CompactionVocabulary = DEFAULT_VOCABULARY,
) -> CompactionResult:
    """Two-phase compaction: normal first, aggressive if still over budget.

    Raises:
        InputTooLargeError: If even aggressive compaction misses the budget
    """
    fmt = detect_format(text, source_name)
    result = compact_transcript(
        text, CompactionOptions(target_chars=target_chars), fmt, vocabulary=vocabulary
    )
    if result.final_chars > target_chars:
        logger.info("Normal compaction left %d chars, retrying aggressively", result.final_chars)
        result = compact_transcript(
            text,
            CompactionOptions(target_chars=target_chars, aggressive=True),
            fmt,
            vocabulary=vocabulary,
        )
    if result.final_chars > target_chars:
        raise InputTooLargeError(
            original_chars=result.original_chars,
            cleaned_chars=result.final_chars,
            target_chars=target_chars,
        )
    return result


def _name_from_identifier(identifier: str) -> str:
    stem, _ = os.path.splitext(os.path.basename(identifier.rstrip("/")))
    return stem or identifier


class ExtractionPipeline:
    """Runs quota, compaction and streaming extraction for one service configuration."""

    def __init__(
        self,
        provider: LLMProvider,
        quota_guard: QuotaGuard | None = None,
        settings: Settings | None = None,
        catalogue: SectionCatalogue = DEFAULT_CATALOGUE,
        vocabulary: CompactionVocabulary = DEFAULT_VOCABULARY,
    ):
        self.provider = provider
        self.settings = settings or Settings()
        self.quota_guard = quota_guard or QuotaGuard(
            max_tokens=self.settings.rate_limit_per_user,
            refill_interval_ms=self.settings.refill_interval_ms,
        )
        self.catalogue = catalogue
        self.vocabulary = vocabulary

    def admit(self, identity: str) -> QuotaDecision:
        """Consume one quota token for ``identity``.

        Raises:
            QuotaExceededError: If the identity's bucket is empty
        """
        return self.quota_guard.admit(identity)

    def prepare_transcript(
        self,
        transcript: str,
        context: str | None = None,
        filename: str | None = None,
    ) -> PreparedExtraction:
        """Validate and compact a transcript, and build its prompts."""
        min_chars = self.settings.min_transcript_chars
        if len(transcript.strip()) < min_chars:
            raise InvalidInputError(
                f"Transcript must be at least {min_chars} characters",
                details=[{"field": "transcript", "message": f"min length {min_chars}"}],
            )

        logger.info(
            "Preparing transcript analysis: %d chars, context=%s",
            len(transcript),
            "provided" if context else "none",
        )

        lead_events: list[ExtractionEvent] = []
        compaction = None
        text = transcript
        if len(transcript) > self.settings.target_chars:
            compaction = compact_within_budget(
                transcript, self.settings.target_chars, filename, self.vocabulary
            )
            text = compaction.content
            lead_events.append(
                PreprocessedEvent(
                    original_chars=compaction.original_chars,
                    cleaned_chars=compaction.final_chars,
                    reduction_percent=compaction.reduction_percent,
                    speaker_map=compaction.speaker_map,
                )
            )
        lead_events.append(ProgressEvent(stage="analyzing", percent=5))

        return PreparedExtraction(
            system_prompt=transcript_system_prompt(self.catalogue),
            user_message=transcript_user_message(text, context, self.catalogue),
            lead_events=lead_events,
            fallback_name=_name_from_identifier(filename) if filename else None,
            compaction=compaction,
        )

    def prepare_documents(
        self,
        documents: list[SourceDocument],
        context: str | None = None,
    ) -> PreparedExtraction:
        """Build prompts for a list of pre-extracted document summaries."""
        documents = [d for d in documents if d.summary.strip()]
        if not documents:
            raise InvalidInputError(
                "No documents could be parsed",
                details=[{"field": "documents", "message": "at least one non-empty summary"}],
            )

        logger.info("Preparing document analysis: %s", [d.name for d in documents])

        total_chars = sum(len(d.summary) for d in documents)
        if total_chars > self.settings.target_chars:
            raise InputTooLargeError(
                original_chars=total_chars,
                cleaned_chars=total_chars,
                target_chars=self.settings.target_chars,
            )

        return PreparedExtraction(
            system_prompt=documents_system_prompt(self.catalogue),
            user_message=documents_user_message(documents, context, self.catalogue),
            lead_events=[
                ProgressEvent(stage="parsing", percent=5),
                ProgressEvent(stage="analyzing", percent=10),
            ],
            fallback_name=_name_from_identifier(documents[0].name),
        )

    async def stream(self, prepared: PreparedExtraction) -> AsyncIterator[ExtractionEvent]:
        """Yield lead events, then the decoded upstream events."""
        for event in prepared.lead_events:
            yield event

        decoder = StreamDecoder(catalogue=self.catalogue, fallback_name=prepared.fallback_name)
        events = stream_extraction(
            self.provider,
            decoder,
            system_prompt=prepared.system_prompt,
            user_message=prepared.user_message,
            model=self.settings.model,
            max_tokens=self.settings.max_tokens,
        )
        try:
            async for event in events:
                yield event
        finally:
            await events.aclose()
        logger.info("Extraction finished: %d sections decoded", decoder.sections_seen)
