"""Shared type definitions."""

from .types import (
    CompleteEvent,
    ConfidenceLevel,
    ErrorEvent,
    ExtractionEvent,
    PreprocessedEvent,
    ProgressEvent,
    SectionEvent,
    SourceDocument,
    SourceFile,
    is_terminal,
    parse_event,
)

__all__ = [
    "CompleteEvent",
    "ConfidenceLevel",
    "ErrorEvent",
    "ExtractionEvent",
    "PreprocessedEvent",
    "ProgressEvent",
    "SectionEvent",
    "SourceDocument",
    "SourceFile",
    "is_terminal",
    "parse_event",
]
