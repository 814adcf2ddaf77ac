__version__ = "0.1.0"

# Core imports
from .compaction import CompactionOptions, CompactionResult, compact_transcript
from .errors import (
    ExtractionError,
    IdentityRequiredError,
    InputTooLargeError,
    InvalidInputError,
    ProtocolViolationError,
    QuotaExceededError,
    UpstreamTransportError,
)
from .extraction import (
    DEFAULT_CATALOGUE,
    PRD_SECTION_TEMPLATES,
    ExtractionPipeline,
    PreparedExtraction,
    SectionCatalogue,
    SectionTemplate,
    StreamDecoder,
)
from .llm import LLMProvider, get_provider, register_provider, stream_extraction
from .middleware import QuotaDecision, QuotaGuard, QuotaStore
from .types import (
    CompleteEvent,
    ErrorEvent,
    ExtractionEvent,
    PreprocessedEvent,
    ProgressEvent,
    SectionEvent,
    SourceDocument,
    SourceFile,
)
from .utils import Settings

__all__ = [
    "CompactionOptions",
    "CompactionResult",
    "CompleteEvent",
    "DEFAULT_CATALOGUE",
    "ErrorEvent",
    "ExtractionError",
    "ExtractionEvent",
    "ExtractionPipeline",
    "IdentityRequiredError",
    "InputTooLargeError",
    "InvalidInputError",
    "LLMProvider",
    "PRD_SECTION_TEMPLATES",
    "PreparedExtraction",
    "PreprocessedEvent",
    "ProgressEvent",
    "ProtocolViolationError",
    "QuotaDecision",
    "QuotaExceededError",
    "QuotaGuard",
    "QuotaStore",
    "SectionCatalogue",
    "SectionEvent",
    "SectionTemplate",
    "Settings",
    "SourceDocument",
    "SourceFile",
    "StreamDecoder",
    "UpstreamTransportError",
    "compact_transcript",
    "get_provider",
    "register_provider",
    "stream_extraction",
]
