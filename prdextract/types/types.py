"""Wire types for extraction events and inbound documents.

Events are serialized with camelCase keys and a ``type`` discriminator, one
JSON object per frame.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

ConfidenceLevel = Literal["high", "medium", "low"]


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_json(self) -> str:
        """Serialize with wire (camelCase) keys."""
        return self.model_dump_json(by_alias=True)


class SourceFile(_WireModel):
    """A file reference attached to a section extracted from documents."""

    filename: str
    excerpt: str | None = None


class SourceDocument(_WireModel):
    """One pre-extracted summary handed over by a file or repository reader.

    Attributes:
        name: Identifier of the source (usually its filename)
        summary: Opaque text summary of the source
    """

    name: str
    summary: str


class ProgressEvent(_WireModel):
    type: Literal["progress"] = "progress"
    stage: str
    percent: int = Field(alias="progress")


class PreprocessedEvent(_WireModel):
    """Announces that the input was compacted before analysis."""

    type: Literal["preprocessed"] = "preprocessed"
    original_chars: int
    cleaned_chars: int
    reduction_percent: float
    speaker_map: dict[str, str] = Field(default_factory=dict)


class SectionEvent(_WireModel):
    """One extracted section."""

    type: Literal["section"] = "section"
    section_id: str
    section_title: str
    content: str = ""
    confidence: ConfidenceLevel = "low"
    source_quotes: list[str] = Field(default_factory=list)
    source_files: list[SourceFile] = Field(default_factory=list)


class CompleteEvent(_WireModel):
    type: Literal["complete"] = "complete"
    suggested_title: str
    analysis_notes: str = ""


class ErrorEvent(_WireModel):
    type: Literal["error"] = "error"
    message: str


ExtractionEvent = Annotated[
    Union[ProgressEvent, PreprocessedEvent, SectionEvent, CompleteEvent, ErrorEvent],
    Field(discriminator="type"),
]

_EVENT_ADAPTER: TypeAdapter = TypeAdapter(ExtractionEvent)


def parse_event(payload: str | bytes) -> ExtractionEvent:
    """Parse one JSON event payload.

    Raises:
        pydantic.ValidationError: If the payload is not a valid event
    """
    return _EVENT_ADAPTER.validate_json(payload)


def is_terminal(event: BaseModel) -> bool:
    """Whether no further events may follow this one in a session."""
    return isinstance(event, (CompleteEvent, ErrorEvent))
