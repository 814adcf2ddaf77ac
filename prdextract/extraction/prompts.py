"""System instructions and user messages sent to the generative-text service."""

from __future__ import annotations

from ..types.types import SourceDocument
from .templates import DEFAULT_CATALOGUE, SectionCatalogue

_TRANSCRIPT_SYSTEM_PROMPT = """\
You are an expert product manager specializing in extracting Product Requirements \
Document (PRD) content from meeting transcripts, stakeholder interviews, and discovery \
sessions.

Your task is to analyze the provided transcript and extract relevant information for each \
PRD section. You must be thorough, accurate, and honest about your confidence levels.

## PRD Sections to Extract

{section_descriptions}

## Output Format

You MUST output valid JSON objects, one per line, for each section you process. Do not \
include any other text, markdown formatting, or code blocks around the JSON.

For each section, output a JSON object on its own line:

{{"type":"section","sectionId":"{first_id}","content":"Extracted content in markdown \
format","confidence":"high","sourceQuotes":["Direct quote from transcript"]}}

## Confidence Levels

- **high**: Multiple clear, explicit mentions in transcript that directly address this \
section. The information is unambiguous.
- **medium**: Some relevant information found, but may need user refinement or \
interpretation. Partial information available.
- **low**: Limited or indirect information; content is largely inferred from context or \
templated. User should review and expand.

## Guidelines

1. **Extract, don't invent**: Only include information explicitly stated or strongly \
implied in the transcript
2. **Preserve context**: Include 1-3 relevant quotes that support the extracted content
3. **Mark gaps**: If a section has no relevant content, set confidence to "low" and \
provide a placeholder noting what's missing
4. **Use markdown**: Format content with headers, bullets, and emphasis for readability
5. **Be specific**: Convert vague statements into concrete requirements where transcript \
supports it
6. **Process in order**: Output sections in order from 1 to {count}

After processing all {count} sections, output a final summary line:

{{"type":"complete","suggestedTitle":"Suggested PRD Title Based on Product",\
"analysisNotes":"Brief notes about transcript quality and any major gaps"}}

Begin analyzing now. Output only JSON lines, no other text."""

_DOCUMENTS_SYSTEM_PROMPT = """\
You are an expert product manager and software architect extracting PRD (Product \
Requirements Document) content from source files, documentation, spreadsheets, and code.

Your task is to analyze the provided files and extract relevant information for each PRD \
section. You must be thorough, accurate, and honest about your confidence levels.

## PRD Sections to Extract

{section_descriptions}

## Output Format

You MUST output valid JSON objects, one per line, for each section you process. Do not \
include any other text, markdown formatting, or code blocks around the JSON.

For each section, output a JSON object on its own line:

{{"type":"section","sectionId":"{first_id}","content":"Extracted content in markdown \
format","confidence":"high","sourceFiles":[{{"filename":"app.js","excerpt":"relevant code \
snippet"}}]}}

## Confidence Levels

- **high**: Explicit documentation, clear code comments, or formal requirements found. \
The information is unambiguous.
- **medium**: Inferred from code logic, structure, or naming conventions. May need user \
refinement.
- **low**: Limited information; content is largely inferred or templated based on common \
patterns.

## What to Extract from Each File Type

### Code Files
- Business logic and validation rules from function implementations
- Data structures from type definitions and interfaces
- API endpoints and their purposes
- Comments and docstrings describing requirements
- TODO/FIXME comments indicating planned features
- Error handling patterns (edge cases and constraints)

### Spreadsheets
- Business rules from formulas
- Data validation rules (constraints)
- Column headers (data model)
- Calculated fields (derived requirements)

### Documents
- Explicit requirements and specifications
- Process descriptions
- Feature lists
- Acceptance criteria

### Repositories
- Project overview from README
- Architecture from directory structure
- Features from commit messages
- Dependencies and integrations

## Guidelines

1. **Extract, don't invent**: Only include information explicitly stated or strongly \
implied in the files
2. **Cite sources**: Include the filename and relevant excerpt for each piece of \
extracted content
3. **Mark gaps**: If a section has no relevant content, set confidence to "low" and note \
what's missing
4. **Use markdown**: Format content with headers, bullets, and emphasis for readability
5. **Be specific**: Convert code patterns into concrete requirements
6. **Process in order**: Output sections in order from 1 to {count}

After processing all {count} sections, output a final summary line:

{{"type":"complete","suggestedTitle":"Suggested PRD Title Based on Project",\
"analysisNotes":"Brief notes about file quality and any major gaps"}}

Begin analyzing now. Output only JSON lines, no other text."""

SEPARATOR = "\n\n---\n\n"


def describe_sections(catalogue: SectionCatalogue) -> str:
    """One numbered line per section template."""
    lines = []
    for t in catalogue:
        requirement = "Required" if t.required else "Optional"
        lines.append(f'{t.order}. **{t.title}** (ID: "{t.id}", {requirement}): {t.description}')
    return "\n".join(lines)


def _render(template: str, catalogue: SectionCatalogue) -> str:
    return template.format(
        section_descriptions=describe_sections(catalogue),
        first_id=catalogue.templates[0].id,
        count=len(catalogue),
    )


def transcript_system_prompt(catalogue: SectionCatalogue = DEFAULT_CATALOGUE) -> str:
    return _render(_TRANSCRIPT_SYSTEM_PROMPT, catalogue)


def documents_system_prompt(catalogue: SectionCatalogue = DEFAULT_CATALOGUE) -> str:
    return _render(_DOCUMENTS_SYSTEM_PROMPT, catalogue)


def _context_block(context: str | None, subject: str) -> str:
    if not context or not context.strip():
        return ""
    return (
        "## Project Context\n\n"
        f"The following context was provided to help you better understand {subject}:\n\n"
        f"{context.strip()}"
        f"{SEPARATOR}"
    )


def transcript_user_message(
    transcript: str,
    context: str | None = None,
    catalogue: SectionCatalogue = DEFAULT_CATALOGUE,
) -> str:
    """Build the user message for a transcript analysis."""
    count = len(catalogue)
    return (
        _context_block(context, "the meeting and project")
        + f"## Transcript to Analyze\n\n{transcript}{SEPARATOR}"
        + f"Analyze this transcript and extract content for each of the {count} PRD sections. "
        "Output one JSON object per line for each section, then a final completion JSON."
    )


def documents_user_message(
    documents: list[SourceDocument],
    context: str | None = None,
    catalogue: SectionCatalogue = DEFAULT_CATALOGUE,
) -> str:
    """Build the user message for a document analysis.

    Summaries are concatenated in order, each followed by a separator.
    """
    count = len(catalogue)
    parts = [_context_block(context, "the project"), "## Files to Analyze\n\n"]
    for document in documents:
        parts.append(document.summary + SEPARATOR)
    parts.append(
        f"Analyze these files and extract content for each of the {count} PRD sections. "
        "Output one JSON object per line for each section, then a final completion JSON."
    )
    return "".join(parts)
