"""Unit tests for prdextract.extraction.prompts and templates modules."""

from prdextract.extraction.prompts import (
    SEPARATOR,
    describe_sections,
    documents_system_prompt,
    documents_user_message,
    transcript_system_prompt,
    transcript_user_message,
)
from prdextract.extraction.templates import (
    DEFAULT_CATALOGUE,
    PRD_SECTION_TEMPLATES,
    SectionCatalogue,
    SectionTemplate,
)
from prdextract.types.types import SourceDocument


class TestSectionCatalogue:
    def test_default_catalogue_has_thirteen_ordered_sections(self):
        assert len(DEFAULT_CATALOGUE) == 13
        assert [t.order for t in DEFAULT_CATALOGUE] == list(range(1, 14))
        assert DEFAULT_CATALOGUE.templates[0].id == "executive-summary"

    def test_only_appendices_are_optional(self):
        optional = [t.id for t in PRD_SECTION_TEMPLATES if not t.required]
        assert optional == ["appendices"]

    def test_title_for_unknown_id_falls_back_to_id(self):
        assert DEFAULT_CATALOGUE.title_for("goals-metrics") == "Goals and Success Metrics"
        assert DEFAULT_CATALOGUE.title_for("nope") == "nope"

    def test_custom_catalogue_sorted_by_order(self):
        catalogue = SectionCatalogue(
            [
                SectionTemplate(id="b", title="B", description="second", order=2),
                SectionTemplate(id="a", title="A", description="first", order=1),
            ],
            title_sources=("a",),
        )
        assert [t.id for t in catalogue] == ["a", "b"]
        assert catalogue.title_sources == ("a",)


class TestSystemPrompts:
    def test_transcript_prompt_lists_every_section(self):
        prompt = transcript_system_prompt()
        for template in PRD_SECTION_TEMPLATES:
            assert f'(ID: "{template.id}"' in prompt
        assert "from 1 to 13" in prompt
        assert '"sectionId":"executive-summary"' in prompt
        assert "{" in prompt and "{{" not in prompt

    def test_documents_prompt_asks_for_source_files(self):
        prompt = documents_system_prompt()
        assert '"sourceFiles":[{"filename":"app.js"' in prompt
        assert "After processing all 13 sections" in prompt

    def test_prompts_follow_custom_catalogue(self):
        catalogue = SectionCatalogue(
            [SectionTemplate(id="only", title="Only", description="d", order=1, required=False)]
        )
        prompt = transcript_system_prompt(catalogue)
        assert '1. **Only** (ID: "only", Optional): d' in prompt
        assert "from 1 to 1" in prompt
        assert describe_sections(catalogue) == '1. **Only** (ID: "only", Optional): d'


class TestUserMessages:
    def test_transcript_message_without_context(self):
        message = transcript_user_message("Alice: hi")
        assert message.startswith("## Transcript to Analyze\n\nAlice: hi" + SEPARATOR)
        assert "Project Context" not in message
        assert "each of the 13 PRD sections" in message

    def test_transcript_message_with_context(self):
        message = transcript_user_message("Alice: hi", context="  B2B analytics  ")
        assert message.startswith("## Project Context\n\n")
        assert "B2B analytics" + SEPARATOR + "## Transcript to Analyze" in message

    def test_blank_context_is_omitted(self):
        assert "Project Context" not in transcript_user_message("Alice: hi", context="   ")

    def test_documents_concatenated_in_order(self):
        documents = [
            SourceDocument(name="a.md", summary="FIRST"),
            SourceDocument(name="b.py", summary="SECOND"),
        ]
        message = documents_user_message(documents)
        assert "## Files to Analyze\n\nFIRST" + SEPARATOR + "SECOND" + SEPARATOR in message
        assert message.index("FIRST") < message.index("SECOND")
