"""Unit tests for prdextract.compaction.compactor module."""

from prdextract.compaction.compactor import (
    abbreviate_speakers,
    build_output,
    clean_punctuation,
    compact_transcript,
    merge_consecutive_speakers,
)
from prdextract.compaction.types import CompactionOptions, Utterance
from prdextract.compaction.vocabulary import DEFAULT_VOCABULARY, CompactionVocabulary

SHORT_MEETING = (
    "Alice: We should ship the export feature in the next release cycle.\n"
    "Bob: yeah\n"
    "Alice: And we need audit logging for every export.\n"
)


def long_meeting(pairs: int = 600) -> str:
    """A transcript of roughly 100 chars per exchange, heavy on fillers."""
    exchange = (
        "Alice Smith: um, so we basically need the user interface to load faster for example.\n"
        "Bob Jones: yeah\n"
    )
    return exchange * pairs


class TestCompactTranscript:
    """Tests for compact_transcript()."""

    def test_text_within_budget_is_unchanged(self):
        result = compact_transcript("Alice: hello there", CompactionOptions(target_chars=100))
        assert result.content == "Alice: hello there"
        assert result.was_processed is False
        assert result.reduction_percent == 0.0
        assert result.speaker_map == {}

    def test_budget_one_above_length_is_unchanged(self):
        text = SHORT_MEETING
        result = compact_transcript(text, CompactionOptions(target_chars=len(text) + 1))
        assert result.content == text
        assert result.was_processed is False

    def test_text_exactly_at_budget_is_unchanged(self):
        text = "x" * 50000
        result = compact_transcript(text)
        assert result.content == text
        assert result.final_chars == 50000
        assert result.was_processed is False

    def test_long_transcript_fits_default_budget(self):
        text = long_meeting()
        assert len(text) > 60000

        result = compact_transcript(text)

        assert result.was_processed is True
        assert result.original_chars == len(text)
        assert result.final_chars == len(result.content)
        assert result.final_chars <= 50000
        assert result.reduction_percent > 0
        assert result.speaker_map == {"Alice Smith": "AS", "Bob Jones": "BJ"}
        assert "basically" not in result.content
        assert all(line.startswith(("[AS] ", "[BJ] ")) for line in result.content.split("\n"))

    def test_drops_backchannels_when_over_budget(self):
        assert len(SHORT_MEETING) == 129
        result = compact_transcript(SHORT_MEETING, CompactionOptions(target_chars=120))

        assert result.content == (
            "[A] We should ship the export feature in the next release cycle.\n"
            "[A] And we need audit logging for every export."
        )
        assert result.final_chars == 112
        assert result.min_utterance_length == 5
        assert result.reduction_percent == 13.2
        assert result.speaker_map == {"Alice": "A", "Bob": "B"}

    def test_compaction_is_idempotent(self):
        options = CompactionOptions(target_chars=50000)
        first = compact_transcript(long_meeting(), options)
        second = compact_transcript(first.content, options)
        assert second.content == first.content

    def test_aggressive_never_longer_than_normal(self):
        text = long_meeting()
        normal = compact_transcript(text, CompactionOptions(target_chars=30000))
        aggressive = compact_transcript(
            text, CompactionOptions(target_chars=30000, aggressive=True)
        )
        assert aggressive.final_chars <= normal.final_chars
        assert aggressive.min_utterance_length >= normal.min_utterance_length

    def test_acronyms_applied_as_last_resort(self):
        result = compact_transcript(long_meeting(), CompactionOptions(target_chars=30000))
        assert "user interface" not in result.content
        assert "UI" in result.content
        assert result.final_chars <= 30000

    def test_returns_over_budget_result_when_nothing_left_to_drop(self):
        text = "Ann: yeah\nBen: ok\n" * 50
        result = compact_transcript(text, CompactionOptions(target_chars=10))
        assert result.was_processed is True
        assert result.final_chars > 10
        assert result.content

    def test_custom_vocabulary(self):
        vocabulary = CompactionVocabulary(filler_patterns=(r"\bblah\b",), backchannels=frozenset())
        text = "Alice: blah we need blah search\n" * 10
        result = compact_transcript(
            text, CompactionOptions(target_chars=len(text) - 1), vocabulary=vocabulary
        )
        assert "blah" not in result.content
        assert "[A] we need search" in result.content


class TestMergeConsecutiveSpeakers:
    def test_merges_runs(self):
        utterances = [
            Utterance("Alice", "one", "00:01"),
            Utterance("Alice", "two", "00:02"),
            Utterance("Bob", "three"),
            Utterance("Alice", "four"),
        ]
        merged = merge_consecutive_speakers(utterances)
        assert [(u.speaker, u.text) for u in merged] == [
            ("Alice", "one two"),
            ("Bob", "three"),
            ("Alice", "four"),
        ]
        assert merged[0].timestamp == "00:01"

    def test_does_not_mutate_input(self):
        utterances = [Utterance("Alice", "one"), Utterance("Alice", "two")]
        merge_consecutive_speakers(utterances)
        assert utterances[0].text == "one"


class TestAbbreviateSpeakers:
    def test_initials(self):
        assert abbreviate_speakers(["Alice Smith", "Bob"]) == {"Alice Smith": "AS", "Bob": "B"}

    def test_collisions_fall_back_to_prefix_then_counter(self):
        speaker_map = abbreviate_speakers(["Ann", "Andy", "Anna"])
        assert speaker_map == {"Ann": "A", "Andy": "AN", "Anna": "AN1"}

    def test_tokens_are_unique(self):
        speakers = ["Al Lee", "Amy Lin", "Alan Low", "Al", "Alex", "Ali"]
        speaker_map = abbreviate_speakers(speakers)
        assert len(set(speaker_map.values())) == len(speakers)

    def test_fifty_colliding_names_stay_unique(self):
        speakers = [f"Sam Smith {i}" for i in range(25)] + [f"Sa{i}" for i in range(25)]
        speaker_map = abbreviate_speakers(speakers)
        assert len(speaker_map) == 50
        assert len(set(speaker_map.values())) == 50

    def test_repeated_speaker_keeps_first_token(self):
        assert abbreviate_speakers(["Bob", "Bob"]) == {"Bob": "B"}


class TestCleanPunctuation:
    def test_collapses_repeats_and_spacing(self):
        assert clean_punctuation("Hello ,  world..  Next") == "Hello, world. Next"

    def test_space_after_sentence_mark(self):
        assert clean_punctuation("done.next,item") == "done. next, item"


class TestBuildOutput:
    def test_with_and_without_timestamps(self):
        utterances = [Utterance("A", "first", "10:00:01"), Utterance("B", "second")]
        assert build_output(utterances, preserve_timestamps=False) == "[A] first\n[B] second"
        assert build_output(utterances, preserve_timestamps=True) == (
            "[A] 10:00:01 first\n[B] second"
        )


class TestVocabulary:
    """Tests for the default compaction vocabulary."""

    def test_remove_fillers(self):
        cleaned = DEFAULT_VOCABULARY.remove_fillers("um I think we should ship")
        assert cleaned.split() == ["we", "should", "ship"]

    def test_is_backchannel(self):
        assert DEFAULT_VOCABULARY.is_backchannel("Yeah!")
        assert DEFAULT_VOCABULARY.is_backchannel("  Makes sense. ")
        assert not DEFAULT_VOCABULARY.is_backchannel("Yeah, let's do it")

    def test_apply_abbreviations(self):
        text = "We need a Minimum Viable Product, for example"
        assert DEFAULT_VOCABULARY.apply_abbreviations(text) == "We need a MVP, e.g."

    def test_abbreviations_respect_word_boundaries(self):
        assert DEFAULT_VOCABULARY.apply_abbreviations("track key performance indicators") == (
            "track KPIs"
        )
