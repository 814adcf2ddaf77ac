"""Unit tests for prdextract.compaction.parsers module."""

from prdextract.compaction.parsers import (
    FALLBACK_SPEAKER,
    UNKNOWN_SPEAKER,
    detect_format,
    parse_freeform,
    parse_transcript,
    parse_vtt,
)

VTT_SAMPLE = """WEBVTT

NOTE recorded on the weekly sync

1
00:00:01.000 --> 00:00:04.000
<v Alice Smith>We need a new onboarding flow.</v>

2
00:00:05.000 --> 00:00:07.000
<v Bob Jones>Agreed, the current one is confusing.
Especially on mobile.

3
00:00:08.000 --> 00:00:09.000
Carol: Let's prototype it next sprint.
"""


class TestDetectFormat:
    def test_vtt_by_extension(self):
        assert detect_format("Alice: hi", "meeting.VTT") == "vtt"

    def test_vtt_by_header(self):
        assert detect_format("\nWEBVTT\n\n00:00.000 --> 00:01.000\nhi") == "vtt"

    def test_defaults_to_text(self):
        assert detect_format("Alice: hi", "meeting.txt") == "txt"
        assert detect_format("Alice: hi") == "txt"


class TestParseVtt:
    """Tests for WebVTT caption parsing."""

    def test_voice_spans_and_colon_speakers(self):
        utterances = parse_vtt(VTT_SAMPLE)

        assert [u.speaker for u in utterances] == ["Alice Smith", "Bob Jones", "Carol"]
        assert utterances[0].text == "We need a new onboarding flow."
        assert utterances[0].timestamp == "00:00:01.000"
        assert utterances[2].text == "Let's prototype it next sprint."
        assert utterances[2].timestamp == "00:00:08.000"

    def test_continuation_lines_join_current_utterance(self):
        utterances = parse_vtt(VTT_SAMPLE)
        assert utterances[1].text == "Agreed, the current one is confusing. Especially on mobile."

    def test_text_before_any_speaker_is_unknown(self):
        content = "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\nno speaker here\n"
        utterances = parse_vtt(content)
        assert len(utterances) == 1
        assert utterances[0].speaker == UNKNOWN_SPEAKER
        assert utterances[0].text == "no speaker here"


class TestParseFreeform:
    """Tests for speaker-annotated plain text."""

    def test_bracketed_speaker_with_timestamp(self):
        utterances = parse_freeform("[Alice] 10:23:45 Let's begin")
        assert len(utterances) == 1
        assert utterances[0].speaker == "Alice"
        assert utterances[0].timestamp == "10:23:45"
        assert utterances[0].text == "Let's begin"

    def test_parenthesized_timestamp(self):
        utterances = parse_freeform("Bob (10:24:00): Sounds good to me")
        assert utterances[0].speaker == "Bob"
        assert utterances[0].timestamp == "10:24:00"
        assert utterances[0].text == "Sounds good to me"

    def test_colon_speaker(self):
        utterances = parse_freeform("Carol: We should ship it\nand then measure adoption")
        assert len(utterances) == 1
        assert utterances[0].speaker == "Carol"
        assert utterances[0].text == "We should ship it and then measure adoption"

    def test_url_is_not_a_speaker(self):
        utterances = parse_freeform("See https://example.com for the mockups")
        assert len(utterances) == 1
        assert utterances[0].speaker == UNKNOWN_SPEAKER
        assert utterances[0].text == "See https://example.com for the mockups"

    def test_long_prefix_is_not_a_speaker(self):
        line = "x" * 60 + ": trailing text"
        utterances = parse_freeform(line)
        assert utterances[0].speaker == UNKNOWN_SPEAKER

    def test_blank_lines_are_ignored(self):
        utterances = parse_freeform("Alice: one\n\n\nBob: two\n")
        assert [(u.speaker, u.text) for u in utterances] == [("Alice", "one"), ("Bob", "two")]


class TestParseTranscript:
    def test_dispatches_on_format(self):
        assert parse_transcript(VTT_SAMPLE, "vtt")[0].speaker == "Alice Smith"
        assert parse_transcript("Alice: hi", "txt")[0].speaker == "Alice"

    def test_fallback_speaker_when_nothing_parsed(self):
        # Cue ids are skipped by the caption parser, leaving nothing structured
        utterances = parse_transcript("12\n34\n", "vtt")
        assert [u.speaker for u in utterances] == [FALLBACK_SPEAKER, FALLBACK_SPEAKER]
        assert [u.text for u in utterances] == ["12", "34"]
