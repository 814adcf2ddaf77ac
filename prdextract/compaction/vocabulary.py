"""Lookup tables used by the compactor.

The tables are plain data so callers can swap in their own vocabulary
(another language, a domain-specific acronym list) without touching the
compaction logic.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

DEFAULT_FILLER_PATTERNS: tuple[str, ...] = (
    r"\b(um|uh|er|ah|oh)\b",
    r"\blike,?\s*",
    r"\byou know,?\s*",
    r"\bI mean,?\s*",
    r"\bgonna\b",
    r"\bwanna\b",
    r"\bgotta\b",
    r"\bkinda\b",
    r"\bsorta\b",
    r"\bactually,?\s*",
    r"\bbasically,?\s*",
    r"\bjust\s+",
    r"\breally\s+",
    r"\bso,?\s+",
    r"\bwell,?\s+",
    r"\bI think\b",
    r"\bI guess\b",
)

DEFAULT_BACKCHANNELS: frozenset[str] = frozenset(
    {
        "yeah",
        "okay",
        "right",
        "yes",
        "no",
        "mm-hmm",
        "uh-huh",
        "sure",
        "alright",
        "got it",
        "yep",
        "nope",
        "cool",
        "nice",
        "good",
        "great",
        "thanks",
        "exactly",
        "correct",
        "true",
        "absolutely",
        "perfect",
        "awesome",
        "gotcha",
        "i see",
        "makes sense",
        "for sure",
        "sounds good",
        "definitely",
        "ok",
        "mhm",
        "hmm",
        "hm",
        "yup",
        "uh huh",
        "mm hmm",
    }
)

DEFAULT_ABBREVIATIONS: tuple[tuple[str, str], ...] = (
    ("for example", "e.g."),
    ("that is", "i.e."),
    ("in other words", "i.e."),
    ("and so on", "etc."),
    ("et cetera", "etc."),
    ("as soon as possible", "ASAP"),
    ("end of day", "EOD"),
    ("end of week", "EOW"),
    ("to be determined", "TBD"),
    ("to be announced", "TBA"),
    ("frequently asked questions", "FAQ"),
    ("user interface", "UI"),
    ("user experience", "UX"),
    ("application programming interface", "API"),
    ("minimum viable product", "MVP"),
    ("key performance indicator", "KPI"),
    ("key performance indicators", "KPIs"),
    ("return on investment", "ROI"),
    ("product requirements document", "PRD"),
    ("business requirements document", "BRD"),
)


@dataclass(frozen=True)
class CompactionVocabulary:
    """Filler patterns, backchannel phrases and phrase->acronym substitutions.

    Attributes:
        filler_patterns: Regexes removed from every utterance (case-insensitive)
        backchannels: Lowercase phrases that make up an acknowledgment utterance
        abbreviations: Ordered (phrase, acronym) pairs applied as a last resort
    """

    filler_patterns: tuple[str, ...] = DEFAULT_FILLER_PATTERNS
    backchannels: frozenset[str] = DEFAULT_BACKCHANNELS
    abbreviations: tuple[tuple[str, str], ...] = DEFAULT_ABBREVIATIONS
    _compiled_fillers: tuple[re.Pattern, ...] = field(init=False, repr=False, compare=False)
    _compiled_abbreviations: tuple[tuple[re.Pattern, str], ...] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self):
        fillers = tuple(re.compile(p, re.IGNORECASE) for p in self.filler_patterns)
        abbreviations = tuple(
            (re.compile(rf"\b{re.escape(phrase)}\b", re.IGNORECASE), acronym)
            for phrase, acronym in self.abbreviations
        )
        object.__setattr__(self, "_compiled_fillers", fillers)
        object.__setattr__(self, "_compiled_abbreviations", abbreviations)

    def remove_fillers(self, text: str) -> str:
        for pattern in self._compiled_fillers:
            text = pattern.sub(" ", text)
        return text

    def is_backchannel(self, text: str) -> bool:
        normalized = re.sub(r"[.,!?]", "", text.lower()).strip()
        return normalized in self.backchannels

    def apply_abbreviations(self, text: str) -> str:
        for pattern, acronym in self._compiled_abbreviations:
            text = pattern.sub(acronym, text)
        return text


DEFAULT_VOCABULARY = CompactionVocabulary()
