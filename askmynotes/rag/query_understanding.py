"""
Question classification: summary-style requests and conversational follow-ups.
"""

from __future__ import annotations

import re
from typing import List

_SUMMARY_RE = re.compile(
    r"what is (this|it) about|summary|summarize|overview|main topic|what are these notes about|explain this",
    re.I,
)

_FOLLOW_UP_PATTERNS: List[re.Pattern[str]] = [
    re.compile(pattern, re.I)
    for pattern in (
        r"^give (an|a) example",
        r"^can you give (an|a) example",
        r"^simplify( it| this)?",
        r"^explain( it| this)? in simple terms",
        r"^compare( it| this)",
        r"^what about",
        r"^and what",
        r"^why\??$",
        r"^how\??$",
        r"^elaborate",
        r"^continue",
        r"^tell me more",
        r"^what does that mean",
        r"^same for",
        r"^now compare",
        r"^with the previous",
    )
]

# short questions leaning on one of these are treated as follow-ups
_REFERENCE_WORDS = frozenset({"it", "that", "this", "previous", "same"})
_SHORT_QUESTION_TOKENS = 6


def is_summary_style_question(question: str) -> bool:
    """Broad meta-questions about the notes as a whole ("what is this about")."""
    return bool(_SUMMARY_RE.search(question.lower()))


def is_follow_up_question(question: str) -> bool:
    """Questions that only make sense with the previous turns in view."""
    trimmed = question.strip()
    if not trimmed:
        return False
    if any(pattern.search(trimmed) for pattern in _FOLLOW_UP_PATTERNS):
        return True
    tokens = trimmed.lower().split()
    return len(tokens) <= _SHORT_QUESTION_TOKENS and any(tok in _REFERENCE_WORDS for tok in tokens)

