"""
Text utilities shared by retrieval, generation and ingestion.
"""

from __future__ import annotations

import math
import re
from typing import List

SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
WHITESPACE_RE = re.compile(r"\s+")
NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def truncate(text: str, length: int = 180) -> str:
    """Cut text to at most `length` characters, marking the cut with '...'."""
    if len(text) <= length:
        return text
    return f"{text[: length - 3]}..."


def clean_text(text: str) -> str:
    return WHITESPACE_RE.sub(" ", text).strip()


def split_sentences(text: str) -> List[str]:
    """Split on sentence-ending punctuation without normalizing the pieces."""
    return [piece.strip() for piece in SENTENCE_SPLIT_RE.split(text) if piece.strip()]


def sentence_split(text: str) -> List[str]:
    """Split on sentence-ending punctuation and collapse whitespace inside each sentence."""
    sentences = (clean_text(piece) for piece in SENTENCE_SPLIT_RE.split(text))
    return [s for s in sentences if s]


def tokenize(text: str) -> List[str]:
    """Lowercase alphanumeric tokens longer than two characters (duplicates kept)."""
    return [tok for tok in NON_ALNUM_RE.split(clean_text(text).lower()) if len(tok) > 2]


def pick_keyword(sentence: str) -> str:
    """Longest token of at least four characters; first one wins on ties."""
    terms = [tok for tok in tokenize(sentence) if len(tok) >= 4]
    if not terms:
        return "concept"
    return max(terms, key=len)


def to_title(value: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in value.split())


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with .5 going up, matching what clients compute for marks and scores."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
