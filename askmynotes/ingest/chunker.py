"""
Fixed-size overlapping chunker for parsed note sections.

Windows of `max_chars` characters, pulled back to the last space when that
space is far enough into the window, with `overlap_chars` carried over into
the next window.
"""

from __future__ import annotations

import dataclasses
from typing import Iterable, List

from askmynotes.rag.utils import clean_text

DEFAULT_MAX_CHARS = 700
DEFAULT_OVERLAP_CHARS = 120
DEFAULT_MIN_CHARS = 80


@dataclasses.dataclass(frozen=True)
class ParsedSection:
    page_or_section: str
    text: str


@dataclasses.dataclass(frozen=True)
class TextChunk:
    page_or_section: str
    text: str


def chunk_text(
    text: str,
    max_chars: int = DEFAULT_MAX_CHARS,
    overlap_chars: int = DEFAULT_OVERLAP_CHARS,
    min_chars: int = DEFAULT_MIN_CHARS,
) -> List[str]:
    normalized = clean_text(text)
    if not normalized:
        return []
    if len(normalized) <= max_chars:
        return [normalized]

    chunks: List[str] = []
    cursor = 0
    length = len(normalized)

    while cursor < length:
        end = min(cursor + max_chars, length)
        if end < length:
            boundary = normalized.rfind(" ", 0, end + 1)
            if boundary > cursor + (max_chars * 6) // 10:
                end = boundary

        piece = clean_text(normalized[cursor:end])
        # The first piece is kept even when short so no text is lost entirely.
        if len(piece) >= min_chars or not chunks:
            chunks.append(piece)

        if end >= length:
            break
        cursor = max(end - overlap_chars, cursor + 1)

    return chunks


def chunk_sections(
    sections: Iterable[ParsedSection],
    max_chars: int = DEFAULT_MAX_CHARS,
    overlap_chars: int = DEFAULT_OVERLAP_CHARS,
    min_chars: int = DEFAULT_MIN_CHARS,
) -> List[TextChunk]:
    """Chunk every section, keeping its page/section label on each piece."""
    return [
        TextChunk(page_or_section=section.page_or_section, text=piece)
        for section in sections
        for piece in chunk_text(section.text, max_chars, overlap_chars, min_chars)
    ]
