"""
Review-card seeding from note chunks, and mapping stored cards to payloads.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from askmynotes.rag.index import ChunkRecord
from askmynotes.rag.utils import pick_keyword, sentence_split, truncate
from askmynotes.skills.schemas import ReviewCardPayload

MIN_ANSWER_CHARS = 12
CLOZE_MAX_CHARS = 80
REQUIRED_CARD_FIELDS = ("chunk_id", "page_or_section", "file_name", "prompt", "answer")

PROMPT_TEMPLATES = (
    'Explain "{keyword}" in your own words.',
    'Recall the core idea related to "{keyword}".',
    'What does this note imply about "{keyword}"?',
    'State the key takeaway for "{keyword}".',
)


@dataclass(frozen=True)
class ReviewCardSeed:
    """Content of a new review card; scheduling state is added on insert."""

    chunk_id: str
    file_name: str
    page_or_section: str
    prompt: str
    answer: str
    evidence_snippet: str


def pick_answer_sentence(text: str) -> str:
    sentences = sentence_split(text)
    if not sentences:
        return truncate(text.strip(), 220)
    long_enough = [s for s in sentences if len(s) >= 24]
    if not long_enough:
        return truncate(sentences[0], 220)
    return max(long_enough, key=len)


def build_prompt(sentence: str, keyword: str, index: int) -> str:
    """Cloze cue for short sentences, otherwise a template picked round-robin."""
    if len(sentence) <= CLOZE_MAX_CHARS:
        return f"Complete this memory cue: {sentence}"
    return PROMPT_TEMPLATES[index % len(PROMPT_TEMPLATES)].format(keyword=keyword)


def build_review_cards(chunks: Iterable[ChunkRecord], max_cards: int = 40) -> List[ReviewCardSeed]:
    """At most `max_cards` seeds, one per usable chunk, in chunk order."""
    cards: List[ReviewCardSeed] = []
    for chunk in chunks:
        if len(cards) >= max_cards:
            break
        if not chunk.chunk_id or not chunk.file_name or not chunk.page_or_section:
            continue

        answer = pick_answer_sentence(chunk.text)
        if len(answer) < MIN_ANSWER_CHARS:
            continue

        keyword = pick_keyword(answer)
        cards.append(
            ReviewCardSeed(
                chunk_id=chunk.chunk_id,
                file_name=chunk.file_name,
                page_or_section=chunk.page_or_section,
                prompt=build_prompt(answer, keyword, len(cards)),
                answer=truncate(answer, 280),
                evidence_snippet=truncate(answer, 220),
            )
        )
    return cards


def is_valid_card(card: Any) -> bool:
    """A stored card is usable only if every required text field is non-empty."""
    for field in REQUIRED_CARD_FIELDS:
        value = getattr(card, field, None)
        if not isinstance(value, str) or not value:
            return False
    return True


def _iso(value: Optional[dt.datetime]) -> str:
    if value is None:
        value = dt.datetime.now(dt.timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc).isoformat().replace("+00:00", "Z")


def to_card_payload(card: Any) -> ReviewCardPayload:
    """Map a stored card (ORM row or any object with the same attributes)."""
    return ReviewCardPayload(
        id=str(getattr(card, "id", "") or ""),
        chunk_id=card.chunk_id or "",
        file_name=card.file_name or "Unknown file",
        page_or_section=card.page_or_section or "Unknown section",
        prompt=card.prompt or "Review this concept.",
        answer=card.answer or "",
        evidence_snippet=card.evidence_snippet or "",
        due_at=_iso(card.due_at),
        repetitions=card.repetitions or 0,
        interval_days=card.interval_days or 0,
        ease_factor=float(card.ease_factor or 2.5),
        lapses=card.lapses or 0,
        review_count=card.review_count or 0,
        last_rating=card.last_rating or None,
    )
