"""
Tests for review-card seeding and the review queue workflow (in-memory store).
"""

from __future__ import annotations

import asyncio
import dataclasses
import datetime as dt
import uuid
from typing import Dict, List, Optional

import pytest

from askmynotes.rag.index import ChunkRecord
from askmynotes.skills.review_cards import build_review_cards, is_valid_card, to_card_payload
from askmynotes.skills.review_service import (
    ReviewCardNotFoundError,
    ReviewConflictError,
    ReviewService,
    clamp_queue_limit,
)
from askmynotes.skills.scheduler import ReviewCardState

NOW = dt.datetime(2026, 1, 1, 9, 0, tzinfo=dt.timezone.utc)


@dataclasses.dataclass
class _Card:
    user_id: str
    subject_id: str
    chunk_id: Optional[str]
    file_name: Optional[str]
    page_or_section: Optional[str]
    prompt: Optional[str]
    answer: Optional[str]
    evidence_snippet: Optional[str] = ""
    due_at: Optional[dt.datetime] = None
    repetitions: int = 0
    interval_days: int = 0
    ease_factor: float = 2.5
    lapses: int = 0
    review_count: int = 0
    last_rating: Optional[str] = None
    last_reviewed_at: Optional[dt.datetime] = None
    version: int = 1
    id: str = dataclasses.field(default_factory=lambda: uuid.uuid4().hex)


class _MemoryStore:
    def __init__(self) -> None:
        self.cards: Dict[str, _Card] = {}
        self.conflicts_left = 0

    def _deck(self, user_id: str, subject_id: str) -> List[_Card]:
        return [
            c
            for c in self.cards.values()
            if c.user_id == user_id and c.subject_id == subject_id and is_valid_card(c)
        ]

    async def delete_invalid(self, user_id, subject_id):
        bad = [
            key
            for key, c in self.cards.items()
            if c.user_id == user_id and c.subject_id == subject_id and not is_valid_card(c)
        ]
        for key in bad:
            del self.cards[key]
        return len(bad)

    async def existing_chunk_ids(self, user_id, subject_id):
        return {c.chunk_id for c in self._deck(user_id, subject_id)}

    async def insert_cards(self, user_id, subject_id, seeds, due_at):
        taken = await self.existing_chunk_ids(user_id, subject_id)
        created = 0
        for seed in seeds:
            if seed.chunk_id in taken:
                continue
            taken.add(seed.chunk_id)
            card = _Card(user_id=user_id, subject_id=subject_id, due_at=due_at, **dataclasses.asdict(seed))
            self.cards[card.id] = card
            created += 1
        return created

    async def find_due(self, user_id, subject_id, now, limit):
        due = [c for c in self._deck(user_id, subject_id) if c.due_at <= now]
        return sorted(due, key=lambda c: c.due_at)[:limit]

    async def count(self, user_id, subject_id, *, due_before=None, reviewed_since=None):
        deck = self._deck(user_id, subject_id)
        if due_before is not None:
            deck = [c for c in deck if c.due_at <= due_before]
        if reviewed_since is not None:
            deck = [c for c in deck if c.last_reviewed_at and c.last_reviewed_at >= reviewed_since]
        return len(deck)

    async def next_due_at(self, user_id, subject_id, now):
        future = [c.due_at for c in self._deck(user_id, subject_id) if c.due_at > now]
        return min(future) if future else None

    async def get(self, user_id, subject_id, card_id):
        card = self.cards.get(card_id)
        if card is None or card not in self._deck(user_id, subject_id):
            return None
        return dataclasses.replace(card)

    async def compare_and_set(self, card, expected_version, state: ReviewCardState):
        stored = self.cards[card.id]
        if self.conflicts_left:
            # another writer got there first
            self.conflicts_left -= 1
            stored.version += 1
            stored.review_count += 1
            return None
        if stored.version != expected_version:
            return None
        for field in dataclasses.fields(ReviewCardState):
            setattr(stored, field.name, getattr(state, field.name))
        stored.version += 1
        return dataclasses.replace(stored)


def _chunk(chunk_id: str, text: str, **overrides) -> ChunkRecord:
    values = dict(
        chunk_id=chunk_id,
        file_name="bio.txt",
        page_or_section="Section 1",
        text=text,
        embedding=[],
        subject_id="subject-1",
        file_id="file-1",
    )
    values.update(overrides)
    return ChunkRecord(**values)


LEARNING = "Learning is a relatively permanent change in behavior due to practice and experience."


def _chunks() -> List[ChunkRecord]:
    return [
        _chunk("chunk-1", LEARNING),
        _chunk("chunk-2", "Memory has encoding, storage and retrieval stages that interact during recall."),
        _chunk("chunk-3", "Forgetting follows a curve that drops quickly and then levels off over the following days."),
    ]


def test_build_review_cards_from_chunk():
    cards = build_review_cards([_chunk("chunk-1", LEARNING)])

    assert len(cards) == 1
    assert cards[0].chunk_id == "chunk-1"
    assert len(cards[0].prompt) > 10
    assert "learning" in cards[0].answer.lower()


def test_build_review_cards_skips_unusable_chunks_and_caps():
    chunks = [
        _chunk("", LEARNING),
        _chunk("short", "Too short"),
        _chunk("no-section", LEARNING, page_or_section=""),
    ] + [_chunk(f"c-{i}", LEARNING) for i in range(10)]

    cards = build_review_cards(chunks, max_cards=4)

    assert [c.chunk_id for c in cards] == ["c-0", "c-1", "c-2", "c-3"]


def test_long_sentences_get_templated_prompts():
    text = (
        "Classical conditioning pairs a neutral stimulus with an unconditioned stimulus until the neutral "
        "stimulus alone produces the response."
    )

    card = build_review_cards([_chunk("c-1", text)])[0]

    assert card.prompt == 'Explain "unconditioned" in your own words.'
    assert card.answer == text


def test_card_payload_defaults_and_iso_due_date():
    card = _Card(
        user_id="u",
        subject_id="s",
        chunk_id="c-1",
        file_name="",
        page_or_section="",
        prompt="",
        answer="x",
        due_at=dt.datetime(2026, 1, 1, 0, 10),
    )

    payload = to_card_payload(card)

    assert payload.file_name == "Unknown file"
    assert payload.page_or_section == "Unknown section"
    assert payload.prompt == "Review this concept."
    assert payload.due_at == "2026-01-01T00:10:00Z"
    assert is_valid_card(card) is False


def test_clamp_queue_limit():
    assert clamp_queue_limit(None) == 15
    assert clamp_queue_limit(0) == 15
    assert clamp_queue_limit(100) == 30
    assert clamp_queue_limit(-5) == 1


def test_seed_deck_creates_due_cards_once():
    store = _MemoryStore()
    service = ReviewService(store)

    first = asyncio.run(service.seed_deck("u1", "subject-1", _chunks(), now=NOW))
    second = asyncio.run(service.seed_deck("u1", "subject-1", _chunks(), now=NOW))

    assert first.created_cards == 3
    assert first.stats.total_cards == 3
    assert first.stats.due_count == 3
    assert len(first.due_cards) == 3
    assert second.created_cards == 0
    assert second.stats.total_cards == 3


def test_seed_deck_requires_notes():
    with pytest.raises(ValueError, match="Upload notes first"):
        asyncio.run(ReviewService(_MemoryStore()).seed_deck("u1", "subject-1", []))


def test_queue_purges_invalid_cards():
    store = _MemoryStore()
    broken = _Card(user_id="u1", subject_id="s", chunk_id="c", file_name="f", page_or_section="", prompt="p", answer="a", due_at=NOW)
    store.cards[broken.id] = broken

    queue = asyncio.run(ReviewService(store).get_queue("u1", "s", now=NOW))

    assert queue.stats.total_cards == 0
    assert store.cards == {}


def test_rate_card_schedules_and_updates_stats():
    store = _MemoryStore()
    service = ReviewService(store)
    seeded = asyncio.run(service.seed_deck("u1", "subject-1", _chunks(), now=NOW))
    card_id = seeded.due_cards[0].id

    rated = asyncio.run(service.rate_card("u1", "subject-1", card_id, "good", now=NOW))
    queue = asyncio.run(service.get_queue("u1", "subject-1", now=NOW))

    assert rated.repetitions == 1
    assert rated.interval_days == 1
    assert rated.last_rating == "good"
    assert rated.review_count == 1
    assert rated.due_at == "2026-01-02T09:00:00Z"
    assert queue.stats.due_count == 2
    assert queue.stats.reviewed_today == 1
    assert queue.stats.next_due_at == "2026-01-02T09:00:00Z"
    assert card_id not in [c.id for c in queue.due_cards]


def test_rate_card_retries_after_concurrent_update():
    store = _MemoryStore()
    service = ReviewService(store)
    seeded = asyncio.run(service.seed_deck("u1", "subject-1", _chunks(), now=NOW))
    card_id = seeded.due_cards[0].id
    store.conflicts_left = 1

    rated = asyncio.run(service.rate_card("u1", "subject-1", card_id, "again", now=NOW))

    # the competing write is kept and this rating is applied on top of it
    assert rated.review_count == 2
    assert rated.lapses == 1
    assert store.cards[card_id].version == 3


def test_rate_card_gives_up_after_repeated_conflicts():
    store = _MemoryStore()
    service = ReviewService(store)
    seeded = asyncio.run(service.seed_deck("u1", "subject-1", _chunks(), now=NOW))
    store.conflicts_left = 10

    with pytest.raises(ReviewConflictError):
        asyncio.run(service.rate_card("u1", "subject-1", seeded.due_cards[0].id, "hard", now=NOW))


def test_rate_card_errors():
    service = ReviewService(_MemoryStore())

    with pytest.raises(ValueError, match="Invalid rating"):
        asyncio.run(service.rate_card("u1", "s", "card", "perfect", now=NOW))
    with pytest.raises(ReviewCardNotFoundError):
        asyncio.run(service.rate_card("u1", "s", "missing", "good", now=NOW))


def test_cards_are_scoped_to_user_and_subject():
    store = _MemoryStore()
    service = ReviewService(store)
    seeded = asyncio.run(service.seed_deck("u1", "subject-1", _chunks(), now=NOW))

    other = asyncio.run(service.get_queue("u2", "subject-1", now=NOW))

    assert other.stats.total_cards == 0
    with pytest.raises(ReviewCardNotFoundError):
        asyncio.run(service.rate_card("u2", "subject-1", seeded.due_cards[0].id, "good", now=NOW))
