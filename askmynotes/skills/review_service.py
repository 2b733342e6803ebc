"""
Review queue workflow: seed a deck, list due cards, apply ratings.

The service owns no storage. It talks to a `ReviewCardStore`, which the db
layer implements with SQLAlchemy and tests implement in memory.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, List, Optional, Protocol, Sequence, Set

from askmynotes.rag.index import ChunkRecord
from askmynotes.skills.review_cards import ReviewCardSeed, build_review_cards, to_card_payload
from askmynotes.skills.scheduler import RATING_QUALITY, ReviewCardState, SM2Scheduler
from askmynotes.skills.schemas import ReviewCardPayload, ReviewQueue, ReviewSeedResponse, ReviewStats

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_LIMIT = 15
MAX_QUEUE_LIMIT = 30
MAX_RATE_ATTEMPTS = 3


class ReviewCardNotFoundError(LookupError):
    pass


class ReviewConflictError(RuntimeError):
    """The card kept changing underneath us while applying a rating."""


class ReviewCardStore(Protocol):
    """Persistence for review cards of one (user, subject) deck."""

    async def delete_invalid(self, user_id: str, subject_id: str) -> int: ...

    async def existing_chunk_ids(self, user_id: str, subject_id: str) -> Set[str]: ...

    async def insert_cards(
        self,
        user_id: str,
        subject_id: str,
        seeds: Sequence[ReviewCardSeed],
        due_at: dt.datetime,
    ) -> int: ...

    async def find_due(self, user_id: str, subject_id: str, now: dt.datetime, limit: int) -> List[Any]: ...

    async def count(
        self,
        user_id: str,
        subject_id: str,
        *,
        due_before: Optional[dt.datetime] = None,
        reviewed_since: Optional[dt.datetime] = None,
    ) -> int: ...

    async def next_due_at(self, user_id: str, subject_id: str, now: dt.datetime) -> Optional[dt.datetime]: ...

    async def get(self, user_id: str, subject_id: str, card_id: str) -> Optional[Any]: ...

    async def compare_and_set(self, card: Any, expected_version: int, state: ReviewCardState) -> Optional[Any]:
        """Write `state` only if the stored version still equals `expected_version`."""
        ...


def clamp_queue_limit(limit: Optional[int]) -> int:
    return max(1, min(MAX_QUEUE_LIMIT, int(limit or DEFAULT_QUEUE_LIMIT)))


def start_of_today(now: dt.datetime) -> dt.datetime:
    return now.astimezone(dt.timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


def card_state(card: Any) -> ReviewCardState:
    return ReviewCardState(
        repetitions=card.repetitions or 0,
        interval_days=card.interval_days or 0,
        ease_factor=card.ease_factor or 2.5,
        lapses=card.lapses or 0,
        due_at=card.due_at,
        last_rating=card.last_rating,
        review_count=card.review_count or 0,
        last_reviewed_at=card.last_reviewed_at,
    )


def _iso_or_none(value: Optional[dt.datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc).isoformat().replace("+00:00", "Z")


class ReviewService:
    def __init__(self, store: ReviewCardStore, scheduler: Optional[SM2Scheduler] = None) -> None:
        self.store = store
        self.scheduler = scheduler or SM2Scheduler()

    async def get_queue(
        self,
        user_id: str,
        subject_id: str,
        limit: Optional[int] = DEFAULT_QUEUE_LIMIT,
        now: Optional[dt.datetime] = None,
    ) -> ReviewQueue:
        """Due cards (oldest first) plus deck stats; invalid cards are purged first."""
        now = now or dt.datetime.now(dt.timezone.utc)
        purged = await self.store.delete_invalid(user_id, subject_id)
        if purged:
            logger.info("Purged %d invalid review cards for subject %s", purged, subject_id)

        due_cards = await self.store.find_due(user_id, subject_id, now, clamp_queue_limit(limit))
        stats = ReviewStats(
            total_cards=await self.store.count(user_id, subject_id),
            due_count=await self.store.count(user_id, subject_id, due_before=now),
            reviewed_today=await self.store.count(user_id, subject_id, reviewed_since=start_of_today(now)),
            next_due_at=_iso_or_none(await self.store.next_due_at(user_id, subject_id, now)),
        )
        return ReviewQueue(stats=stats, due_cards=[to_card_payload(card) for card in due_cards])

    async def seed_deck(
        self,
        user_id: str,
        subject_id: str,
        chunks: Sequence[ChunkRecord],
        target: int = 40,
        now: Optional[dt.datetime] = None,
    ) -> ReviewSeedResponse:
        """Create up to `target` new cards for chunks that don't have one yet."""
        if not chunks:
            raise ValueError("Upload notes first to create a review deck.")

        now = now or dt.datetime.now(dt.timezone.utc)
        await self.store.delete_invalid(user_id, subject_id)
        existing = await self.store.existing_chunk_ids(user_id, subject_id)
        available = [chunk for chunk in chunks if chunk.chunk_id not in existing]

        seeds = build_review_cards(available, target)
        created = await self.store.insert_cards(user_id, subject_id, seeds, now) if seeds else 0
        logger.info("Seeded %d review cards for subject %s", created, subject_id)

        queue = await self.get_queue(user_id, subject_id, DEFAULT_QUEUE_LIMIT, now=now)
        return ReviewSeedResponse(created_cards=created, stats=queue.stats, due_cards=queue.due_cards)

    async def rate_card(
        self,
        user_id: str,
        subject_id: str,
        card_id: str,
        rating: str,
        now: Optional[dt.datetime] = None,
    ) -> ReviewCardPayload:
        """
        Apply one rating as an atomic read-modify-write.

        The write is conditional on the card's version; when another rating
        lands first, the card is re-read and the rating re-applied.
        """
        if rating not in RATING_QUALITY:
            raise ValueError("Invalid rating. Use again, hard, good, or easy.")

        now = now or dt.datetime.now(dt.timezone.utc)
        await self.store.delete_invalid(user_id, subject_id)

        for attempt in range(1, MAX_RATE_ATTEMPTS + 1):
            card = await self.store.get(user_id, subject_id, card_id)
            if card is None:
                raise ReviewCardNotFoundError("Review card not found")

            next_state = self.scheduler.compute_next(card_state(card), rating, now=now)
            updated = await self.store.compare_and_set(card, card.version, next_state)
            if updated is not None:
                return to_card_payload(updated)
            logger.debug("Version conflict rating card %s (attempt %d)", card_id, attempt)

        raise ReviewConflictError("Review card was updated concurrently, please retry.")
