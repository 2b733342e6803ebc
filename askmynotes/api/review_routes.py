from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from askmynotes.db.repository import ChunkRepository, ReviewCardRepository
from askmynotes.skills.review_service import (
    DEFAULT_QUEUE_LIMIT,
    ReviewCardNotFoundError,
    ReviewConflictError,
    ReviewService,
)
from askmynotes.skills.schemas import (
    ReviewQueue,
    ReviewRateRequest,
    ReviewRateResponse,
    ReviewSeedRequest,
    ReviewSeedResponse,
)

from .deps import CurrentSubject, DbSession

router = APIRouter(prefix="/api/subjects/{subject_id}/review", tags=["review"])


@router.get("", response_model=ReviewQueue)
async def review_queue(
    subject: CurrentSubject,
    db: DbSession,
    limit: int = Query(DEFAULT_QUEUE_LIMIT),
) -> ReviewQueue:
    """Due cards for the subject plus deck stats."""
    service = ReviewService(ReviewCardRepository(db))
    return await service.get_queue(subject.user_id, subject.id, limit)


@router.post("", response_model=ReviewSeedResponse)
async def seed_review_deck(body: ReviewSeedRequest, subject: CurrentSubject, db: DbSession) -> ReviewSeedResponse:
    chunks = await ChunkRepository(db).list_records(subject.user_id, subject.id)
    service = ReviewService(ReviewCardRepository(db))
    try:
        return await service.seed_deck(subject.user_id, subject.id, chunks, body.target)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/{card_id}", response_model=ReviewRateResponse)
async def rate_review_card(
    card_id: str,
    body: ReviewRateRequest,
    subject: CurrentSubject,
    db: DbSession,
) -> ReviewRateResponse:
    service = ReviewService(ReviewCardRepository(db))
    try:
        card = await service.rate_card(subject.user_id, subject.id, card_id, body.rating)
    except ReviewCardNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ReviewConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return ReviewRateResponse(card=card)
