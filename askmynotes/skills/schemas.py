from __future__ import annotations

from typing import Annotated, List, Literal, Optional

from pydantic import Field

from askmynotes.generation.schemas import CamelModel, StudyPack
from askmynotes.skills.scheduler import ReviewRating


class GradeRequest(CamelModel):
    """Request body for grading a submitted study pack."""

    study_pack: StudyPack
    mcq_answers: List[Annotated[int, Field(ge=0, le=3)]] = Field(
        default_factory=list,
        description="Selected option index (0-3) per MCQ, in pack order",
    )
    short_answers: List[str] = Field(default_factory=list)


class GradeBreakdownItem(CamelModel):
    type: Literal["mcq", "short"]
    question: str
    awarded_marks: float
    max_marks: float
    feedback: str


class McqSummary(CamelModel):
    correct: int
    total: int
    marks: float


class ShortAnswerSummary(CamelModel):
    average_similarity: float = Field(description="Mean similarity as a percentage")
    total: int
    marks: float


class GradeResult(CamelModel):
    """Marks for one study pack submission."""

    total_marks: float
    obtained_marks: float
    percentage: float
    mcq: McqSummary
    short_answers: ShortAnswerSummary
    breakdown: List[GradeBreakdownItem] = Field(default_factory=list)


class ReviewCardPayload(CamelModel):
    """A review card as returned to clients."""

    id: str
    chunk_id: str
    file_name: str
    page_or_section: str
    prompt: str
    answer: str
    evidence_snippet: str
    due_at: str
    repetitions: int
    interval_days: int
    ease_factor: float
    lapses: int
    review_count: int
    last_rating: Optional[ReviewRating] = None


class ReviewStats(CamelModel):
    total_cards: int = 0
    due_count: int = 0
    reviewed_today: int = 0
    next_due_at: Optional[str] = None


class ReviewQueue(CamelModel):
    stats: ReviewStats
    due_cards: List[ReviewCardPayload] = Field(default_factory=list)


class ReviewSeedRequest(CamelModel):
    target: int = Field(default=40, ge=5, le=80, description="Maximum number of new cards")


class ReviewSeedResponse(ReviewQueue):
    created_cards: int = 0


class ReviewRateRequest(CamelModel):
    rating: ReviewRating


class ReviewRateResponse(CamelModel):
    card: ReviewCardPayload
