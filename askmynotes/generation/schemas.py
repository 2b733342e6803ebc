"""
Payload schemas for grounded generation.

Fields are snake_case in Python and serialize with camelCase aliases
(`chunkId`, `pageOrSection`, `textSnippet`, ...), the names clients use.
"""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Confidence = Literal["High", "Medium", "Low"]
DifficultyLabel = Literal["Easy", "Medium", "Hard"]
Verdict = Literal["Excellent", "Good", "Needs Work"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Citation(CamelModel):
    """Pointer back to the chunk a generated item came from."""

    file_name: str
    page_or_section: str
    chunk_id: str


class EvidenceSnippet(CamelModel):
    """Truncated quote backing a generated item."""

    file_name: str
    page_or_section: str
    text_snippet: str


class GroundedItem(CamelModel):
    citations: List[Citation] = Field(default_factory=list)
    evidence: List[EvidenceSnippet] = Field(default_factory=list)


class ChatTurn(CamelModel):
    role: Literal["user", "assistant"]
    text: str


class ChatResponse(GroundedItem):
    answer: str
    confidence: Confidence


class McqItem(GroundedItem):
    question: str
    options: List[str]
    correct_option: int = Field(ge=0, le=3)
    explanation: str


class ShortAnswerItem(GroundedItem):
    question: str
    model_answer: str


class Flashcard(GroundedItem):
    front: str
    back: str


class StudyPack(CamelModel):
    difficulty: DifficultyLabel
    mcqs: List[McqItem]
    short_answers: List[ShortAnswerItem]
    flashcards: List[Flashcard]


class KeyConcept(GroundedItem):
    title: str
    summary: str


class RevisionPlanItem(GroundedItem):
    day: int
    focus: str
    task: str


class AiLabPack(CamelModel):
    key_concepts: List[KeyConcept]
    flashcards: List[Flashcard]
    revision_plan: List[RevisionPlanItem]


class CoachResult(GroundedItem):
    score: int = Field(ge=0, le=100)
    verdict: Verdict
    feedback: str
    missing_points: List[str] = Field(default_factory=list)
    improved_answer: str


class SearchHit(CamelModel):
    file_name: str
    page_or_section: str
    chunk_id: str
    score: float
    text_snippet: str


class SearchResult(CamelModel):
    query: str
    total_hits: int
    hits: List[SearchHit] = Field(default_factory=list)


class ExplainResult(GroundedItem):
    concept: str
    one_liner: str
    simple: str
    exam_ready: str
    confidence: Confidence


class PlannerBlock(GroundedItem):
    title: str
    duration_minutes: int
    task: str


class PlannerResult(CamelModel):
    goal_minutes: int
    total_minutes: int
    plan: List[PlannerBlock]
    tips: List[str]
