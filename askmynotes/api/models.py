"""
Request and response models for the AskMyNotes API.

Generator payloads (chat answers, study packs, ...) are returned as the
schemas in `askmynotes.generation.schemas`; this module holds the request
bodies and the subject/file resources.
"""

from __future__ import annotations

import datetime as dt
from typing import List, Literal, Optional

from pydantic import Field

from askmynotes.generation.schemas import CamelModel, ChatTurn


class HealthResponse(CamelModel):
    status: str = "ok"
    demo_mode: bool = Field(description="True when no LLM API key is configured")


class SubjectCreateRequest(CamelModel):
    name: str = Field(..., min_length=2, max_length=64)


class SubjectOut(CamelModel):
    id: str
    name: str
    slot: int
    file_count: int = 0
    created_at: dt.datetime


class SubjectListResponse(CamelModel):
    subjects: List[SubjectOut] = Field(default_factory=list)


class NoteFileOut(CamelModel):
    id: str
    file_name: str
    parse_status: Literal["pending", "parsed", "error"]
    sections_count: int = 0
    chunks_count: int = 0
    error_message: str = ""
    created_at: dt.datetime


class NoteFileListResponse(CamelModel):
    files: List[NoteFileOut] = Field(default_factory=list)


class TextNoteRequest(CamelModel):
    """Plain-text notes posted as JSON (TXT/Markdown content)."""

    file_name: str = Field(..., min_length=1, max_length=255)
    text: str = Field(..., min_length=1)


class ChatRequest(CamelModel):
    question: str = Field(..., min_length=2, max_length=1200, description="User question")
    history: List[ChatTurn] = Field(default_factory=list, max_length=12)


class CoachRequest(CamelModel):
    question: str = Field(..., min_length=2, max_length=800)
    answer: str = Field(..., min_length=2, max_length=3000)


class SearchRequest(CamelModel):
    query: str = Field(..., min_length=2, max_length=1000)
    limit: Optional[int] = Field(None, ge=1, le=20)


class ExplainRequest(CamelModel):
    concept: str = Field(..., min_length=2, max_length=600)


class PlannerRequest(CamelModel):
    goal_minutes: int = Field(45, ge=15, le=240)
    focus: Optional[str] = Field(None, min_length=2, max_length=600)
