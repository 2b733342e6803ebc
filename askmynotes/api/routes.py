"""
API routes: health, subjects, notes, chat, study, AI lab, boost tools.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from askmynotes.db.repository import ChunkRepository, NoteFileRepository, SubjectLimitError, SubjectRepository
from askmynotes.generation.schemas import (
    AiLabPack,
    ChatResponse,
    CoachResult,
    ExplainResult,
    PlannerResult,
    SearchResult,
    StudyPack,
)
from askmynotes.ingest import ingest_sections, is_supported_upload, parse_text
from askmynotes.skills.grader import grade_submission
from askmynotes.skills.schemas import GradeRequest, GradeResult

from .deps import CurrentRuntime, CurrentSubject, DbSession, UserId, require_chunks
from .models import (
    ChatRequest,
    CoachRequest,
    ExplainRequest,
    HealthResponse,
    NoteFileListResponse,
    NoteFileOut,
    PlannerRequest,
    SearchRequest,
    SubjectCreateRequest,
    SubjectListResponse,
    SubjectOut,
    TextNoteRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _note_file_out(note_file) -> NoteFileOut:
    return NoteFileOut(
        id=note_file.id,
        file_name=note_file.file_name,
        parse_status=note_file.parse_status,
        sections_count=note_file.sections_count,
        chunks_count=note_file.chunks_count,
        error_message=note_file.error_message or "",
        created_at=note_file.created_at,
    )


@router.get("/health", response_model=HealthResponse)
async def health(runtime: CurrentRuntime) -> HealthResponse:
    """Health check."""
    return HealthResponse(status="ok", demo_mode=runtime.demo_mode)


@router.get("/subjects", response_model=SubjectListResponse)
async def list_subjects(db: DbSession, user_id: UserId) -> SubjectListResponse:
    repo = SubjectRepository(db)
    subjects = await repo.list_for_user(user_id)
    counts = await repo.file_counts(user_id)
    return SubjectListResponse(
        subjects=[
            SubjectOut(
                id=subject.id,
                name=subject.name,
                slot=subject.slot,
                file_count=counts.get(subject.id, 0),
                created_at=subject.created_at,
            )
            for subject in subjects
        ]
    )


@router.post("/subjects", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
async def create_subject(body: SubjectCreateRequest, db: DbSession, user_id: UserId) -> SubjectOut:
    name = body.name.strip()
    if len(name) < 2:
        raise _bad_request("Provide a subject name (2-64 chars)")
    try:
        subject = await SubjectRepository(db).create(user_id, name)
    except SubjectLimitError as exc:
        raise _bad_request(str(exc)) from exc
    return SubjectOut(id=subject.id, name=subject.name, slot=subject.slot, created_at=subject.created_at)


@router.delete("/subjects/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subject(subject: CurrentSubject, db: DbSession) -> Response:
    await SubjectRepository(db).delete(subject)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/subjects/{subject_id}/notes", response_model=NoteFileListResponse)
async def list_notes(subject: CurrentSubject, db: DbSession) -> NoteFileListResponse:
    files = await NoteFileRepository(db).list_for_subject(subject.user_id, subject.id)
    return NoteFileListResponse(files=[_note_file_out(f) for f in files])


@router.post("/subjects/{subject_id}/notes", response_model=NoteFileOut, status_code=status.HTTP_201_CREATED)
async def upload_notes(
    body: TextNoteRequest,
    subject: CurrentSubject,
    db: DbSession,
    runtime: CurrentRuntime,
) -> NoteFileOut:
    """Parse, chunk and embed a plain-text note file into the subject."""
    if not is_supported_upload(body.file_name):
        raise _bad_request("Unsupported file type. Upload TXT or Markdown files only.")

    files = NoteFileRepository(db)
    note_file = await files.create(subject.user_id, subject.id, body.file_name, "text/plain")
    sections = parse_text(body.text)
    try:
        records = await asyncio.to_thread(
            ingest_sections,
            sections,
            subject_id=subject.id,
            file_id=note_file.id,
            file_name=note_file.file_name,
            embedder=runtime.get_embedder(),
        )
    except ValueError as exc:
        await files.mark_failed(note_file, str(exc))
        raise _bad_request(str(exc)) from exc

    await ChunkRepository(db).add_records(subject.user_id, records)
    note_file = await files.mark_parsed(note_file, len(sections), len(records))
    return _note_file_out(note_file)


@router.post("/subjects/{subject_id}/chat", response_model=ChatResponse)
async def chat(body: ChatRequest, subject: CurrentSubject, db: DbSession, runtime: CurrentRuntime) -> ChatResponse:
    """Answer from the subject's notes, or the canonical "Not found" refusal."""
    question = body.question.strip()
    if len(question) < 2:
        raise _bad_request("Please provide a valid question")
    chunks = await require_chunks(db, subject, "Upload notes first to chat with this subject.")
    agent = runtime.build_agent()
    return await asyncio.to_thread(agent.chat, question, subject.id, subject.name, chunks, body.history)


@router.get("/subjects/{subject_id}/study", response_model=StudyPack)
async def study(
    subject: CurrentSubject,
    db: DbSession,
    runtime: CurrentRuntime,
    difficulty: Optional[str] = Query(None),
    variation: Optional[str] = Query(None),
) -> StudyPack:
    chunks = await require_chunks(db, subject, "Upload notes first to generate study mode.")
    agent = runtime.build_agent()
    try:
        pack = await asyncio.to_thread(
            agent.study_pack,
            subject.id,
            chunks,
            (difficulty or "medium").strip().lower(),
            (variation or "").strip() or None,
        )
    except ValueError as exc:
        raise _bad_request(str(exc)) from exc
    if pack is None:
        raise _bad_request("Not enough note evidence to generate study mode.")
    return pack


@router.post("/subjects/{subject_id}/study/grade", response_model=GradeResult)
async def grade_study(body: GradeRequest, subject: CurrentSubject) -> GradeResult:
    return grade_submission(body.study_pack, body.mcq_answers, body.short_answers)


@router.get("/subjects/{subject_id}/ai-lab", response_model=AiLabPack)
async def ai_lab(subject: CurrentSubject, db: DbSession, runtime: CurrentRuntime) -> AiLabPack:
    chunks = await require_chunks(db, subject, "Upload notes first to unlock AI Lab.")
    agent = runtime.build_agent()
    pack = await asyncio.to_thread(agent.ai_lab, subject.id, chunks)
    if pack is None:
        raise _bad_request("Not enough note evidence to generate AI Lab.")
    return pack


@router.post("/subjects/{subject_id}/ai-lab/coach", response_model=CoachResult)
async def coach(body: CoachRequest, subject: CurrentSubject, db: DbSession, runtime: CurrentRuntime) -> CoachResult:
    chunks = await require_chunks(db, subject, "Upload notes first to use answer coach.")
    agent = runtime.build_agent()
    return await asyncio.to_thread(
        agent.coach,
        body.question.strip(),
        body.answer.strip(),
        subject.id,
        subject.name,
        chunks,
    )


@router.post("/subjects/{subject_id}/boost/search", response_model=SearchResult)
async def boost_search(body: SearchRequest, subject: CurrentSubject, db: DbSession, runtime: CurrentRuntime) -> SearchResult:
    chunks = await require_chunks(db, subject, "Upload notes first to use smart search.")
    agent = runtime.build_agent()
    return await asyncio.to_thread(agent.search, body.query.strip(), subject.id, chunks, body.limit)


@router.post("/subjects/{subject_id}/boost/explain", response_model=ExplainResult)
async def boost_explain(body: ExplainRequest, subject: CurrentSubject, db: DbSession, runtime: CurrentRuntime) -> ExplainResult:
    chunks = await require_chunks(db, subject, "Upload notes first to use concept explainer.")
    agent = runtime.build_agent()
    return await asyncio.to_thread(agent.explain, body.concept.strip(), subject.id, subject.name, chunks)


@router.post("/subjects/{subject_id}/boost/planner", response_model=PlannerResult)
async def boost_planner(body: PlannerRequest, subject: CurrentSubject, db: DbSession, runtime: CurrentRuntime) -> PlannerResult:
    chunks = await require_chunks(db, subject, "Upload notes first to generate a planner.")
    agent = runtime.build_agent()
    try:
        plan = await asyncio.to_thread(agent.planner, body.goal_minutes, subject.id, chunks, body.focus)
    except ValueError as exc:
        raise _bad_request(str(exc)) from exc
    if plan is None:
        raise _bad_request("Not enough evidence to build a planner.")
    return plan
