"""
Notes agent: retrieval plus one grounded generator per feature, for one subject.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from askmynotes.generation import (
    AiLabPack,
    ChatResponse,
    ChatTurn,
    CoachResult,
    ExplainResult,
    GenerationConfig,
    PlannerResult,
    SearchResult,
    StudyPack,
    build_chat_response,
    build_explain_result,
    build_search_result,
    build_study_plan,
    evaluate_answer,
    generate_ai_lab_pack,
    generate_study_pack,
)
from askmynotes.llm.client import SupportsCompletion
from askmynotes.rag.config import RAGConfig
from askmynotes.rag.index import ChunkRecord, filter_chunks_by_subject
from askmynotes.rag.retriever import ChunkRetriever, RetrievedChunk, rank_by_richness

from .query_rewriter import QueryRewriter

STUDY_RICHNESS_DIVISOR = 100
STUDY_CHUNK_LIMIT = 16
AI_LAB_RICHNESS_DIVISOR = 110
AI_LAB_CHUNK_LIMIT = 18
SEARCH_TOP_K = 20
PLANNER_TOP_K = 10
DEFAULT_PLANNER_FOCUS = "most important concepts and key exam topics"


class NotesAgent:
    """Composes retriever, gate and generators; stateless between calls."""

    def __init__(
        self,
        retriever: Optional[ChunkRetriever] = None,
        client: Optional[SupportsCompletion] = None,
        rag_config: Optional[RAGConfig] = None,
        generation_config: Optional[GenerationConfig] = None,
    ):
        self.rag_config = rag_config or RAGConfig()
        self.retriever = retriever or ChunkRetriever(config=self.rag_config)
        self.client = client
        self.generation_config = generation_config or GenerationConfig()
        self.rewriter = QueryRewriter(client, self.generation_config)

    def retrieve(
        self,
        query: str,
        subject_id: str,
        chunks: Iterable[ChunkRecord],
        top_k: Optional[int] = None,
    ) -> List[RetrievedChunk]:
        return self.retriever.retrieve(query, subject_id, chunks, top_k=top_k)

    def chat(
        self,
        question: str,
        subject_id: str,
        subject_name: str,
        chunks: Sequence[ChunkRecord],
        history: Optional[Sequence[ChatTurn]] = None,
    ) -> ChatResponse:
        effective = self.rewriter.rewrite(question, history)
        retrieved = self.retrieve(effective, subject_id, chunks)
        return build_chat_response(
            question,
            subject_name,
            retrieved,
            effective_question=effective,
            history=history,
            client=self.client,
            config=self.generation_config,
            rag_config=self.rag_config,
        )

    def study_pack(
        self,
        subject_id: str,
        chunks: Sequence[ChunkRecord],
        difficulty: str = "medium",
        variation_key: Optional[str] = None,
    ) -> Optional[StudyPack]:
        ranked = rank_by_richness(
            filter_chunks_by_subject(chunks, subject_id),
            divisor=STUDY_RICHNESS_DIVISOR,
            limit=STUDY_CHUNK_LIMIT,
        )
        return generate_study_pack(
            ranked,
            difficulty,
            variation_key,
            client=self.client,
            config=self.generation_config,
        )

    def ai_lab(self, subject_id: str, chunks: Sequence[ChunkRecord]) -> Optional[AiLabPack]:
        ranked = rank_by_richness(
            filter_chunks_by_subject(chunks, subject_id),
            divisor=AI_LAB_RICHNESS_DIVISOR,
            limit=AI_LAB_CHUNK_LIMIT,
        )
        return generate_ai_lab_pack(ranked, client=self.client, config=self.generation_config)

    def coach(
        self,
        question: str,
        answer: str,
        subject_id: str,
        subject_name: str,
        chunks: Sequence[ChunkRecord],
    ) -> CoachResult:
        retrieved = self.retrieve(question, subject_id, chunks)
        return evaluate_answer(
            question,
            answer,
            subject_name,
            retrieved,
            client=self.client,
            config=self.generation_config,
            rag_config=self.rag_config,
        )

    def search(
        self,
        query: str,
        subject_id: str,
        chunks: Sequence[ChunkRecord],
        limit: Optional[int] = None,
    ) -> SearchResult:
        retrieved = self.retrieve(query, subject_id, chunks, top_k=SEARCH_TOP_K)
        return build_search_result(query, retrieved, limit)

    def explain(
        self,
        concept: str,
        subject_id: str,
        subject_name: str,
        chunks: Sequence[ChunkRecord],
    ) -> ExplainResult:
        retrieved = self.retrieve(concept, subject_id, chunks)
        return build_explain_result(
            concept,
            subject_name,
            retrieved,
            client=self.client,
            config=self.generation_config,
            rag_config=self.rag_config,
        )

    def planner(
        self,
        goal_minutes: int,
        subject_id: str,
        chunks: Sequence[ChunkRecord],
        focus: Optional[str] = None,
    ) -> Optional[PlannerResult]:
        query = (focus or "").strip() or DEFAULT_PLANNER_FOCUS
        retrieved = self.retrieve(query, subject_id, chunks, top_k=PLANNER_TOP_K)
        return build_study_plan(
            goal_minutes,
            retrieved,
            focus,
            client=self.client,
            config=self.generation_config,
        )
