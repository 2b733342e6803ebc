"""
Chat answers: summary path, gated path and the extractive fallback.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from askmynotes.llm.client import SupportsCompletion
from askmynotes.rag.config import RAGConfig
from askmynotes.rag.gating import confidence_from_scores, evaluate_gating
from askmynotes.rag.query_understanding import is_summary_style_question
from askmynotes.rag.retriever import RetrievedChunk
from askmynotes.rag.scoring import query_terms
from askmynotes.rag.utils import sentence_split, truncate

from .citations import citations_from_chunks, evidence_from_chunks, not_found_message
from .config import GenerationConfig
from .generator import AnswerGenerator
from .schemas import ChatResponse, ChatTurn


def not_found_response(subject_name: str) -> ChatResponse:
    return ChatResponse(
        answer=not_found_message(subject_name),
        confidence="Low",
        citations=[],
        evidence=[],
    )


def extractive_answer(
    question: str,
    chunks: Sequence[RetrievedChunk],
    max_sentences: int = 3,
    fallback_chars: int = 240,
) -> str:
    """
    Top sentences by query-term overlap (substring match), ties by chunk score.

    Falls back to the head of the first chunk when no sentence overlaps.
    """
    terms = query_terms(question)
    ranked = []
    for chunk in chunks:
        for sentence in sentence_split(chunk.text):
            lower = sentence.lower()
            overlap = sum(1 for term in terms if term in lower)
            ranked.append((sentence, overlap, chunk.score))
    ranked.sort(key=lambda row: (-row[1], -row[2]))

    picked: List[str] = []
    for sentence, overlap, _ in ranked:
        if overlap <= 0 or len(picked) >= max_sentences:
            break
        if sentence not in picked:
            picked.append(sentence)

    if not picked:
        return truncate(chunks[0].text, fallback_chars) if chunks else ""
    return " ".join(picked)


def build_chat_response(
    question: str,
    subject_name: str,
    retrieved_chunks: Sequence[RetrievedChunk],
    *,
    effective_question: Optional[str] = None,
    history: Optional[Sequence[ChatTurn]] = None,
    client: Optional[SupportsCompletion] = None,
    config: Optional[GenerationConfig] = None,
    rag_config: Optional[RAGConfig] = None,
) -> ChatResponse:
    """
    Answer `question` from the subject's retrieved chunks or refuse.

    Summary-style questions skip the gate and use the best chunks directly;
    everything else must pass `evaluate_gating` first.
    """
    cfg = config or GenerationConfig()
    effective = (effective_question or "").strip() or question.strip()
    history = list(history or [])
    generator = AnswerGenerator(client, cfg)

    if is_summary_style_question(question):
        ranked = sorted(retrieved_chunks, key=lambda chunk: chunk.score, reverse=True)
        support = [chunk for chunk in ranked if chunk.text.strip()][: cfg.support_chunks]
        if not support:
            return not_found_response(subject_name)
        confidence = confidence_from_scores(support[0].score, len(support), rag_config)
    else:
        gating = evaluate_gating(effective, retrieved_chunks, config=rag_config)
        if not gating.passed:
            return not_found_response(subject_name)
        support = gating.direct_evidence[: cfg.support_chunks]
        confidence = gating.confidence

    answer = generator.generate(question, effective, history, support) or extractive_answer(
        effective,
        support,
        max_sentences=cfg.extractive_sentences,
        fallback_chars=cfg.extractive_fallback_chars,
    )
    if not answer.strip() or answer.strip() == not_found_message(subject_name):
        return not_found_response(subject_name)

    return ChatResponse(
        answer=answer,
        confidence=confidence,
        citations=citations_from_chunks(support),
        evidence=evidence_from_chunks(support),
    )
