"""
Answer coach: score a student's answer against gated evidence.
"""

from __future__ import annotations

from collections import Counter
from typing import List, Optional, Sequence

from askmynotes.llm.client import SupportsCompletion
from askmynotes.rag.config import RAGConfig
from askmynotes.rag.gating import evaluate_gating
from askmynotes.rag.retriever import RetrievedChunk
from askmynotes.rag.scoring import jaccard_similarity
from askmynotes.rag.utils import round_half_up, split_sentences, tokenize, truncate

from .citations import citations_from_chunks, evidence_from_chunks, not_found_message
from .config import GenerationConfig
from .context_builder import build_evidence_context
from .generator import complete_text
from .prompts import COACH_SYSTEM_PROMPT, COACH_USER_PROMPT
from .schemas import CoachResult, Verdict

IMPROVED_ANSWER_CHARS = 420
EVIDENCE_TERM_WINDOW = 120
MISSING_POINTS = 5


def verdict_for(score: int) -> Verdict:
    if score >= 80:
        return "Excellent"
    if score >= 55:
        return "Good"
    return "Needs Work"


def feedback_for(score: int, missing_points: Sequence[str]) -> str:
    if score >= 80:
        return "Strong answer grounded in your notes. Add one concrete example to make it even better."
    if score >= 55:
        points = ", ".join(missing_points[:3]) or "key details"
        return f"Partially correct. Improve by covering missing points: {points}."
    return "Answer is weak against your notes. Revisit the evidence and include core definitions and examples."


def missing_points_from_evidence(answer: str, chunks: Sequence[RetrievedChunk]) -> List[str]:
    """Evidence terms (4+ chars) absent from the answer, most frequent first, then longest."""
    answer_terms = set(tokenize(answer))
    evidence_terms = [
        tok for tok in tokenize(" ".join(chunk.text for chunk in chunks)) if len(tok) >= 4
    ][:EVIDENCE_TERM_WINDOW]
    counts = Counter(term for term in evidence_terms if term not in answer_terms)
    ranked = sorted(counts.items(), key=lambda entry: (-entry[1], -len(entry[0])))
    return [term for term, _ in ranked[:MISSING_POINTS]]


def extractive_improved_answer(chunks: Sequence[RetrievedChunk]) -> str:
    sentences = split_sentences(" ".join(chunk.text for chunk in chunks))
    return truncate(" ".join(sentences[:3]), IMPROVED_ANSWER_CHARS)


def evaluate_answer(
    question: str,
    user_answer: str,
    subject_name: str,
    retrieved_chunks: Sequence[RetrievedChunk],
    *,
    client: Optional[SupportsCompletion] = None,
    config: Optional[GenerationConfig] = None,
    rag_config: Optional[RAGConfig] = None,
) -> CoachResult:
    """Coach feedback for `user_answer`; refusal text in every field when gating fails."""
    cfg = config or GenerationConfig()
    gating = evaluate_gating(question, retrieved_chunks, config=rag_config)
    if not gating.passed:
        refusal = not_found_message(subject_name)
        return CoachResult(
            score=0,
            verdict="Needs Work",
            feedback=refusal,
            missing_points=[],
            improved_answer=refusal,
            citations=[],
            evidence=[],
        )

    support = gating.direct_evidence[: cfg.support_chunks]
    expected = " ".join(chunk.text for chunk in support)
    similarity = jaccard_similarity(user_answer, expected)
    score = int(max(0, min(100, round_half_up(similarity * 70 + gating.best_score * 30))))
    missing = missing_points_from_evidence(user_answer, support)

    improved = complete_text(
        client,
        COACH_SYSTEM_PROMPT,
        COACH_USER_PROMPT.format(
            question=question,
            answer=user_answer,
            context=build_evidence_context(support),
        ),
        cfg.coach_temperature,
    )

    return CoachResult(
        score=score,
        verdict=verdict_for(score),
        feedback=feedback_for(score, missing),
        missing_points=missing,
        improved_answer=truncate(improved, IMPROVED_ANSWER_CHARS) if improved else extractive_improved_answer(support),
        citations=citations_from_chunks(support),
        evidence=evidence_from_chunks(support),
    )
