"""
Not Found gating: decides whether retrieved evidence is strong enough to answer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Sequence

from .config import RAGConfig
from .retriever import RetrievedChunk
from .scoring import has_direct_snippet

Confidence = Literal["High", "Medium", "Low"]
GateReason = Literal["ok", "low_score", "too_few_chunks", "no_direct_evidence"]


@dataclass
class GatingResult:
    passed: bool
    best_score: float
    supporting_chunks: List[RetrievedChunk] = field(default_factory=list)
    direct_evidence: List[RetrievedChunk] = field(default_factory=list)
    reason: GateReason = "ok"
    confidence: Confidence = "Low"


def confidence_from_scores(
    best_score: float,
    supporting_count: int,
    config: Optional[RAGConfig] = None,
) -> Confidence:
    cfg = config or RAGConfig()
    if best_score >= cfg.high_confidence_score and supporting_count >= cfg.high_confidence_chunks:
        return "High"
    if best_score >= cfg.medium_confidence_score and supporting_count >= cfg.medium_confidence_chunks:
        return "Medium"
    return "Low"


def evaluate_gating(
    query: str,
    scored_chunks: Sequence[RetrievedChunk],
    threshold: Optional[float] = None,
    min_chunks: Optional[int] = None,
    config: Optional[RAGConfig] = None,
) -> GatingResult:
    """
    Decide pass/fail for a ranked chunk list.

    Checks run in a fixed order: best score below threshold (low_score),
    too few supporting chunks (too_few_chunks, waived for a single strong
    direct hit), then no sentence-level direct evidence (no_direct_evidence).
    """
    cfg = config or RAGConfig()
    threshold = cfg.threshold if threshold is None else threshold
    min_chunks = cfg.min_chunks if min_chunks is None else min_chunks

    ranked = sorted(scored_chunks, key=lambda chunk: chunk.score, reverse=True)
    best_score = ranked[0].score if ranked else 0.0

    supporting = [chunk for chunk in ranked if chunk.score >= threshold * cfg.support_ratio]
    direct = [chunk for chunk in supporting if has_direct_snippet(query, chunk.text)]
    adaptive_min_chunks = max(1, min(min_chunks, len(ranked)))

    low_score = best_score < threshold
    too_few = len(supporting) < adaptive_min_chunks
    no_direct = len(direct) == 0

    strong_hit = max(cfg.strong_hit_floor, threshold + cfg.strong_hit_margin)
    if too_few and len(direct) >= 1 and best_score >= strong_hit:
        too_few = False

    reason: GateReason
    if low_score:
        reason = "low_score"
    elif too_few:
        reason = "too_few_chunks"
    elif no_direct:
        reason = "no_direct_evidence"
    else:
        reason = "ok"

    return GatingResult(
        passed=reason == "ok",
        best_score=best_score,
        supporting_chunks=supporting,
        direct_evidence=direct,
        reason=reason,
        confidence=confidence_from_scores(best_score, len(direct), cfg),
    )
