"""
Concept explainer: one-liner, simple and exam-ready explanations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from askmynotes.llm.client import SupportsCompletion
from askmynotes.rag.config import RAGConfig
from askmynotes.rag.gating import confidence_from_scores, evaluate_gating
from askmynotes.rag.retriever import RetrievedChunk
from askmynotes.rag.utils import sentence_split, truncate

from .citations import citations_from_chunks, evidence_from_chunks, not_found_message
from .config import GenerationConfig
from .context_builder import build_evidence_context
from .generator import complete_json
from .prompts import EXPLAIN_SYSTEM_PROMPT, EXPLAIN_USER_PROMPT
from .schemas import ExplainResult
from .validation import is_valid_explain_payload

logger = logging.getLogger(__name__)


@dataclass
class Explanation:
    one_liner: str
    simple: str
    exam_ready: str


def extractive_explanation(chunks: Sequence[RetrievedChunk]) -> Explanation:
    """1, 2 and 4 leading evidence sentences."""
    sentences = [s for chunk in chunks for s in sentence_split(chunk.text)]
    first = sentences[0] if sentences else (chunks[0].text if chunks else "")
    return Explanation(
        one_liner=truncate(first, 140),
        simple=truncate(" ".join(sentences[:2]), 280),
        exam_ready=truncate(" ".join(sentences[:4]), 460),
    )


def _llm_explanation(
    concept: str,
    chunks: Sequence[RetrievedChunk],
    client: SupportsCompletion,
    config: GenerationConfig,
) -> Optional[Explanation]:
    user_prompt = EXPLAIN_USER_PROMPT.format(concept=concept, context=build_evidence_context(chunks))
    payload = complete_json(client, EXPLAIN_SYSTEM_PROMPT, user_prompt, config.explain_temperature)
    if payload is None or not is_valid_explain_payload(payload):
        logger.info("Explanation from generation service rejected; using extractive one")
        return None
    return Explanation(
        one_liner=truncate(payload["oneLiner"].strip(), 160),
        simple=truncate(payload["simple"].strip(), 300),
        exam_ready=truncate(payload["examReady"].strip(), 520),
    )


def build_explain_result(
    concept: str,
    subject_name: str,
    retrieved_chunks: Sequence[RetrievedChunk],
    *,
    client: Optional[SupportsCompletion] = None,
    config: Optional[GenerationConfig] = None,
    rag_config: Optional[RAGConfig] = None,
) -> ExplainResult:
    cfg = config or GenerationConfig()
    gating = evaluate_gating(concept, retrieved_chunks, config=rag_config)
    if not gating.passed:
        refusal = not_found_message(subject_name)
        return ExplainResult(
            concept=concept,
            one_liner=refusal,
            simple=refusal,
            exam_ready=refusal,
            confidence="Low",
            citations=[],
            evidence=[],
        )

    support = gating.direct_evidence[: cfg.support_chunks]
    explanation = None
    if client is not None:
        explanation = _llm_explanation(concept, support, client, cfg)
    explanation = explanation or extractive_explanation(support)

    return ExplainResult(
        concept=concept,
        one_liner=explanation.one_liner,
        simple=explanation.simple,
        exam_ready=explanation.exam_ready,
        confidence=confidence_from_scores(support[0].score, len(support), rag_config),
        citations=citations_from_chunks(support),
        evidence=evidence_from_chunks(support),
    )
