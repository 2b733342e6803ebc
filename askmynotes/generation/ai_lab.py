"""
AI Lab pack: 6 key concepts, 8 flashcards and a 3-day revision plan.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from askmynotes.llm.client import SupportsCompletion
from askmynotes.rag.retriever import RetrievedChunk
from askmynotes.rag.utils import to_title, truncate

from .citations import attach_meta
from .config import GenerationConfig
from .generator import complete_json
from .prompts import AI_LAB_SYSTEM_PROMPT, AI_LAB_USER_PROMPT
from .schemas import AiLabPack, Flashcard, KeyConcept, RevisionPlanItem
from .sources import SourceItem, build_numbered_context, collect_source_items, expand_items
from .validation import AI_LAB_MIN_COUNTS, is_valid_ai_lab_payload, resolve_source_index

logger = logging.getLogger(__name__)

SOURCE_MIN_CHARS = 30
SOURCE_MAX_CHARS = 240
SOURCE_LIMIT = 18
CONCEPT_COUNT = AI_LAB_MIN_COUNTS["keyConcepts"]
FLASHCARD_COUNT = AI_LAB_MIN_COUNTS["flashcards"]
PLAN_DAYS = AI_LAB_MIN_COUNTS["revisionPlan"]


def build_deterministic_ai_lab(items: Sequence[SourceItem]) -> AiLabPack:
    key_concepts = [
        KeyConcept(
            title=to_title(item.keyword),
            summary=item.sentence,
            **attach_meta(item.chunk, item.sentence),
        )
        for item in expand_items(items, CONCEPT_COUNT)
    ]
    flashcards = [
        Flashcard(
            front=f"What do your notes say about {item.keyword}?",
            back=item.sentence,
            **attach_meta(item.chunk, item.sentence),
        )
        for item in expand_items(items, FLASHCARD_COUNT)
    ]
    revision_plan = [
        RevisionPlanItem(
            day=day,
            focus=to_title(item.keyword),
            task=(
                "Review the evidence and rewrite it in your own words, "
                f"then solve one practice question on {item.keyword}."
            ),
            **attach_meta(item.chunk, item.sentence),
        )
        for day, item in enumerate(expand_items(items, PLAN_DAYS), start=1)
    ]
    return AiLabPack(key_concepts=key_concepts, flashcards=flashcards, revision_plan=revision_plan)


def _llm_ai_lab(
    items: Sequence[SourceItem],
    client: SupportsCompletion,
    config: GenerationConfig,
) -> Optional[AiLabPack]:
    user_prompt = AI_LAB_USER_PROMPT.format(context=build_numbered_context(items))
    payload = complete_json(client, AI_LAB_SYSTEM_PROMPT, user_prompt, config.ai_lab_temperature)
    if payload is None or not is_valid_ai_lab_payload(payload, len(items)):
        logger.info("AI lab pack from generation service rejected; using deterministic pack")
        return None

    def source(entry: dict, position: int) -> SourceItem:
        return items[resolve_source_index(entry, position, len(items)) or 0]

    key_concepts = []
    for i, entry in enumerate(payload["keyConcepts"][:CONCEPT_COUNT]):
        item = source(entry, i)
        key_concepts.append(
            KeyConcept(
                title=truncate(entry["title"].strip(), 90),
                summary=truncate(entry["summary"].strip(), 220),
                **attach_meta(item.chunk, item.sentence),
            )
        )
    flashcards = []
    for i, entry in enumerate(payload["flashcards"][:FLASHCARD_COUNT]):
        item = source(entry, i)
        flashcards.append(
            Flashcard(
                front=truncate(entry["front"].strip(), 160),
                back=truncate(entry["back"].strip(), 220),
                **attach_meta(item.chunk, item.sentence),
            )
        )
    revision_plan = []
    for i, entry in enumerate(payload["revisionPlan"][:PLAN_DAYS]):
        item = source(entry, i)
        revision_plan.append(
            RevisionPlanItem(
                day=i + 1,
                focus=truncate(entry["focus"].strip(), 90),
                task=truncate(entry["task"].strip(), 220),
                **attach_meta(item.chunk, item.sentence),
            )
        )
    return AiLabPack(key_concepts=key_concepts, flashcards=flashcards, revision_plan=revision_plan)


def generate_ai_lab_pack(
    chunks: Sequence[RetrievedChunk],
    *,
    client: Optional[SupportsCompletion] = None,
    config: Optional[GenerationConfig] = None,
) -> Optional[AiLabPack]:
    """AI lab pack from sentences of at least 30 chars; None if there are none."""
    items = collect_source_items(
        chunks,
        min_chars=SOURCE_MIN_CHARS,
        max_chars=SOURCE_MAX_CHARS,
        limit=SOURCE_LIMIT,
    )
    if not items:
        return None
    if client is not None:
        pack = _llm_ai_lab(items, client, config or GenerationConfig())
        if pack is not None:
            return pack
    return build_deterministic_ai_lab(items)
