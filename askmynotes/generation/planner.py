"""
Study planner: 3 to 8 timed blocks that add up to roughly the goal duration.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from askmynotes.llm.client import SupportsCompletion
from askmynotes.rag.retriever import RetrievedChunk
from askmynotes.rag.scoring import query_terms
from askmynotes.rag.utils import round_half_up, truncate

from .citations import attach_meta
from .config import GenerationConfig
from .generator import complete_json
from .prompts import PLANNER_SYSTEM_PROMPT, PLANNER_USER_PROMPT
from .schemas import PlannerBlock, PlannerResult
from .sources import SourceItem, build_numbered_context, collect_source_items, expand_items
from .validation import is_valid_planner_payload, resolve_source_index

logger = logging.getLogger(__name__)

SOURCE_MIN_CHARS = 24
SOURCE_MAX_CHARS = 230
SOURCE_LIMIT = 12
MIN_BLOCKS = 3
MAX_BLOCKS = 8
MINUTES_PER_BLOCK = 15
MIN_BLOCK_MINUTES = 8
LLM_BLOCK_MINUTES = (5, 90)
MAX_TIPS = 4
DEFAULT_TIP = "Revise high-yield topics first, then active recall."


def _task_for(index: int, item: SourceItem) -> str:
    step = index % 3
    if step == 0:
        return f"Read and annotate: {item.sentence}"
    if step == 1:
        return f"Explain {item.keyword} from memory, then verify with notes."
    return f"Solve one quick question on {item.keyword} and check against evidence."


def build_deterministic_plan(goal_minutes: int, focus: Optional[str], items: Sequence[SourceItem]) -> PlannerResult:
    blocks = max(MIN_BLOCKS, min(MAX_BLOCKS, int(round_half_up(goal_minutes / MINUTES_PER_BLOCK))))
    expanded = expand_items(items, blocks)
    duration = max(MIN_BLOCK_MINUTES, goal_minutes // blocks)

    plan = [
        PlannerBlock(
            title=f"Block {i}: {item.keyword}",
            duration_minutes=duration,
            task=_task_for(i - 1, item),
            **attach_meta(item.chunk, item.sentence),
        )
        for i, item in enumerate(expanded, start=1)
    ]

    focus_terms = query_terms(focus or "")
    common_terms = [item.keyword for item in expanded][:4]
    if focus_terms:
        first_tip = f"Prioritize your focus terms first: {', '.join(focus_terms[:3])}."
    else:
        first_tip = "Start with high-yield topics before detail-heavy sections."
    tips = [
        first_tip,
        f"Use active recall on: {', '.join(common_terms)}.",
        "End with a 3-minute recap from memory.",
    ]
    return PlannerResult(
        goal_minutes=goal_minutes,
        total_minutes=sum(block.duration_minutes for block in plan),
        plan=plan,
        tips=tips,
    )


def _llm_plan(
    goal_minutes: int,
    focus: Optional[str],
    items: Sequence[SourceItem],
    client: SupportsCompletion,
    config: GenerationConfig,
) -> Optional[PlannerResult]:
    user_prompt = PLANNER_USER_PROMPT.format(
        goal_minutes=goal_minutes,
        focus=focus or "General revision",
        context=build_numbered_context(items),
    )
    payload = complete_json(client, PLANNER_SYSTEM_PROMPT, user_prompt, config.planner_temperature)
    if payload is None or not is_valid_planner_payload(payload, len(items)):
        logger.info("Study plan from generation service rejected; using deterministic plan")
        return None

    low, high = LLM_BLOCK_MINUTES
    plan: List[PlannerBlock] = []
    for i, entry in enumerate(payload["plan"][:MAX_BLOCKS]):
        item = items[resolve_source_index(entry, i, len(items)) or 0]
        plan.append(
            PlannerBlock(
                title=truncate(entry["title"].strip(), 90),
                duration_minutes=max(low, min(high, int(round_half_up(float(entry["durationMinutes"]))))),
                task=truncate(entry["task"].strip(), 220),
                **attach_meta(item.chunk, item.sentence),
            )
        )
    tips = [tip.strip() for tip in payload.get("tips") or [] if isinstance(tip, str) and tip.strip()]
    return PlannerResult(
        goal_minutes=goal_minutes,
        total_minutes=sum(block.duration_minutes for block in plan),
        plan=plan,
        tips=tips[:MAX_TIPS] or [DEFAULT_TIP],
    )


def build_study_plan(
    goal_minutes: int,
    retrieved_chunks: Sequence[RetrievedChunk],
    focus: Optional[str] = None,
    *,
    client: Optional[SupportsCompletion] = None,
    config: Optional[GenerationConfig] = None,
) -> Optional[PlannerResult]:
    """Plan for `goal_minutes`; None when no sentence of 24+ chars exists."""
    if goal_minutes <= 0:
        raise ValueError("goal_minutes must be positive")
    items = collect_source_items(
        retrieved_chunks,
        min_chars=SOURCE_MIN_CHARS,
        max_chars=SOURCE_MAX_CHARS,
        limit=SOURCE_LIMIT,
    )
    if not items:
        return None
    if client is not None:
        plan = _llm_plan(goal_minutes, focus, items, client, config or GenerationConfig())
        if plan is not None:
            return plan
    return build_deterministic_plan(goal_minutes, focus, items)
