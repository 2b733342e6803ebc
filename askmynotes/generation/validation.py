"""
Structural validation of JSON returned by the generation service.

Each `is_valid_*` function is a pure predicate over the decoded object. A
False result means the caller uses its deterministic path instead.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Optional, Sequence

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*(\{.*\})\s*```", re.DOTALL)

STUDY_MIN_COUNTS = {"mcqs": 5, "shortAnswers": 3, "flashcards": 10}
AI_LAB_MIN_COUNTS = {"keyConcepts": 6, "flashcards": 8, "revisionPlan": 3}
PLANNER_MIN_BLOCKS = 3
MCQ_OPTION_COUNT = 4


def extract_json_object(raw: Optional[str]) -> Optional[dict[str, Any]]:
    """First JSON object found in a completion (fenced, bare, or embedded in prose)."""
    if not raw or not raw.strip():
        return None

    text = raw.strip()
    candidates = [text]
    fenced = _JSON_FENCE_RE.search(text)
    if fenced:
        candidates.insert(0, fenced.group(1))
    generic = re.search(r"\{.*\}", text, re.DOTALL)
    if generic and generic.group(0) != text:
        candidates.append(generic.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def resolve_source_index(item: dict[str, Any], position: int, source_count: int) -> Optional[int]:
    """
    0-based evidence index an item points at.

    A missing `sourceIndex` means "same position as the item". A present but
    non-integer or out-of-range value resolves to None.
    """
    raw = item.get("sourceIndex")
    if raw is None:
        return position % source_count if source_count else None
    if not _is_number(raw) or float(raw) != int(raw):
        return None
    index = int(raw) - 1
    if 0 <= index < source_count:
        return index
    return None


def _items_resolve(items: Sequence[Any], source_count: int) -> bool:
    return all(
        isinstance(item, dict) and resolve_source_index(item, i, source_count) is not None
        for i, item in enumerate(items)
    )


def _has_min_lists(payload: Any, minimums: dict[str, int]) -> bool:
    if not isinstance(payload, dict):
        return False
    for key, minimum in minimums.items():
        value = payload.get(key)
        if not isinstance(value, list) or len(value) < minimum:
            return False
    return True


def _valid_mcq(item: dict[str, Any]) -> bool:
    options = item.get("options")
    correct = item.get("correctOption")
    return (
        _non_empty_str(item.get("question"))
        and isinstance(options, list)
        and len(options) >= MCQ_OPTION_COUNT
        and all(_non_empty_str(option) for option in options[:MCQ_OPTION_COUNT])
        and _non_empty_str(item.get("explanation"))
        and _is_number(correct)
        and float(correct) == int(correct)
        and 0 <= int(correct) < MCQ_OPTION_COUNT
    )


def is_valid_study_payload(payload: Any, source_count: int) -> bool:
    if source_count < 1 or not _has_min_lists(payload, STUDY_MIN_COUNTS):
        return False
    mcqs = payload["mcqs"][: STUDY_MIN_COUNTS["mcqs"]]
    shorts = payload["shortAnswers"][: STUDY_MIN_COUNTS["shortAnswers"]]
    cards = payload["flashcards"][: STUDY_MIN_COUNTS["flashcards"]]
    if not _items_resolve(mcqs, source_count):
        return False
    if not _items_resolve(shorts, source_count) or not _items_resolve(cards, source_count):
        return False
    return (
        all(_valid_mcq(item) for item in mcqs)
        and all(_non_empty_str(i.get("question")) and _non_empty_str(i.get("modelAnswer")) for i in shorts)
        and all(_non_empty_str(i.get("front")) and _non_empty_str(i.get("back")) for i in cards)
    )


def is_valid_ai_lab_payload(payload: Any, source_count: int) -> bool:
    if source_count < 1 or not _has_min_lists(payload, AI_LAB_MIN_COUNTS):
        return False
    concepts = payload["keyConcepts"][: AI_LAB_MIN_COUNTS["keyConcepts"]]
    cards = payload["flashcards"][: AI_LAB_MIN_COUNTS["flashcards"]]
    plan = payload["revisionPlan"][: AI_LAB_MIN_COUNTS["revisionPlan"]]
    if not all(_items_resolve(items, source_count) for items in (concepts, cards, plan)):
        return False
    return (
        all(_non_empty_str(i.get("title")) and _non_empty_str(i.get("summary")) for i in concepts)
        and all(_non_empty_str(i.get("front")) and _non_empty_str(i.get("back")) for i in cards)
        and all(_non_empty_str(i.get("focus")) and _non_empty_str(i.get("task")) for i in plan)
    )


def is_valid_explain_payload(payload: Any) -> bool:
    return isinstance(payload, dict) and all(
        _non_empty_str(payload.get(key)) for key in ("oneLiner", "simple", "examReady")
    )


def is_valid_planner_payload(payload: Any, source_count: int) -> bool:
    if source_count < 1 or not isinstance(payload, dict):
        return False
    plan = payload.get("plan")
    if not isinstance(plan, list) or len(plan) < PLANNER_MIN_BLOCKS:
        return False
    if not _items_resolve(plan, source_count):
        return False
    tips = payload.get("tips")
    if tips is not None and not isinstance(tips, list):
        return False
    return all(
        _non_empty_str(item.get("title"))
        and _non_empty_str(item.get("task"))
        and _is_number(item.get("durationMinutes"))
        for item in plan
    )
