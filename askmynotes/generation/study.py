"""
Study packs: 5 MCQs, 3 short answers and 10 flashcards from evidence sentences.

The deterministic pack is seeded from `difficulty:variationKey`, so the same
key over the same evidence always yields the same pack.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Dict, List, Optional, Sequence

from askmynotes.llm.client import SupportsCompletion
from askmynotes.rag.retriever import RetrievedChunk
from askmynotes.rag.utils import truncate

from .citations import attach_meta
from .config import GenerationConfig
from .generator import complete_json
from .prompts import STUDY_SYSTEM_PROMPT, STUDY_USER_PROMPT
from .schemas import Flashcard, McqItem, ShortAnswerItem, StudyPack
from .sources import SeededRandom, SourceItem, build_numbered_context, collect_source_items, expand_items
from .validation import STUDY_MIN_COUNTS, is_valid_study_payload, resolve_source_index

logger = logging.getLogger(__name__)

DIFFICULTY_LABELS = {"easy": "Easy", "medium": "Medium", "hard": "Hard"}
DIFFICULTY_FOCUS = {
    "easy": "direct definition",
    "medium": "conceptual understanding",
    "hard": "application and comparison",
}

SOURCE_MIN_CHARS = 24
SOURCE_MAX_CHARS = 220
SOURCE_LIMIT = 12
EXPANDED_ITEMS = 10
MCQ_COUNT = STUDY_MIN_COUNTS["mcqs"]
SHORT_COUNT = STUDY_MIN_COUNTS["shortAnswers"]
FLASHCARD_COUNT = STUDY_MIN_COUNTS["flashcards"]
DISTRACTOR_COUNT = 3

MCQ_TEMPLATES = {
    "easy": (
        'Which term from your notes best matches this statement: "{sentence}"?',
        'Pick the correct concept for this line from your notes: "{sentence}".',
        'Identify the term that fits this notes excerpt: "{sentence}".',
    ),
    "medium": (
        'Which term best matches this note statement: "{sentence}"?',
        'Which concept is correctly represented by this excerpt: "{sentence}"?',
        'Select the most accurate term for this notes statement: "{sentence}".',
    ),
    "hard": (
        'In an exam setting, which concept is most strongly supported by this evidence: "{sentence}"?',
        'Which advanced concept is implied by this notes evidence: "{sentence}"?',
        'Choose the best analytical interpretation of this excerpt: "{sentence}".',
    ),
}

SHORT_TEMPLATES = {
    "easy": (
        "Define this concept from your notes in 2-3 lines: {keyword}.",
        "Give a simple explanation from your notes: {keyword}.",
        "Write a short definition of {keyword} based on your notes.",
    ),
    "medium": (
        "Explain this concept from your notes: {keyword}.",
        "Describe {keyword} with one supporting note detail.",
        "What does your subject material say about {keyword}?",
    ),
    "hard": (
        "Apply this concept with one practical scenario from your notes: {keyword}.",
        "Compare {keyword} with a related concept using note evidence.",
        "Answer this analytically: how would you use {keyword} in an exam scenario?",
    ),
}

FLASHCARD_TEMPLATES = (
    "What do your notes say about {keyword}?",
    "Explain the core idea of {keyword}.",
    "State a key point for {keyword} from your notes.",
)


def new_variation_key() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def _check_difficulty(difficulty: str) -> str:
    key = (difficulty or "").strip().lower()
    if key not in DIFFICULTY_LABELS:
        raise ValueError(f"Unknown difficulty {difficulty!r}; use easy, medium or hard.")
    return key


def _distractors(keyword: str, keywords: Sequence[str], index: int) -> List[str]:
    """Three distinct wrong options from other items' keywords, padded with term1, term2..."""
    pool = list(dict.fromkeys(k for k in keywords if k != keyword))
    chosen = pool[index : index + DISTRACTOR_COUNT]
    for candidate in pool:
        if len(chosen) >= DISTRACTOR_COUNT:
            break
        if candidate not in chosen:
            chosen.append(candidate)
    n = 1
    while len(chosen) < DISTRACTOR_COUNT:
        placeholder = f"term{n}"
        n += 1
        if placeholder != keyword and placeholder not in chosen:
            chosen.append(placeholder)
    return chosen


def build_deterministic_study_pack(
    items: Sequence[SourceItem],
    difficulty: str,
    variation_key: str,
) -> StudyPack:
    difficulty = _check_difficulty(difficulty)
    rng = SeededRandom.from_key(f"{difficulty}:{variation_key}")
    expanded = rng.shuffle(expand_items(items, EXPANDED_ITEMS))
    keywords = [item.keyword for item in expanded]
    label = DIFFICULTY_LABELS[difficulty]

    mcqs: List[McqItem] = []
    for index in range(MCQ_COUNT):
        item = expanded[index % len(expanded)]
        options = rng.shuffle([item.keyword, *_distractors(item.keyword, keywords, index)])
        question = rng.pick(MCQ_TEMPLATES[difficulty], index).format(sentence=item.sentence)
        mcqs.append(
            McqItem(
                question=question,
                options=options,
                correct_option=options.index(item.keyword),
                explanation=f"({label}) The source sentence directly references {item.keyword}.",
                **attach_meta(item.chunk, item.sentence),
            )
        )

    short_answers: List[ShortAnswerItem] = []
    for index in range(SHORT_COUNT):
        item = expanded[(index + MCQ_COUNT) % len(expanded)]
        question = rng.pick(SHORT_TEMPLATES[difficulty], index).format(keyword=item.keyword)
        short_answers.append(
            ShortAnswerItem(
                question=question,
                model_answer=item.sentence,
                **attach_meta(item.chunk, item.sentence),
            )
        )

    flashcards: List[Flashcard] = []
    for index in range(FLASHCARD_COUNT):
        item = expanded[index % len(expanded)]
        flashcards.append(
            Flashcard(
                front=rng.pick(FLASHCARD_TEMPLATES, index).format(keyword=item.keyword),
                back=item.sentence,
                **attach_meta(item.chunk, item.sentence),
            )
        )

    return StudyPack(difficulty=label, mcqs=mcqs, short_answers=short_answers, flashcards=flashcards)


def _source(items: Sequence[SourceItem], entry: Dict[str, Any], position: int) -> SourceItem:
    index = resolve_source_index(entry, position, len(items))
    # validated beforehand, so index is never None here
    return items[index or 0]


def _llm_study_pack(
    items: Sequence[SourceItem],
    difficulty: str,
    variation_key: str,
    client: SupportsCompletion,
    config: GenerationConfig,
) -> Optional[StudyPack]:
    rng = SeededRandom.from_key(f"{difficulty}:llm:{variation_key}")
    ordered = rng.shuffle(items)
    user_prompt = STUDY_USER_PROMPT.format(
        variation_key=variation_key,
        difficulty=DIFFICULTY_LABELS[difficulty],
        focus=DIFFICULTY_FOCUS[difficulty],
        context=build_numbered_context(ordered),
    )
    payload = complete_json(client, STUDY_SYSTEM_PROMPT, user_prompt, config.study_temperature)
    if payload is None or not is_valid_study_payload(payload, len(ordered)):
        logger.info("Study pack from generation service rejected; using deterministic pack")
        return None

    mcqs = []
    for i, entry in enumerate(payload["mcqs"][:MCQ_COUNT]):
        source = _source(ordered, entry, i)
        mcqs.append(
            McqItem(
                question=entry["question"].strip(),
                options=[option.strip() for option in entry["options"][:4]],
                correct_option=int(entry["correctOption"]),
                explanation=entry["explanation"].strip(),
                **attach_meta(source.chunk, source.sentence),
            )
        )
    short_answers = []
    for i, entry in enumerate(payload["shortAnswers"][:SHORT_COUNT]):
        source = _source(ordered, entry, i)
        short_answers.append(
            ShortAnswerItem(
                question=entry["question"].strip(),
                model_answer=entry["modelAnswer"].strip(),
                **attach_meta(source.chunk, source.sentence),
            )
        )
    flashcards = []
    for i, entry in enumerate(payload["flashcards"][:FLASHCARD_COUNT]):
        source = _source(ordered, entry, i)
        flashcards.append(
            Flashcard(
                front=truncate(entry["front"].strip(), 200),
                back=truncate(entry["back"].strip(), 260),
                **attach_meta(source.chunk, source.sentence),
            )
        )

    return StudyPack(
        difficulty=DIFFICULTY_LABELS[difficulty],
        mcqs=mcqs,
        short_answers=short_answers,
        flashcards=flashcards,
    )


def generate_study_pack(
    chunks: Sequence[RetrievedChunk],
    difficulty: str = "medium",
    variation_key: Optional[str] = None,
    *,
    client: Optional[SupportsCompletion] = None,
    config: Optional[GenerationConfig] = None,
) -> Optional[StudyPack]:
    """
    Build a study pack, or None when the chunks hold no usable sentence.

    Uses the generation service when available and its JSON validates;
    otherwise the deterministic seeded pack.
    """
    difficulty = _check_difficulty(difficulty)
    variation_key = variation_key or new_variation_key()
    items = collect_source_items(
        chunks,
        min_chars=SOURCE_MIN_CHARS,
        max_chars=SOURCE_MAX_CHARS,
        limit=SOURCE_LIMIT,
    )
    if not items:
        return None

    if client is not None:
        pack = _llm_study_pack(items, difficulty, variation_key, client, config or GenerationConfig())
        if pack is not None:
            return pack
    return build_deterministic_study_pack(items, difficulty, variation_key)
