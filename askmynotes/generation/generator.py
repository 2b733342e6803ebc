"""
Calls to the generation service, with sentinel and JSON handling.

Every method returns None when the service is absent, fails, refuses, or
returns something unusable; callers then take their deterministic path.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional, Sequence

from askmynotes.llm.client import SupportsCompletion
from askmynotes.rag.index import ChunkRecord

from .config import GenerationConfig
from .context_builder import build_answer_context, compact_history, history_prompt
from .prompts import ANSWER_SYSTEM_PROMPT, ANSWER_USER_PROMPT
from .schemas import ChatTurn
from .validation import extract_json_object

logger = logging.getLogger(__name__)

INSUFFICIENT_RE = re.compile(r"INSUFFICIENT", re.I)


def complete_text(
    client: Optional[SupportsCompletion],
    system_prompt: str,
    user_prompt: str,
    temperature: float,
) -> Optional[str]:
    """Completion text, or None when unavailable or when the model refused."""
    if client is None:
        return None
    response = client.complete(system_prompt, user_prompt, temperature=temperature)
    if not response or INSUFFICIENT_RE.search(response):
        return None
    return response


def complete_json(
    client: Optional[SupportsCompletion],
    system_prompt: str,
    user_prompt: str,
    temperature: float,
) -> Optional[dict[str, Any]]:
    """Decoded JSON object from a completion, or None."""
    if client is None:
        return None
    raw = client.complete(system_prompt, user_prompt, temperature=temperature)
    if not raw:
        return None
    payload = extract_json_object(raw)
    if payload is None:
        logger.info("Generation service returned no parseable JSON object")
    return payload


class AnswerGenerator:
    """Generate a chat answer from evidence chunks using the LLM."""

    def __init__(self, client: Optional[SupportsCompletion], config: Optional[GenerationConfig] = None):
        self.client = client
        self.config = config or GenerationConfig()

    def generate(
        self,
        question: str,
        effective_question: str,
        history: Sequence[ChatTurn],
        chunks: Sequence[ChunkRecord],
    ) -> Optional[str]:
        """Answer from `chunks` only; None if unavailable or the model says INSUFFICIENT."""
        cfg = self.config
        user_prompt = ANSWER_USER_PROMPT.format(
            question=question,
            effective_question=effective_question,
            history=history_prompt(
                compact_history(history, cfg.rewrite_history_turns, cfg.history_turn_chars)
            ),
            context=build_answer_context(chunks),
        )
        return complete_text(self.client, ANSWER_SYSTEM_PROMPT, user_prompt, cfg.answer_temperature)
