"""
Rewrite follow-up questions into standalone retrieval queries.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence

from askmynotes.generation.config import GenerationConfig
from askmynotes.generation.context_builder import compact_history, history_prompt
from askmynotes.generation.prompts import REWRITE_SYSTEM_PROMPT, REWRITE_USER_PROMPT
from askmynotes.generation.schemas import ChatTurn
from askmynotes.llm.client import SupportsCompletion
from askmynotes.rag.query_understanding import is_follow_up_question
from askmynotes.rag.utils import truncate

logger = logging.getLogger(__name__)

_STANDALONE_PREFIX_RE = re.compile(r"^standalone question\s*:\s*", re.I)


class QueryRewriter:
    """Fold recent turns into follow-up questions; standalone questions pass through."""

    def __init__(self, client: Optional[SupportsCompletion] = None, config: Optional[GenerationConfig] = None):
        self.client = client
        self.config = config or GenerationConfig()

    def heuristic_rewrite(self, question: str, history: Sequence[ChatTurn]) -> str:
        """'{question}. Previous context: {last user turn} {last assistant turn}'."""
        cfg = self.config
        compact = compact_history(history, cfg.rewrite_history_turns, cfg.history_turn_chars)
        last_user = next((turn.text for turn in reversed(compact) if turn.role == "user"), "")
        last_assistant = next((turn.text for turn in reversed(compact) if turn.role == "assistant"), "")
        context = " ".join(part for part in (last_user, last_assistant) if part)
        if not context:
            return question
        return truncate(f"{question}. Previous context: {context}", cfg.rewrite_max_chars)

    def llm_rewrite(self, question: str, history: Sequence[ChatTurn]) -> Optional[str]:
        if self.client is None or not history:
            return None
        user_prompt = REWRITE_USER_PROMPT.format(history=history_prompt(history), question=question)
        rewrite = self.client.complete(
            REWRITE_SYSTEM_PROMPT,
            user_prompt,
            temperature=self.config.rewrite_temperature,
        )
        if not rewrite:
            return None
        cleaned = _STANDALONE_PREFIX_RE.sub("", rewrite).strip()
        if not cleaned:
            return None
        return truncate(cleaned, self.config.rewrite_max_chars)

    def rewrite(self, question: str, history: Optional[Sequence[ChatTurn]] = None) -> str:
        """The question to retrieve and gate with."""
        question = question.strip()
        cfg = self.config
        compact = compact_history(history or [], cfg.history_turns, cfg.history_turn_chars)
        if not compact or not is_follow_up_question(question):
            return question

        rewritten = self.llm_rewrite(question, compact)
        if rewritten:
            logger.debug("Rewrote follow-up %r -> %r", question, rewritten)
            return rewritten
        return self.heuristic_rewrite(question, compact)


def resolve_effective_question(
    question: str,
    history: Optional[Sequence[ChatTurn]] = None,
    client: Optional[SupportsCompletion] = None,
) -> str:
    return QueryRewriter(client).rewrite(question, history)
