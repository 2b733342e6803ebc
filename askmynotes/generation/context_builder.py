"""
Format conversation history and evidence chunks for prompts.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

from askmynotes.rag.index import ChunkRecord
from askmynotes.rag.utils import truncate

from .schemas import ChatTurn


def compact_history(history: Iterable[ChatTurn], max_turns: int = 8, max_chars: int = 280) -> List[ChatTurn]:
    """Last `max_turns` non-empty turns, each trimmed to `max_chars`."""
    if max_turns <= 0:
        return []
    turns = [turn for turn in history if turn.text.strip()]
    return [
        ChatTurn(role=turn.role, text=truncate(turn.text.strip(), max_chars))
        for turn in turns[-max_turns:]
    ]


def history_prompt(history: Sequence[ChatTurn]) -> str:
    if not history:
        return "None"
    return "\n".join(
        f"{i}. {'User' if turn.role == 'user' else 'Assistant'}: {turn.text}"
        for i, turn in enumerate(history, start=1)
    )


def build_answer_context(chunks: Sequence[ChunkRecord]) -> str:
    """'Context n [chunkId] (file section): text' blocks separated by blank lines."""
    return "\n\n".join(
        f"Context {i} [{chunk.chunk_id}] ({chunk.file_name} {chunk.page_or_section}): {chunk.text}"
        for i, chunk in enumerate(chunks, start=1)
    )


def build_evidence_context(chunks: Sequence[ChunkRecord]) -> str:
    return "\n".join(f"{i}. {chunk.text}" for i, chunk in enumerate(chunks, start=1))
