"""Configuration for grounded generation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class GenerationConfig:
    """Item counts, truncation lengths and temperatures used by the generators."""

    support_chunks: int = 4
    history_turns: int = 8
    rewrite_history_turns: int = 6
    history_turn_chars: int = 280
    rewrite_max_chars: int = 900
    extractive_sentences: int = 3
    extractive_fallback_chars: int = 240

    answer_temperature: float = 0.1
    rewrite_temperature: float = 0.0
    study_temperature: float = 0.3
    ai_lab_temperature: float = 0.3
    coach_temperature: float = 0.2
    explain_temperature: float = 0.2
    planner_temperature: float = 0.25
