"""
Configuration for retrieval and the Not Found gate.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass
class RAGConfig:
    """Configuration for retrieval and gating.

    The gate constants were tuned empirically; the order of checks in
    `evaluate_gating` depends on them, so change them together.
    """

    threshold: float = 0.2
    min_chunks: int = 2
    top_k: int = 8
    # supporting chunks need score >= threshold * support_ratio
    support_ratio: float = 0.85
    # single strong hit: best >= max(strong_hit_floor, threshold + strong_hit_margin)
    strong_hit_floor: float = 0.5
    strong_hit_margin: float = 0.1
    high_confidence_score: float = 0.7
    high_confidence_chunks: int = 3
    medium_confidence_score: float = 0.48
    medium_confidence_chunks: int = 2

    @classmethod
    def from_env(cls) -> "RAGConfig":
        """Build a config honoring RETRIEVAL_THRESHOLD and RETRIEVAL_MIN_CHUNKS."""
        return cls(
            threshold=_get_env_float("RETRIEVAL_THRESHOLD", cls.threshold),
            min_chunks=_get_env_int("RETRIEVAL_MIN_CHUNKS", cls.min_chunks),
        )
