"""
Smart search: permissive ranked hits, no gating.
"""

from __future__ import annotations

from typing import Optional, Sequence

from askmynotes.rag.retriever import RetrievedChunk
from askmynotes.rag.utils import round_half_up, truncate

from .schemas import SearchHit, SearchResult

DEFAULT_LIMIT = 8
MAX_LIMIT = 20
SNIPPET_CHARS = 260


def clamp_limit(limit: Optional[int]) -> int:
    return max(1, min(MAX_LIMIT, DEFAULT_LIMIT if limit is None else int(limit)))


def build_search_result(
    query: str,
    retrieved_chunks: Sequence[RetrievedChunk],
    limit: Optional[int] = None,
) -> SearchResult:
    """Every chunk with a positive score, up to `limit` (1..20, default 8)."""
    hits = [
        SearchHit(
            file_name=chunk.file_name,
            page_or_section=chunk.page_or_section,
            chunk_id=chunk.chunk_id,
            score=round_half_up(chunk.score, 3),
            text_snippet=truncate(chunk.text, SNIPPET_CHARS),
        )
        for chunk in [c for c in retrieved_chunks if c.score > 0][: clamp_limit(limit)]
    ]
    return SearchResult(query=query, total_hits=len(hits), hits=hits)
