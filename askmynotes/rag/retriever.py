"""
Subject-scoped chunk retriever: embed the query, score every chunk, keep top-K.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Iterable, List, Optional

from .config import RAGConfig
from .embeddings import Embedder, embed_query, local_embedding
from .index import ChunkRecord, filter_chunks_by_subject
from .scoring import score_chunk
from .utils import tokenize

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class RetrievedChunk(ChunkRecord):
    """A chunk plus its relevance score for one query (never persisted)."""

    score: float = 0.0

    @classmethod
    def from_record(cls, record: ChunkRecord, score: float) -> "RetrievedChunk":
        values = {f.name: getattr(record, f.name) for f in dataclasses.fields(ChunkRecord)}
        return cls(score=score, **values)


class ChunkRetriever:
    """Scores a subject's chunks with max(cosine, lexical overlap)."""

    def __init__(self, embedder: Optional[Embedder] = None, config: Optional[RAGConfig] = None) -> None:
        self.embedder = embedder
        self.config = config or RAGConfig()

    def retrieve(
        self,
        query: str,
        subject_id: str,
        chunks: Iterable[ChunkRecord],
        top_k: Optional[int] = None,
    ) -> List[RetrievedChunk]:
        """
        Return the top-K chunks of `subject_id` for `query`, best first.

        Chunks of other subjects never reach scoring. An empty result means
        the subject has no notes.
        """
        filtered = filter_chunks_by_subject(chunks, subject_id)
        if not filtered:
            return []

        query_embedding = embed_query(self.embedder, query)
        chunk_dim = len(filtered[0].embedding)
        if chunk_dim > 0 and len(query_embedding) != chunk_dim:
            logger.debug(
                "Query embedding has %s dims, chunks have %s; using local embedding",
                len(query_embedding),
                chunk_dim,
            )
            query_embedding = local_embedding(query, chunk_dim)

        scored = [
            RetrievedChunk.from_record(
                chunk,
                score_chunk(query, chunk.text, query_embedding, chunk.embedding),
            )
            for chunk in filtered
        ]
        scored.sort(key=lambda chunk: chunk.score, reverse=True)
        k = self.config.top_k if top_k is None else top_k
        return scored[:k]


def rank_by_richness(
    chunks: Iterable[ChunkRecord],
    *,
    divisor: float,
    limit: int,
) -> List[RetrievedChunk]:
    """
    Score chunks by unique-term count, min(1, 0.2 + unique / divisor), best first.

    Used where there is no query (study packs, AI lab).
    """
    ranked = [
        RetrievedChunk.from_record(chunk, min(1.0, 0.2 + len(set(tokenize(chunk.text))) / divisor))
        for chunk in chunks
    ]
    ranked.sort(key=lambda chunk: chunk.score, reverse=True)
    return ranked[:limit]
