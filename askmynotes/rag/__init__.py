"""
Retrieval module.

Provides the pieces every grounded feature builds on:
- chunk records and subject filtering
- local hash / service / sentence-transformers embeddings
- lexical + cosine scoring
- the Not Found gate and confidence labels
- the subject-scoped retriever
- question classification (summary-style, follow-up)
"""

from .config import RAGConfig
from .embeddings import (
    Embedder,
    HashEmbedder,
    OpenAIEmbedder,
    cosine_similarity,
    create_embedder,
    embed_in_batches,
    local_embedding,
)
from .gating import GatingResult, confidence_from_scores, evaluate_gating
from .index import ChunkRecord, chunk_records_from_rows, filter_chunks_by_subject
from .query_understanding import is_follow_up_question, is_summary_style_question
from .retriever import ChunkRetriever, RetrievedChunk, rank_by_richness
from .scoring import jaccard_similarity, lexical_similarity, query_terms

__all__ = [
    "RAGConfig",
    "Embedder",
    "HashEmbedder",
    "OpenAIEmbedder",
    "cosine_similarity",
    "create_embedder",
    "embed_in_batches",
    "local_embedding",
    "GatingResult",
    "confidence_from_scores",
    "evaluate_gating",
    "ChunkRecord",
    "chunk_records_from_rows",
    "filter_chunks_by_subject",
    "is_follow_up_question",
    "is_summary_style_question",
    "ChunkRetriever",
    "RetrievedChunk",
    "rank_by_richness",
    "jaccard_similarity",
    "lexical_similarity",
    "query_terms",
]
