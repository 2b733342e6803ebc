"""
Embedding backends and the deterministic local hash embedding.

Every backend falls back to `local_embedding` when the real service is not
configured or fails, so retrieval keeps working in demo mode.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, List, Optional, Protocol, Sequence, runtime_checkable

import numpy as np

from .utils import tokenize

if TYPE_CHECKING:
    from askmynotes.llm.client import LLMClient

logger = logging.getLogger(__name__)

LOCAL_EMBED_DIM = 256
EMBEDDING_BATCH_SIZE = 24
EMBEDDING_BACKEND = os.getenv("EMBEDDING_BACKEND", "auto")


def _hash_token(token: str) -> int:
    """31-based rolling hash wrapped to signed 32 bits, then made non-negative."""
    value = 0
    for ch in token:
        value = ((value << 5) - value + ord(ch)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


def local_embedding(text: str, dimension: int = LOCAL_EMBED_DIM) -> List[float]:
    """Hash-bucket term-frequency vector, L2-normalized."""
    dim = max(8, int(dimension))
    vector = np.zeros(dim, dtype=np.float64)
    for token in tokenize(text):
        idx = _hash_token(token) % dim
        vector[idx] += 1.0
        # spill into two neighbouring buckets for lexical recall
        vector[(idx + 13) % dim] += 0.4
        vector[(idx + 37) % dim] += 0.2
    norm = float(np.linalg.norm(vector)) or 1.0
    return (vector / norm).tolist()


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of two vectors; 0.0 for empty, mismatched or zero-norm input."""
    if len(a) == 0 or len(b) == 0 or len(a) != len(b):
        return 0.0
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


@runtime_checkable
class Embedder(Protocol):
    """Anything that maps a batch of texts to one vector per text, in order."""

    def embed(self, texts: List[str]) -> List[List[float]]:
        ...


class HashEmbedder:
    """Deterministic local embedder used in demo mode."""

    def __init__(self, dimension: int = LOCAL_EMBED_DIM) -> None:
        self.dimension = dimension

    def embed(self, texts: List[str]) -> List[List[float]]:
        return [local_embedding(text, self.dimension) for text in texts]


class OpenAIEmbedder:
    """Embeddings from an OpenAI-compatible service, local vectors on failure."""

    def __init__(self, client: "LLMClient", fallback: Optional[HashEmbedder] = None) -> None:
        self.client = client
        self.fallback = fallback or HashEmbedder()

    def embed(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        vectors = self.client.create_embeddings(texts)
        if vectors is None or len(vectors) != len(texts):
            return self.fallback.embed(texts)
        return vectors


def embed_query(embedder: Optional[Embedder], text: str) -> List[float]:
    if embedder is None:
        return local_embedding(text)
    vectors = embedder.embed([text])
    return vectors[0] if vectors else local_embedding(text)


def embed_in_batches(
    embedder: Embedder,
    texts: Sequence[str],
    batch_size: int = EMBEDDING_BATCH_SIZE,
    max_workers: int = 1,
) -> List[List[float]]:
    """
    Embed `texts` in bounded batches, keeping vector i aligned with text i.

    With max_workers > 1 batches are issued concurrently; results are still
    collected in submission order.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    batches = [list(texts[i : i + batch_size]) for i in range(0, len(texts), batch_size)]

    def _embed_batch(batch: List[str]) -> List[List[float]]:
        vectors = embedder.embed(batch)
        if len(vectors) != len(batch):
            logger.warning(
                "Embedder returned %s vectors for %s texts; using local embeddings for this batch",
                len(vectors),
                len(batch),
            )
            return HashEmbedder().embed(batch)
        return vectors

    if max_workers <= 1 or len(batches) <= 1:
        results = [_embed_batch(batch) for batch in batches]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(_embed_batch, batches))

    vectors: List[List[float]] = []
    for batch_vectors in results:
        vectors.extend(batch_vectors)
    return vectors


def create_embedder(client: Optional["LLMClient"] = None, backend: Optional[str] = None) -> Embedder:
    """
    Pick an embedder for EMBEDDING_BACKEND (auto, local, openai, sentence-transformers).

    `auto` uses the service when a client is configured, else the local hash.
    """
    backend = (backend or EMBEDDING_BACKEND or "auto").strip().lower()
    if backend == "sentence-transformers":
        from .dense import SentenceTransformerEmbedder

        return SentenceTransformerEmbedder()
    if backend in ("auto", "openai") and client is not None:
        return OpenAIEmbedder(client)
    if backend == "openai":
        logger.warning("EMBEDDING_BACKEND=openai but no API key is configured; using local embeddings")
    return HashEmbedder()
