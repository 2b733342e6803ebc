"""
Local semantic embeddings using sentence-transformers (optional extra).
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional

from sentence_transformers import SentenceTransformer

logger = logging.getLogger(__name__)

SENTENCE_TRANSFORMER_MODEL = os.getenv("SENTENCE_TRANSFORMER_MODEL", "all-MiniLM-L6-v2")


class SentenceTransformerEmbedder:
    """Embedder backed by a local SentenceTransformer model, loaded on first use."""

    def __init__(self, model_name: Optional[str] = None, batch_size: int = 64) -> None:
        self.model_name = model_name or SENTENCE_TRANSFORMER_MODEL
        self.batch_size = batch_size
        self._model: Optional[SentenceTransformer] = None

    @property
    def model(self) -> SentenceTransformer:
        if self._model is None:
            logger.info("Loading SentenceTransformer model %s", self.model_name)
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        emb = self.model.encode(
            texts,
            batch_size=self.batch_size,
            show_progress_bar=False,
            convert_to_numpy=True,
            normalize_embeddings=True,
        )
        return emb.astype("float32").tolist()
