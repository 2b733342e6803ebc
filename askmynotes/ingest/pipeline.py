"""
Ingestion: parsed sections -> chunks -> batched embeddings -> ChunkRecords.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from askmynotes.rag.embeddings import Embedder, HashEmbedder, embed_in_batches
from askmynotes.rag.index import ChunkRecord

from .chunker import ParsedSection, chunk_sections

logger = logging.getLogger(__name__)

INGEST_MAX_CHARS = 700
INGEST_OVERLAP_CHARS = 120
INGEST_MIN_CHARS = 60
EMBED_BATCH_SIZE = 24


def ingest_sections(
    sections: Sequence[ParsedSection],
    *,
    subject_id: str,
    file_id: str,
    file_name: str,
    embedder: Optional[Embedder] = None,
    batch_size: int = EMBED_BATCH_SIZE,
    max_workers: int = 1,
) -> List[ChunkRecord]:
    """
    Chunk a parsed file and embed its chunks.

    Chunk ids are `{file_id}-{n}` numbered from 1; embeddings stay aligned
    with their chunks however many workers are used.
    """
    chunks = chunk_sections(
        sections,
        max_chars=INGEST_MAX_CHARS,
        overlap_chars=INGEST_OVERLAP_CHARS,
        min_chars=INGEST_MIN_CHARS,
    )
    if not chunks:
        raise ValueError("No text content found in this file.")

    embeddings = embed_in_batches(
        embedder or HashEmbedder(),
        [chunk.text for chunk in chunks],
        batch_size=batch_size,
        max_workers=max_workers,
    )

    records = [
        ChunkRecord(
            chunk_id=f"{file_id}-{index}",
            file_name=file_name,
            page_or_section=chunk.page_or_section,
            text=chunk.text,
            embedding=embedding,
            subject_id=subject_id,
            file_id=file_id,
        )
        for index, (chunk, embedding) in enumerate(zip(chunks, embeddings), start=1)
    ]
    logger.info(
        "Ingested %s: %d sections -> %d chunks",
        file_name,
        len(sections),
        len(records),
    )
    return records
