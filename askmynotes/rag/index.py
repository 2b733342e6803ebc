"""
Chunk records: the atomic unit of retrieval.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Iterable, List, Mapping, Optional, Sequence, TypeVar


@dataclasses.dataclass(frozen=True)
class ChunkRecord:
    """A bounded span of note text with its file and page/section provenance."""

    chunk_id: str
    file_name: str
    page_or_section: str
    text: str
    embedding: Sequence[float]
    subject_id: str
    file_id: str


T = TypeVar("T", bound=ChunkRecord)


def filter_chunks_by_subject(chunks: Iterable[T], subject_id: str) -> List[T]:
    """Keep only chunks owned by `subject_id`."""
    return [chunk for chunk in chunks if chunk.subject_id == subject_id]


def _stringify_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text or None


def resolve_chunk_file_id(row: Mapping[str, Any]) -> str:
    """File id of a stored chunk, falling back to the row id, then a legacy id."""
    return (
        _stringify_id(row.get("file_id"))
        or _stringify_id(row.get("id"))
        or f"legacy-{row.get('chunk_id')}"
    )


def chunk_record_from_row(row: Mapping[str, Any]) -> ChunkRecord:
    """Map a stored chunk row (plain mapping) to a ChunkRecord."""
    embedding = row.get("embedding")
    return ChunkRecord(
        chunk_id=str(row.get("chunk_id") or ""),
        file_name=str(row.get("file_name") or ""),
        page_or_section=str(row.get("page_or_section") or ""),
        text=str(row.get("text") or ""),
        embedding=list(embedding) if isinstance(embedding, (list, tuple)) else [],
        subject_id=_stringify_id(row.get("subject_id")) or "",
        file_id=resolve_chunk_file_id(row),
    )


def chunk_records_from_rows(rows: Iterable[Mapping[str, Any]]) -> List[ChunkRecord]:
    """Map stored rows to records, dropping rows without a subject."""
    records = (chunk_record_from_row(row) for row in rows)
    return [record for record in records if record.subject_id]
