"""
Citation and evidence plumbing shared by every generator.
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from askmynotes.rag.index import ChunkRecord
from askmynotes.rag.utils import truncate

from .schemas import Citation, EvidenceSnippet

NOT_FOUND_TEMPLATE = "Not found in your notes for {subject}"
EVIDENCE_SNIPPET_CHARS = 200


def not_found_message(subject_name: str) -> str:
    """The canonical refusal for a subject."""
    return NOT_FOUND_TEMPLATE.format(subject=subject_name)


def citation_for(chunk: ChunkRecord) -> Citation:
    return Citation(
        file_name=chunk.file_name,
        page_or_section=chunk.page_or_section,
        chunk_id=chunk.chunk_id,
    )


def evidence_for(chunk: ChunkRecord, text_snippet: str) -> EvidenceSnippet:
    return EvidenceSnippet(
        file_name=chunk.file_name,
        page_or_section=chunk.page_or_section,
        text_snippet=text_snippet,
    )


def citations_from_chunks(chunks: Iterable[ChunkRecord]) -> List[Citation]:
    return [citation_for(chunk) for chunk in chunks]


def evidence_from_chunks(
    chunks: Iterable[ChunkRecord],
    length: int = EVIDENCE_SNIPPET_CHARS,
) -> List[EvidenceSnippet]:
    return [evidence_for(chunk, truncate(chunk.text, length)) for chunk in chunks]


def attach_meta(chunk: ChunkRecord, sentence: str) -> Dict[str, list]:
    """One citation + one evidence snippet for an item built from `sentence`."""
    return {
        "citations": [citation_for(chunk)],
        "evidence": [evidence_for(chunk, sentence)],
    }
