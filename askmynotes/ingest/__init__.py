"""
Ingestion: text parsing, chunking and embedding of uploaded notes.
"""

from .chunker import ParsedSection, TextChunk, chunk_sections, chunk_text
from .parser import is_supported_upload, parse_text, parse_upload
from .pipeline import ingest_sections

__all__ = [
    "ParsedSection",
    "TextChunk",
    "chunk_sections",
    "chunk_text",
    "ingest_sections",
    "is_supported_upload",
    "parse_text",
    "parse_upload",
]
