"""
Tests for parsing, chunking and embedding uploaded notes.
"""

from __future__ import annotations

import pytest

from askmynotes.ingest import (
    ParsedSection,
    chunk_sections,
    chunk_text,
    ingest_sections,
    is_supported_upload,
    parse_text,
    parse_upload,
)
from askmynotes.rag.embeddings import local_embedding


def test_chunk_text_splits_long_text_with_overlap():
    text = " ".join(f"term{index}" for index in range(240))

    chunks = chunk_text(text, max_chars=120, overlap_chars=20, min_chars=40)

    assert len(chunks) > 1
    assert len(chunks[0]) <= 120
    assert len(chunks[1]) <= 120
    first_tail = chunks[0][-20:].split(" ")[0]
    assert first_tail in chunks[1]


def test_chunk_text_keeps_short_text_whole():
    assert chunk_text("This is a compact note section.") == ["This is a compact note section."]


def test_chunk_text_blank_input():
    assert chunk_text("   \n\t ") == []


def test_chunk_text_normalizes_whitespace():
    assert chunk_text("Line one\n\n  line   two") == ["Line one line two"]


def test_chunk_sections_preserve_labels():
    result = chunk_sections(
        [
            ParsedSection(page_or_section="Page 2", text="A " * 500),
            ParsedSection(page_or_section="Page 3", text="B " * 500),
        ]
    )

    assert len(result) > 2
    assert any(item.page_or_section == "Page 2" for item in result)
    assert any(item.page_or_section == "Page 3" for item in result)


def test_parse_text_single_section():
    assert parse_text(b"Hello  notes\n") == [ParsedSection(page_or_section="Section 1", text="Hello notes")]
    assert parse_text("   ") == []


def test_supported_uploads():
    assert is_supported_upload("lecture.TXT")
    assert is_supported_upload("summary.md")
    assert is_supported_upload("notes", "text/plain")
    assert not is_supported_upload("slides.pdf", "application/pdf")
    with pytest.raises(ValueError, match="Unsupported file type"):
        parse_upload("slides.pdf", b"%PDF-1.4")


def test_ingest_sections_builds_numbered_records():
    sections = [ParsedSection(page_or_section="Section 1", text="Recursion uses a base case. " * 60)]

    records = ingest_sections(sections, subject_id="s1", file_id="f1", file_name="dsa.txt")

    assert len(records) > 1
    assert [r.chunk_id for r in records] == [f"f1-{n}" for n in range(1, len(records) + 1)]
    assert all(r.subject_id == "s1" and r.file_id == "f1" and r.file_name == "dsa.txt" for r in records)
    assert records[0].embedding == local_embedding(records[0].text)


def test_ingest_sections_keeps_embeddings_aligned_across_workers():
    class LengthEmbedder:
        def embed(self, texts):
            return [[float(len(text))] for text in texts]

    sections = [ParsedSection(page_or_section=f"Page {i}", text=f"Topic {i} sentence. " * 50) for i in range(6)]

    records = ingest_sections(
        sections,
        subject_id="s1",
        file_id="f1",
        file_name="book.md",
        embedder=LengthEmbedder(),
        batch_size=2,
        max_workers=3,
    )

    assert all(r.embedding == [float(len(r.text))] for r in records)


def test_ingest_sections_rejects_empty_file():
    with pytest.raises(ValueError, match="No text content found"):
        ingest_sections([], subject_id="s1", file_id="f1", file_name="empty.txt")
