from __future__ import annotations

from pathlib import Path
from typing import List, Union

from askmynotes.rag.utils import clean_text

from .chunker import ParsedSection

TEXT_EXTENSIONS = {"txt", "md"}


def parse_text(content: Union[str, bytes]) -> List[ParsedSection]:
    """Plain text becomes a single 'Section 1', or nothing if it is blank."""
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    text = clean_text(content)
    return [ParsedSection(page_or_section="Section 1", text=text)] if text else []


def is_supported_upload(file_name: str, content_type: str = "") -> bool:
    extension = Path(file_name).suffix.lower().lstrip(".")
    return extension in TEXT_EXTENSIONS or content_type.startswith("text/")


def parse_upload(file_name: str, content: bytes, content_type: str = "") -> List[ParsedSection]:
    if not is_supported_upload(file_name, content_type):
        raise ValueError("Unsupported file type. Upload TXT or Markdown files only.")
    return parse_text(content)
