from __future__ import annotations

import os

# Set before askmynotes is imported: the database engine and the embedding
# backend are resolved at import time.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["EMBEDDING_BACKEND"] = "local"
os.environ["LLM_PROVIDER"] = "openai"
os.environ["OPENAI_API_KEY"] = ""
os.environ["OPENROUTER_API_KEY"] = ""

import pytest  # noqa: E402


@pytest.fixture(autouse=True)
def _demo_mode(monkeypatch):
    """Every test starts without LLM credentials."""
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("OPENROUTER_API_KEY", "")
    monkeypatch.setenv("LLM_PROVIDER", "openai")
