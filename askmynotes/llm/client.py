"""
LLM client for OpenAI-compatible APIs (OpenAI, OpenRouter).

The client is optional everywhere: with no API key the app runs in demo mode
and every feature uses its deterministic path.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Protocol, runtime_checkable

from dotenv import load_dotenv
from openai import OpenAI

# Load .env file if it exists
project_root = Path(__file__).resolve().parents[2]
env_file = project_root / ".env"
if env_file.exists():
    load_dotenv(env_file)

DEFAULT_PROVIDER = "openai"
DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_LLM_MODEL = "gpt-4o-mini"
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_APP_URL = "http://localhost:8000"
APP_TITLE = "AskMyNotes"

logger = logging.getLogger(__name__)


def resolve_provider(provider: Optional[str] = None) -> str:
    value = (provider or os.getenv("LLM_PROVIDER") or DEFAULT_PROVIDER).strip().lower()
    if value not in ("openai", "openrouter"):
        raise ValueError(f"Unsupported LLM_PROVIDER {value!r}; use 'openai' or 'openrouter'.")
    return value


def resolve_api_key(provider: Optional[str] = None) -> str:
    """API key for the selected provider, '' when unset."""
    if resolve_provider(provider) == "openai":
        return (os.getenv("OPENAI_API_KEY") or "").strip()
    return (os.getenv("OPENROUTER_API_KEY") or "").strip()


def is_demo_mode() -> bool:
    return not resolve_api_key()


@runtime_checkable
class SupportsCompletion(Protocol):
    """Single-turn completion capability; None means 'unavailable'."""

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.2,
    ) -> Optional[str]:
        ...


class LLMClient:
    """OpenAI-compatible chat + embeddings client (OpenAI or OpenRouter)."""

    def __init__(
        self,
        model_name: Optional[str] = None,
        api_key: Optional[str] = None,
        provider: Optional[str] = None,
        base_url: Optional[str] = None,
        embedding_model: Optional[str] = None,
    ):
        self.provider = resolve_provider(provider)
        key = api_key or resolve_api_key(self.provider)
        if not key:
            raise ValueError(
                "API key required. Set OPENAI_API_KEY (LLM_PROVIDER=openai) "
                "or OPENROUTER_API_KEY (LLM_PROVIDER=openrouter)."
            )
        self.model_name = model_name or os.getenv("LLM_MODEL", DEFAULT_LLM_MODEL)
        self.embedding_model = embedding_model or os.getenv("EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL)

        if self.provider == "openrouter":
            self.base_url = base_url or os.getenv("OPENROUTER_BASE_URL", DEFAULT_OPENROUTER_BASE_URL)
            self.client = OpenAI(
                api_key=key,
                base_url=self.base_url,
                default_headers={
                    "HTTP-Referer": os.getenv("APP_URL", DEFAULT_APP_URL),
                    "X-Title": APP_TITLE,
                },
            )
        else:
            self.base_url = base_url
            self.client = OpenAI(api_key=key, base_url=base_url) if base_url else OpenAI(api_key=key)

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.2,
    ) -> Optional[str]:
        """
        Run one system+user completion.

        Returns None on any failure or empty content. There are no retries:
        callers fall back to their deterministic path immediately.
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model_name,
                temperature=temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except Exception as e:
            logger.warning("Completion request failed: %s", e)
            return None

        if not response.choices:
            logger.warning("Empty response from API (model=%s)", self.model_name)
            return None
        content = (response.choices[0].message.content or "").strip()
        return content or None

    def create_embeddings(self, texts: List[str]) -> Optional[List[List[float]]]:
        """Embed a batch of texts; None on failure."""
        if not texts:
            return []
        try:
            response = self.client.embeddings.create(model=self.embedding_model, input=texts)
        except Exception as e:
            logger.warning("Embedding request failed for %s texts: %s", len(texts), e)
            return None
        return [list(item.embedding) for item in response.data]


def create_client(
    model_name: Optional[str] = None,
    api_key: Optional[str] = None,
    provider: Optional[str] = None,
) -> Optional[LLMClient]:
    """Create a client, or return None in demo mode (no API key)."""
    if not (api_key or resolve_api_key(provider)):
        logger.info("No LLM API key configured; running in demo mode")
        return None
    return LLMClient(model_name=model_name, api_key=api_key, provider=provider)
