"""
Application context owning the expensive, optional collaborators.

The LLM client and the embedder are created on first use and cached for the
life of the app; `reset()` drops them so tests (or a key rotation) start fresh.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from askmynotes.llm.client import LLMClient, create_client
from askmynotes.orchestrator.agent import NotesAgent
from askmynotes.rag.config import RAGConfig
from askmynotes.rag.embeddings import Embedder, create_embedder
from askmynotes.rag.retriever import ChunkRetriever

ClientFactory = Callable[[], Optional[LLMClient]]
EmbedderFactory = Callable[[Optional[LLMClient]], Embedder]


class Runtime:
    """Lazily built LLM client + embedder shared by all requests."""

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        embedder_factory: Optional[EmbedderFactory] = None,
        rag_config: Optional[RAGConfig] = None,
    ) -> None:
        self._client_factory = client_factory or create_client
        self._embedder_factory = embedder_factory or (lambda client: create_embedder(client))
        self.rag_config = rag_config or RAGConfig.from_env()

        self._client_lock = threading.Lock()
        self._embedder_lock = threading.Lock()

        self._client: Optional[LLMClient] = None
        self._client_ready = False
        self._embedder: Optional[Embedder] = None

    def get_client(self) -> Optional[LLMClient]:
        """The configured LLM client, or None in demo mode."""
        if self._client_ready:
            return self._client
        with self._client_lock:
            if not self._client_ready:
                self._client = self._client_factory()
                self._client_ready = True
        return self._client

    def get_embedder(self) -> Embedder:
        if self._embedder is not None:
            return self._embedder
        client = self.get_client()
        with self._embedder_lock:
            if self._embedder is None:
                self._embedder = self._embedder_factory(client)
        return self._embedder

    @property
    def demo_mode(self) -> bool:
        return self.get_client() is None

    def build_agent(self) -> NotesAgent:
        retriever = ChunkRetriever(embedder=self.get_embedder(), config=self.rag_config)
        return NotesAgent(retriever=retriever, client=self.get_client(), rag_config=self.rag_config)

    def reset(self) -> None:
        with self._client_lock:
            self._client = None
            self._client_ready = False
        with self._embedder_lock:
            self._embedder = None
