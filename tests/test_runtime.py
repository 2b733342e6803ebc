from __future__ import annotations

from askmynotes.orchestrator import NotesAgent
from askmynotes.rag.embeddings import HashEmbedder
from askmynotes.runtime import Runtime


def test_runtime_builds_collaborators_once():
    calls = {"client": 0, "embedder": 0}

    def client_factory():
        calls["client"] += 1
        return None

    def embedder_factory(client):
        calls["embedder"] += 1
        return HashEmbedder()

    runtime = Runtime(client_factory=client_factory, embedder_factory=embedder_factory)

    assert runtime.get_client() is None
    assert runtime.get_client() is None
    assert runtime.get_embedder() is runtime.get_embedder()
    assert runtime.demo_mode is True
    assert calls == {"client": 1, "embedder": 1}


def test_runtime_reset_drops_cached_collaborators():
    calls = {"client": 0}

    def client_factory():
        calls["client"] += 1
        return None

    runtime = Runtime(client_factory=client_factory, embedder_factory=lambda client: HashEmbedder())
    first = runtime.get_embedder()

    runtime.reset()

    assert runtime.get_embedder() is not first
    assert calls["client"] == 2


def test_runtime_builds_agent_with_shared_config(monkeypatch):
    monkeypatch.setenv("RETRIEVAL_THRESHOLD", "0.3")

    runtime = Runtime()
    agent = runtime.build_agent()

    assert isinstance(agent, NotesAgent)
    assert agent.client is None
    assert agent.rag_config.threshold == 0.3
    assert agent.retriever.config is agent.rag_config
    assert isinstance(agent.retriever.embedder, HashEmbedder)
