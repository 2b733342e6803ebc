"""
Tests for the notes agent and follow-up question rewriting.
"""

from __future__ import annotations

from typing import List, Optional

from askmynotes.generation.schemas import ChatTurn
from askmynotes.orchestrator import NotesAgent, QueryRewriter, resolve_effective_question
from askmynotes.rag import ChunkRecord, local_embedding
from askmynotes.rag.query_understanding import is_follow_up_question, is_summary_style_question


class _StubClient:
    def __init__(self, raw: Optional[str]) -> None:
        self.raw = raw
        self.prompts: List[str] = []

    def complete(self, system_prompt: str, user_prompt: str, temperature: float = 0.2) -> Optional[str]:
        self.prompts.append(user_prompt)
        return self.raw


STACK_HISTORY = [
    ChatTurn(role="user", text="What is a stack in DSA?"),
    ChatTurn(role="assistant", text="A stack follows LIFO order with push and pop operations."),
]


def _record(chunk_id: str, subject_id: str, text: str) -> ChunkRecord:
    return ChunkRecord(
        chunk_id=chunk_id,
        file_name="notes.txt",
        page_or_section="Section 1",
        text=text,
        embedding=local_embedding(text),
        subject_id=subject_id,
        file_id=f"file-{subject_id}",
    )


def _notes() -> List[ChunkRecord]:
    return [
        _record(
            "bio-1",
            "biology",
            "Glycolysis is the first stage of cellular respiration. Glycolysis occurs in the cytoplasm and makes ATP.",
        ),
        _record(
            "bio-2",
            "biology",
            "Mitochondria host the Krebs cycle and oxidative phosphorylation, which produce most ATP.",
        ),
        _record(
            "dsa-1",
            "dsa",
            "Recursion solves a problem by reducing it into smaller subproblems until a base case is reached.",
        ),
    ]


def test_standalone_question_is_unchanged():
    question = "What is recursion?"

    assert resolve_effective_question(question, []) == question


def test_follow_up_question_gets_recent_context():
    effective = resolve_effective_question("give an example", STACK_HISTORY)

    assert "example" in effective.lower()
    assert any(term in effective.lower() for term in ("stack", "lifo", "push", "pop"))


def test_follow_up_without_history_is_unchanged():
    assert resolve_effective_question("give an example", []) == "give an example"


def test_llm_rewrite_strips_prefix():
    client = _StubClient("Standalone question: Give an example of a stack")

    effective = QueryRewriter(client).rewrite("give an example", STACK_HISTORY)

    assert effective == "Give an example of a stack"
    assert "1. User: What is a stack in DSA?" in client.prompts[0]


def test_llm_rewrite_failure_uses_heuristic():
    effective = QueryRewriter(_StubClient(None)).rewrite("give an example", STACK_HISTORY)

    assert effective.startswith("give an example. Previous context:")


def test_question_classification():
    assert is_summary_style_question("Can you summarize these notes?")
    assert is_summary_style_question("What is this about")
    assert not is_summary_style_question("What is glycolysis?")
    assert is_follow_up_question("Why?")
    assert is_follow_up_question("what about queues")
    assert is_follow_up_question("is it fast")
    assert not is_follow_up_question("How does binary search work on sorted arrays?")


def test_agent_chat_answers_within_subject():
    agent = NotesAgent()

    response = agent.chat("What is glycolysis?", "biology", "Biology", _notes())

    assert response.answer != "Not found in your notes for Biology"
    assert all(c.chunk_id.startswith("bio-") for c in response.citations)


def test_agent_chat_refuses_other_subject_content():
    agent = NotesAgent()

    response = agent.chat("What is recursion?", "biology", "Biology", _notes())

    assert response.answer == "Not found in your notes for Biology"
    assert response.citations == []


def test_agent_study_pack_uses_subject_chunks_only():
    pack = NotesAgent().study_pack("dsa", _notes(), "easy", "seed")

    assert pack is not None
    cited = {c.chunk_id for item in pack.flashcards for c in item.citations}
    assert cited == {"dsa-1"}


def test_agent_search_and_explain():
    agent = NotesAgent()

    search = agent.search("glycolysis", "biology", _notes())
    explain = agent.explain("glycolysis", "biology", "Biology", _notes())

    assert search.hits[0].chunk_id == "bio-1"
    assert all(hit.chunk_id.startswith("bio-") for hit in search.hits)
    assert explain.citations[0].chunk_id == "bio-1"


def test_agent_planner_and_ai_lab():
    agent = NotesAgent()

    plan = agent.planner(30, "biology", _notes())
    lab = agent.ai_lab("biology", _notes())

    assert plan is not None and len(plan.plan) >= 3
    assert lab is not None
    assert {c.chunk_id for item in lab.key_concepts for c in item.citations} <= {"bio-1", "bio-2"}


def test_agent_coach_refuses_foreign_question():
    result = NotesAgent().coach("What is recursion?", "Calling itself.", "biology", "Biology", _notes())

    assert result.feedback == "Not found in your notes for Biology"
