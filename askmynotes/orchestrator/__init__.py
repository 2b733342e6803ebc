"""
Orchestrator: follow-up rewriting and the per-subject notes agent.
"""

from .agent import NotesAgent
from .query_rewriter import QueryRewriter, resolve_effective_question

__all__ = ["NotesAgent", "QueryRewriter", "resolve_effective_question"]
