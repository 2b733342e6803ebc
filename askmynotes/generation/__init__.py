"""
Evidence-grounded generation.

- Payload schemas with citations and evidence snippets
- One generator per feature: chat, study pack, AI lab, coach, search,
  concept explainer, study planner
- Deterministic extractive/templated fallbacks for demo mode
- Validation of JSON returned by the generation service
"""

from .ai_lab import generate_ai_lab_pack
from .chat import build_chat_response, extractive_answer, not_found_response
from .citations import NOT_FOUND_TEMPLATE, not_found_message
from .coach import evaluate_answer
from .config import GenerationConfig
from .explain import build_explain_result
from .generator import AnswerGenerator
from .planner import build_study_plan
from .schemas import (
    AiLabPack,
    ChatResponse,
    ChatTurn,
    Citation,
    CoachResult,
    EvidenceSnippet,
    ExplainResult,
    Flashcard,
    McqItem,
    PlannerResult,
    SearchResult,
    ShortAnswerItem,
    StudyPack,
)
from .search import build_search_result
from .study import generate_study_pack

__all__ = [
    "generate_ai_lab_pack",
    "build_chat_response",
    "extractive_answer",
    "not_found_response",
    "NOT_FOUND_TEMPLATE",
    "not_found_message",
    "evaluate_answer",
    "GenerationConfig",
    "build_explain_result",
    "AnswerGenerator",
    "build_study_plan",
    "AiLabPack",
    "ChatResponse",
    "ChatTurn",
    "Citation",
    "CoachResult",
    "EvidenceSnippet",
    "ExplainResult",
    "Flashcard",
    "McqItem",
    "PlannerResult",
    "SearchResult",
    "ShortAnswerItem",
    "StudyPack",
    "build_search_result",
    "generate_study_pack",
]
