"""Prompt templates for grounded generation."""

ANSWER_SYSTEM_PROMPT = (
    "You are a clear, patient tutor. Answer only from provided note context. "
    "If context is insufficient, reply with INSUFFICIENT. Keep answers concise."
)

ANSWER_USER_PROMPT = """Current user question: {question}
Resolved retrieval question: {effective_question}
Recent conversation:
{history}

Contexts:
{context}"""

REWRITE_SYSTEM_PROMPT = (
    "Rewrite follow-up questions into standalone retrieval queries grounded in recent conversation. "
    "Return only the rewritten question."
)

REWRITE_USER_PROMPT = """Recent conversation:
{history}

Current question: {question}"""

STUDY_SYSTEM_PROMPT = (
    "Generate study content only from provided facts. Return JSON with keys mcqs, shortAnswers, "
    "and flashcards. Every item must include sourceIndex (1-based)."
)

STUDY_USER_PROMPT = """Variation token: {variation_key}
Difficulty: {difficulty} ({focus}).

Create exactly:
- 5 MCQs (4 options each, correctOption index 0-3, brief explanation)
- 3 short-answer questions with modelAnswer
- 10 flashcards with front and back

Use only these notes:
{context}"""

AI_LAB_SYSTEM_PROMPT = (
    "Generate premium learning assets from provided notes only. Return JSON with keyConcepts, "
    "flashcards, revisionPlan and sourceIndex for every item."
)

AI_LAB_USER_PROMPT = """Using only these notes, create exactly:
- 6 key concepts (title + summary + sourceIndex)
- 8 flashcards (front + back + sourceIndex)
- 3 revision plan items (day + focus + task + sourceIndex)

Return strict JSON only.

Notes:
{context}"""

COACH_SYSTEM_PROMPT = (
    "You are a strict tutor. Improve the student's answer using only note evidence. "
    "Keep it concise. If context is insufficient, return INSUFFICIENT."
)

COACH_USER_PROMPT = """Question: {question}
Student answer: {answer}

Evidence:
{context}"""

EXPLAIN_SYSTEM_PROMPT = (
    "Explain concept strictly from note evidence. Return JSON with keys oneLiner, simple, examReady. "
    "Keep concise and accurate."
)

EXPLAIN_USER_PROMPT = """Concept: {concept}

Evidence:
{context}"""

PLANNER_SYSTEM_PROMPT = (
    "Create a concise study plan from note evidence only. Return JSON with plan "
    "(title,durationMinutes,task,sourceIndex) and tips."
)

PLANNER_USER_PROMPT = """Goal minutes: {goal_minutes}
Focus: {focus}

Create 3-8 study blocks with realistic durations that sum near the goal.
Evidence:
{context}"""
