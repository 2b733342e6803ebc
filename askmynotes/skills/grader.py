from __future__ import annotations

from typing import List, Sequence

from askmynotes.generation.schemas import StudyPack
from askmynotes.rag.scoring import jaccard_similarity
from askmynotes.rag.utils import round_half_up
from askmynotes.skills.schemas import (
    GradeBreakdownItem,
    GradeResult,
    McqSummary,
    ShortAnswerSummary,
)

MCQ_MARK_PER_QUESTION = 1
SHORT_MARK_PER_QUESTION = 5
MAX_MCQS = 5
MAX_SHORT_ANSWERS = 3


def _short_answer_feedback(similarity: float) -> str:
    if similarity >= 0.55:
        return "Good coverage of the model answer."
    if similarity >= 0.3:
        return "Partially correct. Include more key points from notes."
    return "Low match with expected notes-based answer."


def _mcq_feedback(correct: bool, correct_option: int) -> str:
    if correct:
        return "Correct answer selected."
    return f"Incorrect. Correct option is {chr(ord('A') + correct_option)}."


def grade_submission(
    study_pack: StudyPack,
    mcq_answers: Sequence[int],
    short_answers: Sequence[str],
) -> GradeResult:
    """
    Mark a study pack submission without any external calls.

    MCQs score one mark on an exact option match. Short answers score
    `jaccard(submitted, model answer) * 5`, rounded to two decimals.
    Missing answers count as wrong / empty.
    """
    mcqs = study_pack.mcqs[:MAX_MCQS]
    shorts = study_pack.short_answers[:MAX_SHORT_ANSWERS]
    breakdown: List[GradeBreakdownItem] = []

    mcq_correct = 0
    for index, mcq in enumerate(mcqs):
        selected = mcq_answers[index] if index < len(mcq_answers) else -1
        correct = selected == mcq.correct_option
        if correct:
            mcq_correct += 1
        breakdown.append(
            GradeBreakdownItem(
                type="mcq",
                question=mcq.question,
                awarded_marks=MCQ_MARK_PER_QUESTION if correct else 0,
                max_marks=MCQ_MARK_PER_QUESTION,
                feedback=_mcq_feedback(correct, mcq.correct_option),
            )
        )

    similarities: List[float] = []
    short_marks = 0.0
    for index, item in enumerate(shorts):
        provided = short_answers[index] if index < len(short_answers) else ""
        similarity = jaccard_similarity(provided or "", item.model_answer)
        similarities.append(similarity)

        awarded = min(
            SHORT_MARK_PER_QUESTION,
            max(0.0, round_half_up(similarity * SHORT_MARK_PER_QUESTION, 2)),
        )
        short_marks += awarded
        breakdown.append(
            GradeBreakdownItem(
                type="short",
                question=item.question,
                awarded_marks=awarded,
                max_marks=SHORT_MARK_PER_QUESTION,
                feedback=_short_answer_feedback(similarity),
            )
        )

    mcq_marks = mcq_correct * MCQ_MARK_PER_QUESTION
    total_marks = len(mcqs) * MCQ_MARK_PER_QUESTION + len(shorts) * SHORT_MARK_PER_QUESTION
    obtained_marks = round_half_up(mcq_marks + short_marks, 2)
    percentage = round_half_up(obtained_marks / total_marks * 100, 2) if total_marks else 0.0
    average_similarity = (
        round_half_up(sum(similarities) / len(similarities) * 100, 2) if similarities else 0.0
    )

    return GradeResult(
        total_marks=total_marks,
        obtained_marks=obtained_marks,
        percentage=percentage,
        mcq=McqSummary(correct=mcq_correct, total=len(mcqs), marks=mcq_marks),
        short_answers=ShortAnswerSummary(
            average_similarity=average_similarity,
            total=len(shorts),
            marks=round_half_up(short_marks, 2),
        ),
        breakdown=breakdown,
    )
