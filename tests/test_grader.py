from __future__ import annotations

import pytest

from askmynotes.generation.schemas import Citation, Flashcard, McqItem, ShortAnswerItem, StudyPack
from askmynotes.skills.grader import grade_submission
from askmynotes.skills.schemas import GradeRequest

CITATION = Citation(file_name="notes.txt", page_or_section="Section 1", chunk_id="chunk-1")


def _make_pack(correct_options=(0, 1, 2, 3, 0)) -> StudyPack:
    mcqs = [
        McqItem(
            question=f"Question {i}",
            options=["alpha", "beta", "gamma", "delta"],
            correct_option=correct,
            explanation="From the notes.",
            citations=[CITATION],
        )
        for i, correct in enumerate(correct_options)
    ]
    shorts = [
        ShortAnswerItem(
            question=f"Short {i}",
            model_answer="Stacks follow last in first out order with push and pop",
            citations=[CITATION],
        )
        for i in range(3)
    ]
    cards = [Flashcard(front=f"Front {i}", back="Back", citations=[CITATION]) for i in range(10)]
    return StudyPack(difficulty="Medium", mcqs=mcqs, short_answers=shorts, flashcards=cards)


def test_perfect_submission_scores_full_marks():
    model = "Stacks follow last in first out order with push and pop"

    result = grade_submission(_make_pack(), [0, 1, 2, 3, 0], [model, model, model])

    assert result.total_marks == 20
    assert result.obtained_marks == pytest.approx(20)
    assert result.percentage == pytest.approx(100)
    assert result.mcq.correct == 5
    assert result.short_answers.average_similarity == pytest.approx(100)
    assert result.breakdown[-1].feedback == "Good coverage of the model answer."


def test_missing_answers_count_as_wrong():
    result = grade_submission(_make_pack(), [0], [])

    assert result.mcq.correct == 1
    assert result.mcq.marks == 1
    assert result.short_answers.marks == 0
    assert result.obtained_marks == pytest.approx(1)
    assert result.percentage == pytest.approx(5)
    assert result.breakdown[1].feedback == "Incorrect. Correct option is B."
    assert result.breakdown[5].feedback == "Low match with expected notes-based answer."


def test_short_answer_partial_credit():
    # 4 shared of 10 distinct tokens
    result = grade_submission(_make_pack(), [], ["stacks follow push pop", "", ""])

    first_short = [item for item in result.breakdown if item.type == "short"][0]
    assert first_short.awarded_marks == pytest.approx(2.0)
    assert first_short.feedback == "Partially correct. Include more key points from notes."
    assert result.short_answers.average_similarity == pytest.approx(13.33)


def test_breakdown_order_is_mcqs_then_shorts():
    result = grade_submission(_make_pack(), [0, 0, 0, 0, 0], ["", "", ""])

    assert [item.type for item in result.breakdown] == ["mcq"] * 5 + ["short"] * 3
    assert result.breakdown[0].feedback == "Correct answer selected."


def test_grade_request_accepts_camel_case_and_rejects_bad_option():
    pack = _make_pack().model_dump(by_alias=True)

    request = GradeRequest.model_validate({"studyPack": pack, "mcqAnswers": [0, 3], "shortAnswers": ["x"]})

    assert request.mcq_answers == [0, 3]
    with pytest.raises(ValueError):
        GradeRequest.model_validate({"studyPack": pack, "mcqAnswers": [4]})


def test_grading_same_submission_twice_is_identical():
    pack = _make_pack()
    mcq_answers = [0, 2, 2, 3, 1]
    short_answers = ["stacks follow push pop", "last in first out", ""]

    first = grade_submission(pack, mcq_answers, short_answers)
    second = grade_submission(pack, mcq_answers, short_answers)

    assert first.model_dump() == second.model_dump()
