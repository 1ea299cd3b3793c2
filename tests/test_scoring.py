from datetime import datetime, timedelta
from itertools import product

import pytest

from classes.errors import QuizDataError
from classes.scoring import FALLBACK_FEEDBACK, feedback_for, score_answers

STARTED = datetime(2026, 3, 2, 9, 0, 0)
SETTINGS = {"marks_per_question": 2, "negative_marking": 0.5, "passing_percentage": 50}


def question(qid, correct="a", options=("a", "b"), **extra):
    return {
        "id": qid,
        "question_text": f"Question {qid}",
        "options": [{"id": o, "text": o.upper()} for o in options],
        "correct_answer": correct,
        "explanation": f"Because {correct}",
        **extra,
    }


def test_one_right_one_wrong_with_negative_marking():
    sheet = score_answers(
        [question(1, "a"), question(2, "b")],
        {1: "a", 2: "a"},
        SETTINGS,
        STARTED,
        STARTED + timedelta(seconds=75),
    )

    assert sheet.marks_obtained == 1.5
    assert sheet.total_marks == 4
    assert sheet.percentage == 37.5
    assert sheet.is_passed is False
    assert sheet.correct_answers == 1
    assert sheet.incorrect_answers == 1
    assert sheet.unanswered_questions == 0
    assert [o.marks_awarded for o in sheet.outcomes] == [2, -0.5]


def test_no_answers_scores_zero():
    sheet = score_answers([question(1), question(2)], {}, SETTINGS, STARTED, STARTED + timedelta(minutes=10))

    assert sheet.marks_obtained == 0
    assert sheet.unanswered_questions == 2
    assert sheet.percentage == 0
    assert sheet.is_passed is False
    assert all(o.selected_answer == "" for o in sheet.outcomes)


def test_question_overrides_take_precedence():
    questions = [
        question(1, "a", marks=5, negative_marks=2),
        question(2, "a", marks=0),
        question(3, "b"),
    ]
    sheet = score_answers(questions, {1: "b", 2: "a", 3: "b"}, SETTINGS, STARTED, STARTED)

    assert sheet.total_marks == 7
    assert [o.marks_awarded for o in sheet.outcomes] == [-2, 0, 2]
    assert sheet.marks_obtained == 0


def test_zero_total_marks_does_not_divide_by_zero():
    sheet = score_answers([question(1, marks=0)], {1: "a"}, SETTINGS, STARTED, STARTED)

    assert sheet.percentage == 0
    assert score_answers([], {}, SETTINGS, STARTED, STARTED).percentage == 0


def test_passing_percentage_defaults_to_forty():
    settings = {"marks_per_question": 1, "negative_marking": 0}
    questions = [question(i) for i in range(1, 6)]

    passed = score_answers(questions, {1: "a", 2: "a"}, settings, STARTED, STARTED)
    failed = score_answers(questions, {1: "a"}, settings, STARTED, STARTED)

    assert passed.percentage == 40 and passed.is_passed
    assert failed.percentage == 20 and not failed.is_passed


def test_pass_mark_is_checked_before_rounding():
    settings = {"marks_per_question": 1, "negative_marking": 0, "passing_percentage": 66.67}
    questions = [question(i) for i in range(1, 4)]

    sheet = score_answers(questions, {1: "a", 2: "a"}, settings, STARTED, STARTED)

    assert sheet.percentage == 66.67
    assert sheet.is_passed is False


def test_feedback_band_is_checked_before_rounding():
    settings = {"marks_per_question": 1, "negative_marking": 0}
    questions = [question(1, marks=8999.6), question(2, marks=1000.4)]

    sheet = score_answers(questions, {1: "a"}, settings, STARTED, STARTED)

    assert sheet.percentage == 90.0
    assert sheet.feedback.startswith("Great job!")


def test_time_taken_is_floored_to_whole_seconds():
    sheet = score_answers([question(1)], {}, SETTINGS, STARTED, STARTED + timedelta(seconds=89, milliseconds=999))
    assert sheet.time_taken == 89


def test_correct_answer_outside_options_is_fatal():
    with pytest.raises(QuizDataError):
        score_answers([question(1, correct="z")], {1: "a"}, SETTINGS, STARTED, STARTED)


@pytest.mark.parametrize(
    "percentage, prefix",
    [
        (100, "Outstanding!"),
        (90, "Outstanding!"),
        (89.99, "Great job!"),
        (75, "Great job!"),
        (60, "Good effort!"),
        (59.5, "Keep practicing!"),
        (40, "Keep practicing!"),
        (39.99, "More practice needed."),
        (-12.5, "More practice needed."),
    ],
)
def test_feedback_bands_include_lower_edge(percentage, prefix):
    assert feedback_for(percentage).startswith(prefix)


def test_feedback_fallback_text():
    assert feedback_for(0) == FALLBACK_FEEDBACK


def test_marks_stay_within_bounds_and_counts_add_up():
    questions = [question(1, "a"), question(2, "b", negative_marks=1.5), question(3, "c", options=("a", "b", "c"))]
    max_penalty = 0.5 + 1.5 + 0.5

    choices = [None, "a", "b"]
    for picks in product(choices, repeat=3):
        answers = {qid: pick for qid, pick in zip((1, 2, 3), picks) if pick is not None}
        sheet = score_answers(questions, answers, SETTINGS, STARTED, STARTED)

        assert -max_penalty <= sheet.marks_obtained <= sheet.total_marks
        assert (
            sheet.correct_answers + sheet.incorrect_answers + sheet.unanswered_questions
            == sheet.total_questions
        )
